import logging


class ColoredFormatter(logging.Formatter):
    """레벨별 색상을 입힌 콘솔 포매터"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[41m",  # Red Background
    }
    RESET = "\033[0m"

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        # record 는 다른 핸들러와 공유되므로 levelname 을 되돌려 놓는다
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname
