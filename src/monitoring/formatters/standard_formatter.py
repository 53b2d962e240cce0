import logging


class StandardFormatter(logging.Formatter):
    """파일용 텍스트 포매터"""

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
