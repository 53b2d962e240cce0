import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..config import ConfigManager
from .formatters import ColoredFormatter, JsonFormatter, StandardFormatter

# 전역 로거 인스턴스 (싱글톤 패턴)
_logger_instance: "StructuredLogger | None" = None


class StructuredLogger:
    """
    루트 로거에 콘솔/파일 핸들러를 구성한다.

    기본 설정은 ConfigManager 의 logging 섹션으로 덮어쓸 수 있다.
    """

    def __init__(self, name: str = "metrics", config: ConfigManager | None = None):
        self.name = name

        settings = self._default_config()
        if config:
            settings.update(config.get("logging", {}))
        self.config = settings
        self.setup_logging()

    @staticmethod
    def _default_config() -> dict:
        return {
            "log_level": "INFO",
            "log_dir": "logs",
            "max_file_size": 10 * 1024 * 1024,  # 10MB
            "backup_count": 10,
            "format": "json",  # json or text
            "outputs": ["console"],
            "error_tracking": True,
        }

    def _get_formatter(self, output_type: str) -> logging.Formatter:
        if output_type == "console":
            return ColoredFormatter()
        return JsonFormatter() if self.config.get("format") == "json" else StandardFormatter()

    def setup_logging(self):
        logger = logging.getLogger()
        logger.setLevel(logging.getLevelName(str(self.config.get("log_level", "INFO")).upper()))

        # 기존 핸들러 제거
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        outputs = self.config.get("outputs") or []

        if "console" in outputs:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(self._get_formatter("console"))
            logger.addHandler(console_handler)

        if "file" in outputs:
            log_dir = Path(self.config.get("log_dir", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = self._rotating_handler(log_dir / f"{self.name}.log")
            logger.addHandler(file_handler)

            # 에러 로그는 따로 관리
            if self.config.get("error_tracking"):
                error_handler = self._rotating_handler(log_dir / f"{self.name}_errors.log")
                error_handler.setLevel(logging.ERROR)
                logger.addHandler(error_handler)

    def _rotating_handler(self, path: Path) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            path,
            maxBytes=int(self.config.get("max_file_size")),
            backupCount=int(self.config.get("backup_count")),
            encoding="utf-8",
        )
        handler.setFormatter(self._get_formatter("file"))
        return handler


def setup_logger(name: str = "metrics", config: ConfigManager | None = None) -> StructuredLogger:
    """
    전역 로거를 설정합니다. 애플리케이션 시작 시 한 번만 호출해야 합니다.

    Args:
        name: 로거 이름 (로그 파일명으로 사용됨)
        config: ConfigManager 인스턴스

    Returns:
        설정된 StructuredLogger 인스턴스
    """
    global _logger_instance
    _logger_instance = StructuredLogger(name=name, config=config)
    return _logger_instance


def get_logger(name: str | None = None) -> logging.Logger:
    """
    모듈별 로거를 가져옵니다.

    Usage:
        from src.monitoring import get_logger
        logger = get_logger(__name__)
        logger.info("metric level changed", extra={"metric": "database", "metric_level": "DEBUG"})
    """
    return logging.getLogger(name)
