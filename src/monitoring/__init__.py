from .logger import StructuredLogger, get_logger, setup_logger

__all__ = ["StructuredLogger", "get_logger", "setup_logger"]
