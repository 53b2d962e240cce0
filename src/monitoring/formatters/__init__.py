from .colored_formatter import ColoredFormatter
from .json_formatter import JsonFormatter
from .standard_formatter import StandardFormatter

__all__ = ["ColoredFormatter", "JsonFormatter", "StandardFormatter"]
