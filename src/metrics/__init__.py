from .errors import (
    InvalidLevelArgumentError,
    LevelAlreadyRegisteredError,
    LevelBaseError,
    NullLevelNameError,
    UnknownLevelError,
)
from .level import (
    ALL,
    DEBUG,
    INFO,
    OFF,
    TRACE,
    Level,
    LevelRegistry,
    compare,
    get_level,
    levels,
    register,
    to_level,
    value_of,
)
from .level_settings import MetricLevelSettings, metrics_config_schema

__all__ = [
    "ALL",
    "DEBUG",
    "INFO",
    "OFF",
    "TRACE",
    "Level",
    "LevelRegistry",
    "compare",
    "get_level",
    "levels",
    "register",
    "to_level",
    "value_of",
    "MetricLevelSettings",
    "metrics_config_schema",
    "LevelBaseError",
    "InvalidLevelArgumentError",
    "LevelAlreadyRegisteredError",
    "NullLevelNameError",
    "UnknownLevelError",
]
