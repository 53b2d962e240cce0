from .config_core import ConfigSchema, ConfigSource, ConfigValidationError, ConfigValue
from .config_manager import ConfigManager

__all__ = ["ConfigSchema", "ConfigSource", "ConfigValidationError", "ConfigValue", "ConfigManager"]
