import json
import logging
import os
import threading
from collections.abc import Callable
from copy import deepcopy
from pathlib import Path
from typing import Any

import yaml

from .config_core import ConfigSchema, ConfigSource, ConfigValidationError, ConfigValue
from .file_watcher import FileWatcher

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    핫 리로드를 지원하는 스레드 안전 설정 관리자.

    - 여러 소스(파일, 환경 변수)에서 로드하며 나중에 로드한 값이 우선한다
    - 파일 변경을 감지하여 자동으로 다시 읽는다
    - 스키마 검증 및 기본값 적용
    - 변경 시 콜백 호출

    환경 변수로 지정한 값은 파일을 다시 읽은 뒤에도 유지된다.
    """

    def __init__(self, schema: ConfigSchema | None = None, watch_interval: float = 1.0):
        """
        Args:
            schema: 검증에 사용할 스키마 (선택)
            watch_interval: 파일 변경 확인 주기 (초)
        """
        self.schema = schema
        self._config: dict[str, Any] = {}
        self._env_overrides: dict[str, ConfigValue] = {}
        self._lock = threading.RLock()
        self._watcher = FileWatcher(poll_interval=watch_interval)
        self._change_callbacks: list[Callable[[dict], None]] = []
        self._config_files: list[Path] = []

    def load_file(self, file_path: str, watch: bool = True, required: bool = True):
        """
        설정 파일(YAML 또는 JSON)을 로드한다.

        Args:
            file_path: 설정 파일 경로
            watch: 변경 감시 여부
            required: True 이면 파일이 없을 때 FileNotFoundError 발생

        Raises:
            FileNotFoundError: required=True 인데 파일이 없는 경우
            ValueError: 지원하지 않는 파일 형식인 경우
        """
        path = Path(file_path).resolve()

        if not path.exists():
            if required:
                raise FileNotFoundError(f"Config file not found: {path}")
            logger.debug(f"Optional config file not found: {path}")
            return

        wrapped = self._wrap_values(self._read_file(path), ConfigSource.FILE)

        with self._lock:
            self._deep_merge(self._config, wrapped)
            self._config_files.append(path)

        logger.info(f"Loaded config from {path}")

        if watch:
            self._watcher.watch(str(path), self._on_file_changed)

    def load_env(self, prefix: str = "", mapping: dict[str, str] | None = None):
        """
        환경 변수에서 설정을 로드한다.

        Args:
            prefix: 이 접두사로 시작하는 변수만 로드 (APP_METRICS_LEVEL -> metrics.level)
            mapping: 환경 변수 이름 -> 설정 키 매핑. 지정하면 prefix 는 무시된다.
        """
        if mapping:
            pairs = [(config_key, os.environ.get(env_var)) for env_var, config_key in mapping.items()]
        else:
            pairs = [
                (key[len(prefix) :].lower().replace("_", "."), value)
                for key, value in os.environ.items()
                if not prefix or key.startswith(prefix)
            ]

        with self._lock:
            for config_key, raw in pairs:
                if raw is None:
                    continue
                config_value = ConfigValue(value=self._parse_env_value(raw), source=ConfigSource.ENVIRONMENT)
                self._env_overrides[config_key] = config_value
                self._set_nested(self._config, config_key, config_value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        점 표기법 키로 설정 값을 가져온다.

        Args:
            key: 예) "metrics.level"
            default: 키가 없을 때 반환할 값
        """
        with self._lock:
            value = self._get_nested(self._config, key)
            if value is None:
                return default
            return self._unwrap_values(value)

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return self._unwrap_values(deepcopy(self._config))

    def get_with_source(self, key: str) -> ConfigValue | dict | None:
        """출처 정보(ConfigValue)를 포함한 원본 값을 반환한다."""
        with self._lock:
            return self._get_nested(self._config, key)

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.DEFAULT):
        """
        런타임에 설정 값을 변경한다. 파일에는 저장되지 않는다.
        """
        if not isinstance(value, ConfigValue):
            value = ConfigValue(value=value, source=source)

        with self._lock:
            self._set_nested(self._config, key, value)

        self._notify_change()

    def on_change(self, callback: Callable[[dict], None]):
        """설정 변경 시 호출될 콜백을 등록한다. 콜백은 전체 설정 dict 를 받는다."""
        self._change_callbacks.append(callback)

    def validate(self) -> bool:
        """
        현재 설정을 스키마로 검증한다.

        Raises:
            ConfigValidationError: 검증 실패 시
        """
        if not self.schema:
            return True

        with self._lock:
            errors = self.schema.validate(self._unwrap_values(self._config))

        if errors:
            raise ConfigValidationError(errors)
        return True

    def apply_defaults(self):
        """스키마의 기본값을 누락된 키에 채운다."""
        if not self.schema:
            return

        with self._lock:
            self._fill_defaults(self._config)

    def reload(self):
        """
        모든 설정 파일을 다시 읽고 환경 변수 값을 다시 덮어쓴다.

        새 설정이 스키마 검증에 실패하면 기존 설정을 그대로 유지한다.

        Raises:
            ConfigValidationError: 새 설정이 유효하지 않은 경우
        """
        config: dict[str, Any] = {}
        with self._lock:
            for path in self._config_files:
                if path.exists():
                    self._deep_merge(config, self._wrap_values(self._read_file(path), ConfigSource.FILE))
            for key, config_value in self._env_overrides.items():
                self._set_nested(config, key, config_value)

        if self.schema:
            self._fill_defaults(config)
            errors = self.schema.validate(self._unwrap_values(config))
            if errors:
                raise ConfigValidationError(errors)

        with self._lock:
            self._config = config

        self._notify_change()
        logger.info("Configuration reloaded")

    def close(self):
        """파일 감시를 중지한다."""
        self._watcher.stop()

    def _fill_defaults(self, config: dict[str, Any]):
        """config 의 누락된 키에 DEFAULT 소스의 기본값을 채운다."""
        defaults = self.schema.apply_defaults({})
        current = self._unwrap_values(config)

        for key in self.schema.keys:
            if self._get_nested(current, key) is not None:
                continue
            default = self._get_nested(defaults, key)
            if default is not None:
                self._set_nested(config, key, ConfigValue(value=default, source=ConfigSource.DEFAULT))

    def _on_file_changed(self, path: Path):
        logger.info(f"Config file changed: {path}")

        try:
            self.reload()
        except (ConfigValidationError, ValueError, OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to reload config: {e}")

    def _notify_change(self):
        config_copy = self.get_all()

        for callback in self._change_callbacks:
            try:
                callback(config_copy)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")

    @staticmethod
    def _parse_env_value(raw: str) -> Any:
        # "true" -> True, "400" -> 400, "INFO" -> "INFO"
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError:
            return raw
        return raw if parsed is None else parsed

    @staticmethod
    def _read_file(path: Path) -> dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            content = f.read()

        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            return json.loads(content)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _deep_merge(self, base: dict, override: dict):
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _wrap_values(self, data: Any, source: ConfigSource) -> Any:
        """dict 와 list 는 그대로 두고 말단 값만 ConfigValue 로 감싼다."""
        if isinstance(data, dict):
            return {key: self._wrap_values(value, source) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._wrap_values(item, source) for item in data]
        return ConfigValue(value=data, source=source)

    def _unwrap_values(self, data: Any) -> Any:
        if isinstance(data, ConfigValue):
            return self._unwrap_values(data.value)
        elif isinstance(data, dict):
            return {key: self._unwrap_values(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._unwrap_values(item) for item in data]
        return data

    @staticmethod
    def _get_nested(config: dict, key: str) -> Any:
        value = config
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value

    @staticmethod
    def _set_nested(config: dict, key: str, value: Any):
        parts = key.split(".")
        current = config
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = value
