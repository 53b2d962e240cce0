import logging
import threading
from typing import Any

from ..config import ConfigManager, ConfigSchema
from .level import INFO, OFF, Level, to_level

logger = logging.getLogger(__name__)


def metrics_config_schema() -> ConfigSchema:
    """metrics 설정 섹션의 스키마"""
    schema = ConfigSchema()
    schema.optional("metrics.enabled", bool, default=True)
    # YAML 1.1 은 따옴표 없는 OFF 를 false 로 읽는다
    schema.optional("metrics.level", (str, bool), default=INFO.name)
    schema.optional("metrics.levels", dict)
    return schema


class MetricLevelSettings:
    """
    메트릭별 레벨 설정.

    루트 레벨과 점(.)으로 구분된 메트릭 이름별 레벨을 보관하고,
    특정 레벨의 메트릭을 수집해야 하는지 판단한다.

    메트릭 이름에 직접 지정된 레벨이 없으면 가장 긴 상위 이름의 레벨을 따르고,
    그것도 없으면 루트 레벨을 따른다.

    Example:
        settings = MetricLevelSettings(root_level=INFO)
        settings.set_level("database", DEBUG)
        settings.is_enabled("database.query.time", DEBUG)  # True
        settings.is_enabled("http.requests", DEBUG)  # False
    """

    def __init__(self, root_level: Level = INFO, enabled: bool = True):
        self._root_level = root_level
        self._enabled = enabled
        self._levels: dict[str, Level] = {}
        self._lock = threading.RLock()

    @property
    def root_level(self) -> Level:
        return self._root_level

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool):
        with self._lock:
            self._enabled = enabled

    def set_root_level(self, level: Level | str):
        with self._lock:
            self._root_level = self._resolve(level, self._root_level)

    def set_level(self, metric_name: str, level: Level | str):
        """메트릭 이름에 레벨을 지정한다. 문자열은 대소문자 구분 없이 변환하며 실패하면 루트 레벨을 사용한다."""
        with self._lock:
            self._levels[metric_name] = self._resolve(level, self._root_level)

    def remove_level(self, metric_name: str):
        with self._lock:
            self._levels.pop(metric_name, None)

    def get_level(self, metric_name: str) -> Level | None:
        """메트릭 이름에 직접 지정된 레벨 (상위 이름은 보지 않음)"""
        with self._lock:
            return self._levels.get(metric_name)

    def effective_level(self, metric_name: str) -> Level:
        """
        메트릭에 실제로 적용되는 레벨을 반환한다.

        "a.b.c" 는 "a.b.c", "a.b", "a" 순으로 찾고 모두 없으면 루트 레벨이다.
        """
        with self._lock:
            name = metric_name
            while name:
                level = self._levels.get(name)
                if level is not None:
                    return level
                name = name.rpartition(".")[0]
            return self._root_level

    def is_enabled(self, metric_name: str, metric_level: Level) -> bool:
        """
        해당 레벨의 메트릭을 수집해야 하는지 판단한다.

        Args:
            metric_name: 메트릭 이름
            metric_level: 메트릭이 선언한 레벨

        Returns:
            전체 비활성화이거나 적용 레벨이 OFF 이면 False,
            그 외에는 metric_level 이 적용 레벨 이하일 때 True
        """
        with self._lock:
            if not self._enabled:
                return False
            effective = self.effective_level(metric_name)

        if effective is OFF:
            return False
        return metric_level <= effective

    def load(self, config: ConfigManager):
        """
        ConfigManager 의 metrics 섹션을 읽어 설정을 교체한다.

        잘못된 레벨 문자열은 중단하지 않고 기본값(루트는 DEBUG, 메트릭별은 루트 레벨)으로 대체한다.
        """
        enabled = config.get("metrics.enabled", True)
        root_name = config.get("metrics.level")
        overrides: Any = config.get("metrics.levels") or {}
        if not isinstance(overrides, dict):
            logger.warning(f"metrics.levels must be a mapping, got {overrides!r}; ignoring per-metric levels")
            overrides = {}

        root_level = INFO if root_name is None else self._parse(root_name, "metrics.level", None)

        levels = {}
        for metric_name, level_name in overrides.items():
            levels[str(metric_name)] = self._parse(level_name, f"metrics.levels.{metric_name}", root_level)

        with self._lock:
            self._enabled = bool(enabled)
            self._root_level = root_level
            self._levels = levels

        logger.info(f"Metric levels loaded: enabled={self._enabled}, root={root_level}, overrides={len(levels)}")

    def bind(self, config: ConfigManager):
        """설정을 한 번 로드하고, 이후 설정이 바뀔 때마다 다시 로드한다."""
        self.load(config)
        config.on_change(lambda _: self.load(config))

    def snapshot(self) -> dict[str, str]:
        """메트릭 이름 -> 레벨 이름 (루트는 빈 문자열 키)"""
        with self._lock:
            result = {"": self._root_level.name}
            result.update({name: level.name for name, level in sorted(self._levels.items())})
            return result

    @staticmethod
    def _resolve(level: Level | str, default_level: Level) -> Level:
        if isinstance(level, Level):
            return level
        return to_level(level, default_level)

    @staticmethod
    def _parse(value: Any, key: str, default_level: Level | None) -> Level:
        if value is False:
            value = OFF.name
        level = to_level(value if isinstance(value, str) else None, default_level)
        if not isinstance(value, str) or level.name != value.upper():
            logger.warning(f"Unrecognized metric level {value!r} for {key}, using {level}")
        return level
