from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ConfigSource(Enum):
    """
    설정 값의 출처

    Attributes:
        FILE: 설정 파일 (YAML, JSON)
        ENVIRONMENT: 환경 변수
        DEFAULT: 스키마 기본값 또는 런타임 지정 값
    """

    FILE = "file"
    ENVIRONMENT = "environment"
    DEFAULT = "default"


@dataclass
class ConfigValue(Generic[T]):
    value: T
    source: ConfigSource
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    def __repr__(self):
        return f"ConfigValue({self.value!r}, {self.source!r}, {self.updated_at!r})"


class ConfigValidationError(Exception):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Config validation failed: {', '.join(errors)}")


@dataclass
class _Rule:
    value_type: type | tuple[type, ...]
    required: bool
    default: Any = None
    min_value: Any = None
    max_value: Any = None
    choices: list | None = None


class ConfigSchema:
    """
    설정 키의 구조와 검증 규칙을 정의한다.

    Example:
        schema = ConfigSchema()
        schema.optional("metrics.enabled", bool, default=True)
        schema.optional("metrics.level", str, default="INFO")
        schema.optional("metrics.levels", dict)
    """

    def __init__(self):
        self._rules: dict[str, _Rule] = {}

    def require(
        self,
        key: str,
        value_type: type | tuple[type, ...],
        min_value: Any | None = None,
        max_value: Any | None = None,
        choices: list | None = None,
    ):
        """필수 키를 등록한다."""
        self._rules[key] = _Rule(value_type, True, min_value=min_value, max_value=max_value, choices=choices)

    def optional(
        self,
        key: str,
        value_type: type | tuple[type, ...],
        default: Any = None,
        min_value: Any | None = None,
        max_value: Any | None = None,
        choices: list | None = None,
    ):
        """기본값을 가지는 선택 키를 등록한다."""
        self._rules[key] = _Rule(
            value_type, False, default=default, min_value=min_value, max_value=max_value, choices=choices
        )

    @property
    def keys(self) -> list[str]:
        return list(self._rules)

    def validate(self, config: dict[str, Any]) -> list[str]:
        """
        설정을 스키마에 맞춰 검증한다.

        Returns:
            에러 메시지 리스트 (유효하면 빈 리스트)
        """
        errors = []

        for key, rule in self._rules.items():
            value = self._get_nested(config, key)

            if value is None:
                if rule.required:
                    errors.append(f"Missing required config: {key}")
                continue

            errors.extend(self._validate_value(key, value, rule))

        return errors

    def apply_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """누락된 선택 키에 기본값을 채운 사본을 반환한다."""
        result = dict(config)

        for key, rule in self._rules.items():
            if rule.required or rule.default is None:
                continue
            if self._get_nested(result, key) is None:
                self._set_nested(result, key, rule.default)

        return result

    @staticmethod
    def _validate_value(key: str, value: Any, rule: _Rule) -> list[str]:
        # bool 은 int 의 하위 타입이므로 int 규칙에서는 따로 걸러낸다
        if not isinstance(value, rule.value_type) or (rule.value_type is int and isinstance(value, bool)):
            types = rule.value_type if isinstance(rule.value_type, tuple) else (rule.value_type,)
            expected = " or ".join(t.__name__ for t in types)
            return [f"{key}: expected {expected}, got {type(value).__name__}"]

        errors = []
        if rule.min_value is not None and value < rule.min_value:
            errors.append(f"{key}: value {value} below minimum {rule.min_value}")
        if rule.max_value is not None and value > rule.max_value:
            errors.append(f"{key}: value {value} above maximum {rule.max_value}")
        if rule.choices and value not in rule.choices:
            errors.append(f"{key}: value {value} not in {rule.choices}")

        return errors

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
            current[part] = dict(current.get(part) or {})
            current = current[part]
        current[parts[-1]] = value
