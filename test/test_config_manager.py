import json
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from src.config.config_core import ConfigSchema, ConfigSource, ConfigValidationError, ConfigValue
from src.config.config_manager import ConfigManager


@pytest.fixture
def manager():
    """기본 ConfigManager 인스턴스를 생성하고, 테스트 후 정리한다."""
    cm = ConfigManager()
    yield cm
    cm.close()


@pytest.fixture
def schema():
    """테스트용 ConfigSchema 를 생성한다."""
    s = ConfigSchema()
    s.require("metrics.level", str)
    s.optional("metrics.enabled", bool, default=True)
    return s


@pytest.fixture
def manager_with_schema(schema):
    """스키마가 설정된 ConfigManager 인스턴스를 생성한다."""
    cm = ConfigManager(schema=schema)
    yield cm
    cm.close()


@pytest.fixture
def yaml_file(tmp_path: Path) -> Path:
    """테스트용 YAML 설정 파일을 생성한다."""
    f = tmp_path / "metrics.yaml"
    f.write_text(yaml.dump({"metrics": {"level": "INFO", "levels": {"jvm": "DEBUG"}}}), encoding="utf-8")
    return f


@pytest.fixture
def json_file(tmp_path: Path) -> Path:
    """테스트용 JSON 설정 파일을 생성한다."""
    f = tmp_path / "metrics.json"
    f.write_text(json.dumps({"metrics": {"level": "TRACE"}}), encoding="utf-8")
    return f


class TestLoadFile:
    def test_load_yaml_file(self, manager: ConfigManager, yaml_file: Path):
        """YAML 파일을 로드할 수 있다."""
        manager.load_file(str(yaml_file), watch=False)

        assert manager.get("metrics.level") == "INFO"
        assert manager.get("metrics.levels") == {"jvm": "DEBUG"}

    def test_load_json_file(self, manager: ConfigManager, json_file: Path):
        """JSON 파일을 로드할 수 있다."""
        manager.load_file(str(json_file), watch=False)

        assert manager.get("metrics.level") == "TRACE"

    def test_later_file_wins(self, manager: ConfigManager, yaml_file: Path, json_file: Path):
        """나중에 로드한 파일의 값이 우선하고 나머지는 병합된다."""
        manager.load_file(str(yaml_file), watch=False)
        manager.load_file(str(json_file), watch=False)

        assert manager.get("metrics.level") == "TRACE"
        assert manager.get("metrics.levels.jvm") == "DEBUG"

    def test_missing_required_file_raises_error(self, manager: ConfigManager, tmp_path: Path):
        """required=True 일 때 파일이 없으면 FileNotFoundError 가 발생한다."""
        with pytest.raises(FileNotFoundError):
            manager.load_file(str(tmp_path / "missing.yaml"))

    def test_missing_optional_file_no_error(self, manager: ConfigManager, tmp_path: Path):
        """required=False 일 때 파일이 없어도 에러가 발생하지 않는다."""
        manager.load_file(str(tmp_path / "missing.yaml"), required=False)

        assert manager.get_all() == {}

    def test_unsupported_format_raises_error(self, manager: ConfigManager, tmp_path: Path):
        """지원하지 않는 파일 형식은 ValueError 가 발생한다."""
        f = tmp_path / "metrics.ini"
        f.write_text("level=INFO")

        with pytest.raises(ValueError, match="Unsupported"):
            manager.load_file(str(f), watch=False)

    def test_values_wrapped_with_file_source(self, manager: ConfigManager, yaml_file: Path):
        """파일에서 로드한 값은 FILE 소스로 래핑된다."""
        manager.load_file(str(yaml_file), watch=False)

        cv = manager.get_with_source("metrics.level")

        assert isinstance(cv, ConfigValue)
        assert cv.source == ConfigSource.FILE

    def test_watch_registers_file(self, manager: ConfigManager, yaml_file: Path):
        """watch=True 이면 파일 감시가 등록된다."""
        manager.load_file(str(yaml_file), watch=True)

        assert yaml_file.resolve() in manager._watcher._watched_files


class TestLoadEnv:
    def test_load_with_mapping(self, manager: ConfigManager):
        """매핑을 사용하여 환경변수를 로드할 수 있다."""
        with patch.dict(os.environ, {"METRICS_LEVEL": "DEBUG"}):
            manager.load_env(mapping={"METRICS_LEVEL": "metrics.level"})

        assert manager.get("metrics.level") == "DEBUG"

    def test_prefix_converts_to_dot_notation(self, manager: ConfigManager):
        """접두사 방식에서 밑줄이 dot notation 으로 변환된다."""
        with patch.dict(os.environ, {"APP_METRICS_LEVEL": "TRACE"}):
            manager.load_env(prefix="APP_")

        assert manager.get("metrics.level") == "TRACE"

    @pytest.mark.parametrize("raw, expected", [("true", True), ("400", 400), ("INFO", "INFO"), ("", "")])
    def test_value_coercion(self, manager: ConfigManager, raw: str, expected):
        """환경변수 값은 YAML 스칼라 규칙으로 변환된다."""
        with patch.dict(os.environ, {"METRICS_VALUE": raw}):
            manager.load_env(mapping={"METRICS_VALUE": "metrics.value"})

        assert manager.get("metrics.value") == expected

    def test_invalid_yaml_kept_as_string(self, manager: ConfigManager):
        """YAML 로 해석할 수 없는 값은 문자열로 유지된다."""
        with patch.dict(os.environ, {"METRICS_VALUE": "[unclosed"}):
            manager.load_env(mapping={"METRICS_VALUE": "metrics.value"})

        assert manager.get("metrics.value") == "[unclosed"

    def test_env_values_have_environment_source(self, manager: ConfigManager):
        """환경변수에서 로드한 값은 ENVIRONMENT 소스로 래핑된다."""
        with patch.dict(os.environ, {"METRICS_LEVEL": "ALL"}):
            manager.load_env(mapping={"METRICS_LEVEL": "metrics.level"})

        assert manager.get_with_source("metrics.level").source == ConfigSource.ENVIRONMENT

    def test_missing_env_var_skipped(self, manager: ConfigManager):
        """존재하지 않는 환경변수는 무시된다."""
        with patch.dict(os.environ, {}):
            os.environ.pop("NONEXISTENT_LEVEL", None)
            manager.load_env(mapping={"NONEXISTENT_LEVEL": "metrics.level"})

        assert manager.get("metrics.level") is None


class TestGetSet:
    def test_get_missing_key_returns_default(self, manager: ConfigManager):
        """존재하지 않는 키는 default 를 반환한다."""
        assert manager.get("metrics.level", "INFO") == "INFO"

    def test_set_nested_key(self, manager: ConfigManager):
        """중첩 키를 설정할 수 있다."""
        manager.set("metrics.levels.jvm", "TRACE")

        assert manager.get("metrics") == {"levels": {"jvm": "TRACE"}}

    def test_set_default_source(self, manager: ConfigManager):
        """기본 소스는 DEFAULT 이다."""
        manager.set("metrics.level", "INFO")

        assert manager.get_with_source("metrics.level").source == ConfigSource.DEFAULT

    def test_get_all_returns_copy(self, manager: ConfigManager):
        """get_all 결과를 수정해도 내부 설정은 바뀌지 않는다."""
        manager.set("metrics.level", "INFO")

        snapshot = manager.get_all()
        snapshot["metrics"]["level"] = "ALL"

        assert manager.get("metrics.level") == "INFO"


class TestOnChange:
    def test_callback_called_on_set(self, manager: ConfigManager):
        """set 호출 시 콜백이 전체 설정과 함께 호출된다."""
        callback = MagicMock()
        manager.on_change(callback)

        manager.set("metrics.level", "DEBUG")

        callback.assert_called_once_with({"metrics": {"level": "DEBUG"}})

    def test_callback_error_does_not_propagate(self, manager: ConfigManager):
        """콜백 예외는 전파되지 않고 다음 콜백이 호출된다."""
        failing = MagicMock(side_effect=RuntimeError("boom"))
        following = MagicMock()
        manager.on_change(failing)
        manager.on_change(following)

        manager.set("metrics.level", "DEBUG")

        following.assert_called_once()


class TestValidate:
    def test_without_schema_is_valid(self, manager: ConfigManager):
        """스키마가 없으면 항상 유효하다."""
        assert manager.validate() is True

    def test_valid_config(self, manager_with_schema: ConfigManager):
        """유효한 설정은 True 를 반환한다."""
        manager_with_schema.set("metrics.level", "INFO")

        assert manager_with_schema.validate() is True

    def test_invalid_config_raises_error(self, manager_with_schema: ConfigManager):
        """유효하지 않은 설정은 ConfigValidationError 가 발생한다."""
        with pytest.raises(ConfigValidationError, match="metrics.level"):
            manager_with_schema.validate()


class TestApplyDefaults:
    def test_fills_missing_defaults(self, manager_with_schema: ConfigManager):
        """누락된 키에 DEFAULT 소스의 기본값을 채운다."""
        manager_with_schema.apply_defaults()

        cv = manager_with_schema.get_with_source("metrics.enabled")
        assert cv.value is True
        assert cv.source == ConfigSource.DEFAULT

    def test_keeps_existing_source(self, manager_with_schema: ConfigManager, yaml_file: Path):
        """이미 있는 값의 소스는 유지된다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        manager_with_schema.apply_defaults()

        assert manager_with_schema.get_with_source("metrics.level").source == ConfigSource.FILE


class TestReload:
    def test_reload_reads_file_again(self, manager_with_schema: ConfigManager, yaml_file: Path):
        """reload 시 파일의 변경 내용이 반영된다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        yaml_file.write_text(yaml.dump({"metrics": {"level": "TRACE"}}), encoding="utf-8")

        manager_with_schema.reload()

        assert manager_with_schema.get("metrics.level") == "TRACE"
        assert manager_with_schema.get("metrics.levels") is None
        assert manager_with_schema.get("metrics.enabled") is True

    def test_reload_keeps_env_overrides(self, manager_with_schema: ConfigManager, yaml_file: Path):
        """reload 후에도 환경변수 값이 우선한다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        with patch.dict(os.environ, {"METRICS_LEVEL": "ALL"}):
            manager_with_schema.load_env(mapping={"METRICS_LEVEL": "metrics.level"})

        manager_with_schema.reload()

        assert manager_with_schema.get("metrics.level") == "ALL"

    def test_reload_notifies_callbacks(self, manager: ConfigManager, yaml_file: Path):
        """reload 시 변경 콜백이 호출된다."""
        manager.load_file(str(yaml_file), watch=False)
        callback = MagicMock()
        manager.on_change(callback)

        manager.reload()

        callback.assert_called_once()

    def test_reload_invalid_raises_error(self, manager_with_schema: ConfigManager, yaml_file: Path):
        """reload 결과가 스키마에 맞지 않으면 ConfigValidationError 가 발생한다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        yaml_file.write_text(yaml.dump({"metrics": {"enabled": "sometimes"}}), encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            manager_with_schema.reload()

    def test_reload_invalid_keeps_previous_config(self, manager_with_schema: ConfigManager, yaml_file: Path):
        """reload 가 검증에 실패하면 기존 설정이 유지되고 콜백도 호출되지 않는다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        callback = MagicMock()
        manager_with_schema.on_change(callback)
        yaml_file.write_text(yaml.dump({"metrics": {"enabled": "sometimes"}}), encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            manager_with_schema.reload()

        assert manager_with_schema.get("metrics.level") == "INFO"
        assert manager_with_schema.get("metrics.levels") == {"jvm": "DEBUG"}
        assert manager_with_schema.get("metrics.enabled") is None
        callback.assert_not_called()

    def test_file_change_failure_keeps_previous_config(
        self, manager_with_schema: ConfigManager, yaml_file: Path, caplog
    ):
        """파일 변경으로 인한 reload 실패 시 로그를 남기고 기존 설정을 유지한다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        yaml_file.write_text(yaml.dump({"other": 1}), encoding="utf-8")

        manager_with_schema._on_file_changed(yaml_file)

        assert "Failed to reload config" in caplog.text
        assert manager_with_schema.get("metrics.level") == "INFO"
        assert manager_with_schema.get("other") is None

    def test_file_change_failure_is_logged(self, manager_with_schema: ConfigManager, yaml_file: Path, caplog):
        """파일 변경으로 인한 reload 실패는 로그로 남는다."""
        manager_with_schema.load_file(str(yaml_file), watch=False)
        yaml_file.write_text(yaml.dump({"other": 1}), encoding="utf-8")

        manager_with_schema._on_file_changed(yaml_file)

        assert "Failed to reload config" in caplog.text
