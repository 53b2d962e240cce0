from typing import Any

__all__ = [
    "LevelBaseError",
    "InvalidLevelArgumentError",
    "LevelAlreadyRegisteredError",
    "NullLevelNameError",
    "UnknownLevelError",
]


class LevelBaseError(Exception):
    name: str
    msg: str

    def __init__(self, **ctx: Any) -> None:
        self.__dict__ = ctx

    def __str__(self) -> str:
        return self.msg.format(**self.__dict__)


class InvalidLevelArgumentError(LevelBaseError, ValueError):
    """이름이 비어 있거나 rank 가 음수일 때 발생"""

    name = "invalid_argument"
    msg = "Illegal level argument: {reason}"


class LevelAlreadyRegisteredError(LevelBaseError):
    """같은 이름의 레벨을 두 번 등록하려 할 때 발생 (초기화 단계의 치명적 오류)"""

    name = "already_registered"
    msg = "Level {level_name} has already been defined."


class NullLevelNameError(LevelBaseError, TypeError):
    name = "null_name"
    msg = "No level name given."


class UnknownLevelError(LevelBaseError, ValueError):
    name = "unknown_level"
    msg = "Unknown level constant [{level_name}]."
