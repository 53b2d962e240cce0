import logging
import sys
import threading
from dataclasses import dataclass

from .errors import InvalidLevelArgumentError, LevelAlreadyRegisteredError, NullLevelNameError, UnknownLevelError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Level:
    """
    메트릭 수집 여부를 결정하는 심각도 레벨.

    레벨은 가장 구체적인 것부터 순서대로 정렬된다:
    OFF (메트릭 없음) < INFO < DEBUG < TRACE (많은 데이터) < ALL (모든 데이터)

    동등성은 식별자 기준이다. 같은 이름으로 등록된 동일 인스턴스만 같은 레벨로 취급한다.
    인스턴스는 직접 생성하지 말고 register() 로 등록해서 사용한다.

    Attributes:
        name: 레벨의 정식 이름 (대소문자 구분, 관례상 대문자)
        rank: 레벨 간 순서를 결정하는 0 이상의 정수
    """

    name: str
    rank: int

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise InvalidLevelArgumentError(reason="Illegal null Level constant")
        if isinstance(self.rank, bool) or not isinstance(self.rank, int):
            raise InvalidLevelArgumentError(reason=f"Level rank must be an int, got {type(self.rank).__name__}")
        if self.rank < 0:
            raise InvalidLevelArgumentError(reason="Illegal Level int less than zero.")

    def compare_to(self, other: "Level") -> int:
        """rank 기준으로 비교하여 -1, 0, 1 을 반환한다."""
        return (self.rank > other.rank) - (self.rank < other.rank)

    def __eq__(self, other: object) -> bool:
        return other is self

    def __hash__(self) -> int:
        return hash(self.name)

    # 레벨마다 인스턴스는 하나뿐이다
    def __copy__(self) -> "Level":
        return self

    def __deepcopy__(self, memo: dict) -> "Level":
        return self

    def __reduce__(self):
        # 언피클 시 레지스트리에 등록된 인스턴스로 복원한다
        return (_registered, (self.name,))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Level):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Level({self.name!r}, {self.rank!r})"


class LevelRegistry:
    """
    이름으로 레벨을 관리하는 레지스트리.

    쓰기(등록)는 초기화 시점에만 일어나므로 락으로 직렬화하고,
    읽기는 락 없이 dict 조회로 처리한다.
    """

    def __init__(self):
        self._levels: dict[str, Level] = {}
        self._lock = threading.Lock()

    def register(self, name: str, rank: int) -> Level:
        """
        새 레벨을 생성하여 등록한다.

        Args:
            name: 레벨 이름
            rank: 레벨 순위 (0 이상)

        Returns:
            등록된 Level 인스턴스

        Raises:
            InvalidLevelArgumentError: 이름이 비어 있거나 rank 가 음수인 경우
            LevelAlreadyRegisteredError: 같은 이름이 이미 등록된 경우
        """
        level = Level(name, rank)

        with self._lock:
            if name in self._levels:
                raise LevelAlreadyRegisteredError(level_name=name)
            self._levels[name] = level

        logger.debug(f"Registered metric level {name}({rank})")
        return level

    def get_level(self, name: str | None) -> Level | None:
        """이름과 정확히 일치하는 레벨을 반환한다. 없으면 None."""
        if not isinstance(name, str):
            return None
        return self._levels.get(name)

    def to_level(self, name: str | None, default_level: Level | None = None) -> Level:
        """
        문자열을 레벨로 변환한다. 변환에 실패하면 default_level 을 반환한다.

        사용자 설정 값을 파싱하는 용도이므로 대소문자를 구분하지 않는다.
        default_level 을 생략하면 DEBUG 를 사용한다.
        """
        if default_level is None:
            default_level = DEBUG
        if not isinstance(name, str):
            return default_level

        level = self._levels.get(name.upper())
        return default_level if level is None else level

    def value_of(self, name: str | None) -> Level:
        """
        이름에 해당하는 레벨을 반환한다.

        Raises:
            NullLevelNameError: name 이 None 인 경우
            UnknownLevelError: 문자열이 아니거나 대문자로 변환한 이름이 등록되어 있지 않은 경우
        """
        if name is None:
            raise NullLevelNameError()
        if not isinstance(name, str):
            raise UnknownLevelError(level_name=name)

        level_name = name.upper()
        level = self._levels.get(level_name)
        if level is None:
            raise UnknownLevelError(level_name=level_name)
        return level

    def levels(self) -> list[Level]:
        """등록된 레벨을 rank 순으로 정렬한 스냅샷"""
        return sorted(self._levels.values(), key=lambda level: level.rank)


_registry = LevelRegistry()


def register(name: str, rank: int) -> Level:
    return _registry.register(name, rank)


def get_level(name: str | None) -> Level | None:
    return _registry.get_level(name)


def to_level(name: str | None, default_level: Level | None = None) -> Level:
    return _registry.to_level(name, default_level)


def value_of(name: str | None) -> Level:
    return _registry.value_of(name)


def levels() -> list[Level]:
    return _registry.levels()


def compare(a: Level, b: Level) -> int:
    return a.compare_to(b)


def _registered(name: str) -> Level:
    level = _registry.get_level(name)
    if level is None:
        raise UnknownLevelError(level_name=name)
    return level


# 메트릭을 사용하지 않음
OFF = register("OFF", 0)
# 정보성 메트릭
INFO = register("INFO", 400)
# 일반적인 디버깅 메트릭
DEBUG = register("DEBUG", 500)
# 세밀한 메트릭
TRACE = register("TRACE", 600)
# 모든 메트릭 사용
ALL = register("ALL", sys.maxsize)
