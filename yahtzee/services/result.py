"""Result pipeline - success XOR failure values chained without exceptions.

Every expected failure (unknown id, wrong player, exhausted rerolls, ...) is
carried as an ``Err`` holding one of the ``GameError`` kinds below. Callers
chain steps with ``map`` / ``flat_map`` / ``filter`` and consume the outcome
once with ``resolve``:

    loaded = await store.get_game(game_id)
    authorized = loaded.filter(
        lambda game: game.current_player == player,
        lambda game: Forbidden(player=player),
    )
    status = authorized.resolve(lambda game: 200, lambda error: 403)

Exceptions are reserved for programming errors, e.g. ``unwrap()`` on an ``Err``.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class GameError:
    """Base class for every expected failure kind."""

    code: ClassVar[str] = "GAME_ERROR"

    @property
    def message(self) -> str:
        return self.code.replace("_", " ").capitalize()


@dataclass(frozen=True)
class NotFound(GameError):
    """The store has no record under ``key``."""

    code: ClassVar[str] = "NOT_FOUND"
    key: str

    @property
    def message(self) -> str:
        return f"No game with id '{self.key}'"


@dataclass(frozen=True)
class Forbidden(GameError):
    """Action attempted by a player who is not in turn."""

    code: ClassVar[str] = "FORBIDDEN"
    player: str

    @property
    def message(self) -> str:
        return f"It is not {self.player}'s turn"


@dataclass(frozen=True)
class NoRerollsLeft(GameError):
    code: ClassVar[str] = "NO_REROLLS_LEFT"

    @property
    def message(self) -> str:
        return "No rerolls left this turn"


@dataclass(frozen=True)
class AlreadyRegistered(GameError):
    code: ClassVar[str] = "ALREADY_REGISTERED"
    category: str

    @property
    def message(self) -> str:
        return f"Category '{self.category}' is already registered"


@dataclass(frozen=True)
class WrongPlayerCount(GameError):
    code: ClassVar[str] = "WRONG_PLAYER_COUNT"
    expected: int
    actual: int

    @property
    def message(self) -> str:
        return f"Wrong number of players: expected {self.expected}, got {self.actual}"


@dataclass(frozen=True)
class StoreError(GameError):
    """Underlying persistence failure."""

    code: ClassVar[str] = "STORE_ERROR"
    cause: str

    @property
    def message(self) -> str:
        return f"Store failure: {self.cause}"


class UnwrapError(Exception):
    """Raised when a caller unwraps an Err - always a programming error."""


@dataclass(frozen=True)
class Ok[T]:
    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def map[U](self, f: Callable[[T], U]) -> "Ok[U]":
        return Ok(f(self.value))

    def flat_map[R](self, f: Callable[[T], R]) -> R:
        return f(self.value)

    def filter(
        self,
        predicate: Callable[[T], bool],
        error_fn: Callable[[T], GameError],
    ) -> "Result[T]":
        if predicate(self.value):
            return self
        return Err(error_fn(self.value))

    def resolve[U](
        self,
        on_success: Callable[[T], U],
        on_error: Callable[[GameError], U],
    ) -> U:
        return on_success(self.value)

    async def map_async[U](self, f: Callable[[T], Awaitable[U]]) -> "Ok[U]":
        return Ok(await f(self.value))

    async def flat_map_async[U](
        self, f: Callable[[T], Awaitable["Result[U]"]]
    ) -> "Result[U]":
        return await f(self.value)


@dataclass(frozen=True)
class Err:
    error: GameError

    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise UnwrapError(f"Called unwrap on an error result: {self.error!r}")

    def map(self, f: Callable[[Any], Any]) -> "Err":
        return self

    def flat_map(self, f: Callable[[Any], Any]) -> "Err":
        return self

    def filter(
        self,
        predicate: Callable[[Any], bool],
        error_fn: Callable[[Any], GameError],
    ) -> "Err":
        return self

    def resolve[U](
        self,
        on_success: Callable[[Any], U],
        on_error: Callable[[GameError], U],
    ) -> U:
        return on_error(self.error)

    async def map_async(self, f: Callable[[Any], Awaitable[Any]]) -> "Err":
        return self

    async def flat_map_async(self, f: Callable[[Any], Awaitable[Any]]) -> "Err":
        return self


type Result[T] = Ok[T] | Err


def ok[T](value: T) -> Ok[T]:
    return Ok(value)


def err(error: GameError) -> Err:
    return Err(error)
