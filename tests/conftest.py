"""Shared fixtures for game engine, store and coordinator tests."""

import pytest

from yahtzee.schemas.game_engine import (
    ActiveGame,
    Category,
    GameState,
    PendingGame,
    Scorecard,
)
from yahtzee.services.store import MemoryStore

# Fixed names for deterministic testing
ALICE = "Alice"
BOB = "Bob"
CAROL = "Carol"
DAVE = "Dave"


class FixedRandomizer:
    """Replays scripted values, then answers 0 forever.

    With 0 every die shows 1 and a shuffle keeps the input order.
    """

    def __init__(self, *values: int):
        self._values = list(values)
        self.calls: list[int] = []

    def next(self, n: int) -> int:
        self.calls.append(n)
        if not self._values:
            return 0
        value = self._values.pop(0)
        assert 0 <= value < n, f"scripted value {value} out of range for next({n})"
        return value


class RecordingBroadcaster:
    """Broadcaster that remembers every game it was sent."""

    def __init__(self):
        self.sent: list[PendingGame | ActiveGame] = []

    async def send(self, game: PendingGame | ActiveGame) -> None:
        self.sent.append(game)


class FakeRedis:
    """In-memory stand-in for the Upstash async client's hash commands."""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.fail_on: set[str] = set()

    def _check(self, command: str) -> None:
        if command in self.fail_on:
            raise ConnectionError(f"{command} unavailable")

    async def hget(self, key: str, field: str) -> str | None:
        self._check("hget")
        return self.hashes.get(key, {}).get(field)

    async def hset(self, key: str, field: str, value: str) -> int:
        self._check("hset")
        fields = self.hashes.setdefault(key, {})
        added = 0 if field in fields else 1
        fields[field] = value
        return added

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check("hgetall")
        return dict(self.hashes.get(key, {}))

    async def hexists(self, key: str, field: str) -> bool:
        self._check("hexists")
        return field in self.hashes.get(key, {})

    async def hdel(self, key: str, *fields: str) -> int:
        self._check("hdel")
        stored = self.hashes.get(key, {})
        return sum(1 for field in fields if stored.pop(field, None) is not None)


def create_scorecard(**scores: int) -> Scorecard:
    """Helper to create a scorecard with the given categories set."""
    card = Scorecard()
    return Scorecard(
        scores={**card.scores, **{Category(name): value for name, value in scores.items()}}
    )


def full_scorecard(value: int = 0) -> Scorecard:
    """Scorecard with every category set to ``value``."""
    return Scorecard(scores={category: value for category in Category})


def create_active_game(
    game_id: str = "1",
    players: list[str] | None = None,
    roll: list[int] | None = None,
    player_in_turn: int = 0,
    rolls_left: int = 2,
    scores: list[Scorecard] | None = None,
) -> ActiveGame:
    """Helper to create an active game."""
    players = players or [ALICE, BOB]
    return ActiveGame(
        id=game_id,
        players=players,
        scores=scores or [Scorecard() for _ in players],
        player_in_turn=player_in_turn,
        roll=roll or [1, 2, 3, 4, 5],
        rolls_left=rolls_left,
    )


@pytest.fixture
def two_player_game() -> GameState:
    """Alice in turn with [2, 2, 3, 5, 5] and both rerolls left."""
    return GameState(
        players=[ALICE, BOB],
        scores=[Scorecard(), Scorecard()],
        player_in_turn=0,
        roll=[2, 2, 3, 5, 5],
        rolls_left=2,
    )


@pytest.fixture
def randomizer() -> FixedRandomizer:
    return FixedRandomizer()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
