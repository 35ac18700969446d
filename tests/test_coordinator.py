"""Tests for the session coordinator.

Critical scenarios tested:
- Pending game starts once the last seat is taken
- Only the player in turn can act, and a rejected action changes nothing
- Store failures surface as StoreError and leave no half-applied state
- Every committed mutation is broadcast exactly once
- Concurrent actions on one game are applied one at a time
"""

import asyncio
import contextlib
import logging

import pytest

from yahtzee.schemas.game_engine import ActiveGame, Category, NewPendingGame, PendingGame
from yahtzee.services.game.engine import RegisterAction, RerollAction
from yahtzee.services.result import (
    AlreadyRegistered,
    Err,
    Forbidden,
    NoRerollsLeft,
    NotFound,
    Result,
    StoreError,
    WrongPlayerCount,
    err,
)
from yahtzee.services.session import SessionCoordinator
from yahtzee.services.store import MemoryStore

from .conftest import (
    ALICE,
    BOB,
    CAROL,
    FixedRandomizer,
    RecordingBroadcaster,
    create_active_game,
)


class FlakyStore(MemoryStore):
    """MemoryStore whose named operations fail with StoreError."""

    def __init__(self, *games: ActiveGame, failing: set[str] | None = None):
        super().__init__(*games)
        self.failing = failing or set()

    def _fail(self, operation: str) -> Result:
        return err(StoreError(cause=f"{operation} unavailable"))

    async def replace_game(self, game):
        if "replace_game" in self.failing:
            return self._fail("replace_game")
        return await super().replace_game(game)

    async def delete_pending(self, pending_id):
        if "delete_pending" in self.failing:
            return self._fail("delete_pending")
        return await super().delete_pending(pending_id)

    async def add_game(self, game):
        if "add_game" in self.failing:
            return self._fail("add_game")
        return await super().add_game(game)

    async def delete_game(self, game_id):
        if "delete_game" in self.failing:
            return self._fail("delete_game")
        return await super().delete_game(game_id)


class YieldingStore(MemoryStore):
    """MemoryStore that suspends after every load, so concurrent tasks interleave."""

    async def get_game(self, game_id):
        loaded = await super().get_game(game_id)
        await asyncio.sleep(0)
        return loaded


class ExplodingBroadcaster:
    async def send(self, game):
        raise RuntimeError("socket gone")


def make_coordinator(store=None, broadcaster=None, randomizer=None) -> SessionCoordinator:
    return SessionCoordinator(
        store=store if store is not None else MemoryStore(),
        broadcaster=broadcaster if broadcaster is not None else RecordingBroadcaster(),
        randomizer=randomizer or FixedRandomizer(),
    )


class TestCreateAndJoin:
    """Test the pending-game lifecycle."""

    @pytest.mark.asyncio
    async def test_create_seats_creator(self, broadcaster: RecordingBroadcaster):
        coordinator = make_coordinator(broadcaster=broadcaster)
        pending = (await coordinator.create(ALICE, 2)).unwrap()

        assert isinstance(pending, PendingGame)
        assert pending.creator == ALICE
        assert pending.players == [ALICE]
        assert broadcaster.sent == [pending]

    @pytest.mark.asyncio
    async def test_last_join_starts_game(self, broadcaster: RecordingBroadcaster):
        coordinator = make_coordinator(broadcaster=broadcaster)
        pending = (await coordinator.create(ALICE, 2)).unwrap()

        game = (await coordinator.join(pending.id, BOB)).unwrap()

        assert isinstance(game, ActiveGame)
        assert game.id == pending.id
        assert game.players == [ALICE, BOB]
        assert game.roll == [1, 1, 1, 1, 1]
        assert game.rolls_left == 2
        assert (await coordinator.get_pending(pending.id)).error == NotFound(key=pending.id)
        assert (await coordinator.get_game(pending.id)).unwrap() == game
        assert broadcaster.sent[-1] == game

    @pytest.mark.asyncio
    async def test_join_below_capacity_stays_pending(self):
        coordinator = make_coordinator()
        pending = (await coordinator.create(ALICE, 3)).unwrap()

        joined = (await coordinator.join(pending.id, BOB)).unwrap()

        assert isinstance(joined, PendingGame)
        assert joined.players == [ALICE, BOB]
        assert (await coordinator.list_pending()).unwrap() == [joined]
        assert (await coordinator.list_games()).unwrap() == []

    @pytest.mark.asyncio
    async def test_single_player_game_starts_immediately(self):
        coordinator = make_coordinator()
        game = (await coordinator.create(ALICE, 1)).unwrap()

        assert isinstance(game, ActiveGame)
        assert game.players == [ALICE]
        assert (await coordinator.list_pending()).unwrap() == []

    @pytest.mark.asyncio
    async def test_create_rejects_empty_table(self, broadcaster: RecordingBroadcaster):
        coordinator = make_coordinator(broadcaster=broadcaster)
        result = await coordinator.create(ALICE, 0)

        assert isinstance(result.error, WrongPlayerCount)
        assert broadcaster.sent == []

    @pytest.mark.asyncio
    async def test_join_full_pending_game(self):
        store = MemoryStore()
        full = (
            await store.add_pending(
                NewPendingGame(creator=ALICE, number_of_players=2, players=[ALICE, BOB])
            )
        ).unwrap()
        coordinator = make_coordinator(store=store)

        result = await coordinator.join(full.id, CAROL)
        assert result.error == WrongPlayerCount(expected=2, actual=3)

    @pytest.mark.asyncio
    async def test_join_unknown_game(self):
        coordinator = make_coordinator()
        result = await coordinator.join("404", BOB)
        assert result.error == NotFound(key="404")


class TestActions:
    """Test player actions on active games."""

    @pytest.mark.asyncio
    async def test_reroll_by_player_in_turn(self, broadcaster: RecordingBroadcaster):
        store = MemoryStore(create_active_game(roll=[6, 6, 6, 2, 3]))
        coordinator = make_coordinator(store, broadcaster, FixedRandomizer(5, 5))

        game = (await coordinator.reroll("1", [0, 1, 2], ALICE)).unwrap()

        assert game.roll == [6, 6, 6, 6, 6]
        assert game.rolls_left == 1
        assert (await store.get_game("1")).unwrap() == game
        assert broadcaster.sent == [game]

    @pytest.mark.asyncio
    async def test_wrong_player_changes_nothing(self, broadcaster: RecordingBroadcaster):
        before = create_active_game()
        store = MemoryStore(before)
        coordinator = make_coordinator(store, broadcaster)

        result = await coordinator.register("1", Category.CHANCE, BOB)

        assert result.error == Forbidden(player=BOB)
        assert (await store.get_game("1")).unwrap() == before
        assert broadcaster.sent == []

    @pytest.mark.asyncio
    async def test_register_passes_turn(self):
        store = MemoryStore(create_active_game(roll=[5, 5, 5, 5, 5]))
        coordinator = make_coordinator(store)

        game = (await coordinator.register("1", Category.YAHTZEE, ALICE)).unwrap()

        assert game.scores[0].scores[Category.YAHTZEE] == 50
        assert game.current_player == BOB
        assert (await coordinator.register("1", Category.YAHTZEE, ALICE)).error == Forbidden(
            player=ALICE
        )

    @pytest.mark.asyncio
    async def test_engine_errors_propagate(self):
        store = MemoryStore(create_active_game(rolls_left=0))
        coordinator = make_coordinator(store)

        result = await coordinator.process_action("1", RerollAction(held=[]), ALICE)
        assert result.error == NoRerollsLeft()

        await coordinator.register("1", Category.ONES, ALICE)
        await coordinator.register("1", Category.ONES, BOB)
        result = await coordinator.process_action("1", RegisterAction(category=Category.ONES), ALICE)
        assert result.error == AlreadyRegistered(category="ones")

    @pytest.mark.asyncio
    async def test_unknown_game(self):
        coordinator = make_coordinator()
        result = await coordinator.reroll("missing", [], ALICE)
        assert result.error == NotFound(key="missing")


class TestConcurrency:
    """Test per-game serialization of overlapping actions."""

    @pytest.mark.asyncio
    async def test_concurrent_actions_apply_in_turn(self):
        store = YieldingStore(create_active_game())
        coordinator = make_coordinator(store)

        results = await asyncio.gather(
            coordinator.register("1", Category.CHANCE, ALICE),
            coordinator.register("1", Category.CHANCE, ALICE),
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert [r.error for r in results if isinstance(r, Err)] == [Forbidden(player=ALICE)]
        game = (await store.get_game("1")).unwrap()
        assert game.current_player == BOB
        assert game.scores[1].registered(Category.CHANCE) is False

    @pytest.mark.asyncio
    async def test_unserialized_actions_both_apply_on_stale_turn(self):
        """Without the per-game lock both loads see Alice in turn."""
        store = YieldingStore(create_active_game())
        coordinator = make_coordinator(store)
        coordinator._locked = lambda key: contextlib.nullcontext()

        results = await asyncio.gather(
            coordinator.register("1", Category.CHANCE, ALICE),
            coordinator.register("1", Category.CHANCE, ALICE),
        )

        assert all(r.is_ok() for r in results)

    @pytest.mark.asyncio
    async def test_locks_released_after_use(self):
        store = YieldingStore(create_active_game())
        coordinator = make_coordinator(store)

        await asyncio.gather(
            coordinator.reroll("1", [], ALICE),
            coordinator.reroll("1", [], ALICE),
            coordinator.join("404", BOB),
        )
        for i in range(100):
            await coordinator.reroll(f"missing-{i}", [], ALICE)

        assert coordinator._locks == {}
        assert not coordinator._lock_users


class TestFailures:
    """Test store and broadcaster failures."""

    @pytest.mark.asyncio
    async def test_failed_persist_discards_transition(self, broadcaster: RecordingBroadcaster):
        before = create_active_game()
        store = FlakyStore(before, failing={"replace_game"})
        coordinator = make_coordinator(store, broadcaster)

        result = await coordinator.reroll("1", [], ALICE)

        assert isinstance(result.error, StoreError)
        assert (await store.get_game("1")).unwrap() == before
        assert broadcaster.sent == []

    @pytest.mark.asyncio
    async def test_failed_activation_keeps_pending(self, broadcaster: RecordingBroadcaster):
        store = FlakyStore(failing={"delete_pending"})
        coordinator = make_coordinator(store, broadcaster)
        pending = (await coordinator.create(ALICE, 2)).unwrap()

        result = await coordinator.join(pending.id, BOB)

        assert isinstance(result.error, StoreError)
        assert (await store.list_games()).unwrap() == []
        assert (await store.get_pending(pending.id)).unwrap().players == [ALICE]
        assert broadcaster.sent == [pending]

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_pending(self):
        store = FlakyStore(failing={"add_game"})
        coordinator = make_coordinator(store)
        pending = (await coordinator.create(ALICE, 2)).unwrap()

        result = await coordinator.join(pending.id, BOB)

        assert isinstance(result.error, StoreError)
        assert (await store.get_pending(pending.id)).is_ok()

    @pytest.mark.asyncio
    async def test_failed_undo_is_logged(self, caplog: pytest.LogCaptureFixture):
        store = FlakyStore(failing={"delete_pending", "delete_game"})
        coordinator = make_coordinator(store)
        pending = (await coordinator.create(ALICE, 2)).unwrap()

        with caplog.at_level(logging.ERROR, logger="yahtzee.services.session.coordinator"):
            result = await coordinator.join(pending.id, BOB)

        assert result.error == StoreError(cause="delete_pending unavailable")
        errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
        assert any(
            "delete_pending unavailable" in message and "delete_game unavailable" in message
            for message in errors
        )

    @pytest.mark.asyncio
    async def test_failed_single_player_start_discards_pending(self):
        store = FlakyStore(failing={"add_game"})
        coordinator = make_coordinator(store)

        result = await coordinator.create(ALICE, 1)

        assert result.error == StoreError(cause="add_game unavailable")
        assert (await store.list_pending()).unwrap() == []
        assert (await store.list_games()).unwrap() == []

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_not_an_error(self):
        store = MemoryStore(create_active_game())
        coordinator = make_coordinator(store, ExplodingBroadcaster())

        result = await coordinator.reroll("1", [], ALICE)

        assert result.is_ok()
        assert (await store.get_game("1")).unwrap().rolls_left == 1
