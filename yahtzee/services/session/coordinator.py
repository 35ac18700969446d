"""Session coordinator - lifecycle of games from recruiting to finished.

Every mutation runs as one linear pipeline:

    load -> authorize (turn check) -> apply pure transition -> persist -> broadcast

Each step consumes the Result of the previous one, so the first failure
short-circuits the rest and is returned to the caller unchanged. A transition
is only committed once the store accepts it; a failed persist discards it.

Mutations of one game are serialized with a per-id asyncio.Lock so two
concurrent actions cannot both apply against the same stale turn.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Protocol

from yahtzee.schemas.game_engine import ActiveGame, Category, NewPendingGame, PendingGame
from yahtzee.services.game.engine import GameAction, Randomizer, new_game
from yahtzee.services.game.engine import process_action as apply_action
from yahtzee.services.game.engine import register as apply_register
from yahtzee.services.game.engine import reroll as apply_reroll
from yahtzee.services.result import (
    Err,
    Forbidden,
    GameError,
    Result,
    WrongPlayerCount,
    err,
    ok,
)
from yahtzee.services.store import GameStore

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    """Receives every game snapshot after a committed mutation."""

    async def send(self, game: PendingGame | ActiveGame) -> None: ...


class SessionCoordinator:
    """Routes player actions to the right game and persists the outcome.

    Constructed once at startup and handed to request handlers; owns no game
    state of its own beyond the per-game locks.
    """

    def __init__(self, store: GameStore, broadcaster: Broadcaster, randomizer: Randomizer):
        self._store = store
        self._broadcaster = broadcaster
        self._randomizer = randomizer
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    # Read-only passthrough

    async def list_games(self) -> Result[list[ActiveGame]]:
        return await self._store.list_games()

    async def list_pending(self) -> Result[list[PendingGame]]:
        return await self._store.list_pending()

    async def get_game(self, game_id: str) -> Result[ActiveGame]:
        return await self._store.get_game(game_id)

    async def get_pending(self, pending_id: str) -> Result[PendingGame]:
        return await self._store.get_pending(pending_id)

    # Lifecycle

    async def create(
        self, creator: str, number_of_players: int
    ) -> Result[PendingGame | ActiveGame]:
        """Open a game with the creator as its only member.

        A single-player game starts immediately.
        """
        logger.info("Creating game: creator=%s, number_of_players=%d", creator, number_of_players)
        if number_of_players < 1:
            logger.warning("Create rejected: number_of_players=%d", number_of_players)
            return err(WrongPlayerCount(expected=number_of_players, actual=1))

        created = await self._store.add_pending(
            NewPendingGame(
                creator=creator,
                number_of_players=number_of_players,
                players=[creator],
            )
        )
        started = await created.flat_map_async(self._start_if_ready)
        if created.is_ok() and created.value.is_full and isinstance(started, Err):
            # A full pending record can never be joined or started again.
            await self._discard_pending(created.value.id, started.error)
        return await started.flat_map_async(self._broadcast)

    async def join(self, pending_id: str, player: str) -> Result[PendingGame | ActiveGame]:
        """Add a player to a pending game, starting it once the table is full."""
        logger.info("Join: pending_id=%s, player=%s", pending_id, player)
        async with self._locked(pending_id):
            loaded = await self._store.get_pending(pending_id)
            open_seat = loaded.filter(
                lambda pending: not pending.is_full,
                lambda pending: WrongPlayerCount(
                    expected=pending.number_of_players,
                    actual=len(pending.players) + 1,
                ),
            )
            joined = open_seat.map(
                lambda pending: pending.model_copy(
                    update={"players": [*pending.players, player]}
                )
            )
            started = await joined.flat_map_async(self._start_if_ready)
            result = await started.flat_map_async(self._broadcast)

        if isinstance(result, Err):
            logger.warning(
                "Join failed: pending_id=%s, player=%s, error=%s",
                pending_id,
                player,
                result.error.code,
            )
        return result

    # Player actions

    async def reroll(self, game_id: str, held: list[int], player: str) -> Result[ActiveGame]:
        return await self._update(
            game_id, player, lambda game: apply_reroll(game, held, self._randomizer)
        )

    async def register(
        self, game_id: str, category: Category, player: str
    ) -> Result[ActiveGame]:
        return await self._update(
            game_id, player, lambda game: apply_register(game, category, self._randomizer)
        )

    async def process_action(
        self, game_id: str, action: GameAction, player: str
    ) -> Result[ActiveGame]:
        """Apply any typed action on behalf of ``player``."""
        return await self._update(
            game_id, player, lambda game: apply_action(game, action, self._randomizer)
        )

    # Pipeline steps

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key``; the entry is dropped once nobody uses it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def _update(
        self,
        game_id: str,
        player: str,
        transition: Callable[[ActiveGame], Result[ActiveGame]],
    ) -> Result[ActiveGame]:
        async with self._locked(game_id):
            loaded = await self._store.get_game(game_id)
            authorized = loaded.filter(
                lambda game: game.current_player == player,
                lambda game: Forbidden(player=player),
            )
            applied = authorized.flat_map(transition)
            persisted = await applied.flat_map_async(self._store.replace_game)
            result = await persisted.flat_map_async(self._broadcast)

        if isinstance(result, Err):
            logger.warning(
                "Action rejected: game=%s, player=%s, error=%s",
                game_id,
                player,
                result.error.code,
            )
        else:
            logger.info(
                "Action applied: game=%s, player=%s, next_player=%s",
                game_id,
                player,
                result.value.current_player,
            )
        return result

    async def _start_if_ready(self, pending: PendingGame) -> Result[PendingGame | ActiveGame]:
        if len(pending.players) < pending.number_of_players:
            return await self._store.replace_pending(pending)

        started = new_game(pending.players, self._randomizer, pending.number_of_players)
        active = started.map(lambda state: ActiveGame(id=pending.id, **state.model_dump()))
        return await active.flat_map_async(self._activate)

    async def _activate(self, game: ActiveGame) -> Result[ActiveGame]:
        """Replace the pending record with the started game under the same id."""
        added = await self._store.add_game(game)
        removed = await added.flat_map_async(lambda _: self._store.delete_pending(game.id))

        if added.is_ok() and isinstance(removed, Err):
            # Undo the insert so the pending record stays the only record.
            logger.error(
                "Failed to remove pending game %s after activation: %s",
                game.id,
                removed.error.message,
            )
            undone = await self._store.delete_game(game.id)
            if isinstance(undone, Err):
                logger.error(
                    "Game %s left both pending and active: delete_pending failed (%s), "
                    "delete_game failed (%s)",
                    game.id,
                    removed.error.message,
                    undone.error.message,
                )
            return removed

        if removed.is_ok():
            logger.info("Game %s started with players %s", game.id, game.players)
        return removed.map(lambda _: game)

    async def _discard_pending(self, pending_id: str, cause: GameError) -> None:
        removed = await self._store.delete_pending(pending_id)
        if isinstance(removed, Err):
            logger.error(
                "Failed to discard unstartable pending game %s (%s): %s",
                pending_id,
                cause.message,
                removed.error.message,
            )
        else:
            logger.warning("Discarded pending game %s: %s", pending_id, cause.message)

    async def _broadcast[G: PendingGame | ActiveGame](self, game: G) -> Result[G]:
        # Runs after the store accepted the mutation; failures are only logged.
        try:
            await self._broadcaster.send(game)
        except Exception:
            logger.exception("Broadcast failed for game %s", game.id)
        return ok(game)
