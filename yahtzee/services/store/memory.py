"""In-process store for development and tests."""

import logging

from yahtzee.schemas.game_engine import ActiveGame, NewPendingGame, PendingGame
from yahtzee.services.result import Result, ok

from .base import not_found

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed GameStore.

    Holds the immutable models themselves, so nothing goes through a memento
    round-trip and the reroll budget is kept between requests.
    """

    def __init__(self, *games: ActiveGame):
        self._games: dict[str, ActiveGame] = {game.id: game for game in games}
        self._pending: dict[str, PendingGame] = {}
        self._next_id = 1

    def _allocate_id(self) -> str:
        while str(self._next_id) in self._games or str(self._next_id) in self._pending:
            self._next_id += 1
        game_id = str(self._next_id)
        self._next_id += 1
        return game_id

    async def list_games(self) -> Result[list[ActiveGame]]:
        return ok(list(self._games.values()))

    async def get_game(self, game_id: str) -> Result[ActiveGame]:
        game = self._games.get(game_id)
        if game is None:
            return not_found(game_id)
        return ok(game)

    async def add_game(self, game: ActiveGame) -> Result[ActiveGame]:
        self._games[game.id] = game
        logger.debug("Stored active game %s", game.id)
        return ok(game)

    async def replace_game(self, game: ActiveGame) -> Result[ActiveGame]:
        if game.id not in self._games:
            return not_found(game.id)
        self._games[game.id] = game
        return ok(game)

    async def delete_game(self, game_id: str) -> Result[None]:
        self._games.pop(game_id, None)
        return ok(None)

    async def list_pending(self) -> Result[list[PendingGame]]:
        return ok(list(self._pending.values()))

    async def get_pending(self, pending_id: str) -> Result[PendingGame]:
        pending = self._pending.get(pending_id)
        if pending is None:
            return not_found(pending_id)
        return ok(pending)

    async def add_pending(self, draft: NewPendingGame) -> Result[PendingGame]:
        pending = PendingGame(id=self._allocate_id(), **draft.model_dump())
        self._pending[pending.id] = pending
        logger.debug("Stored pending game %s", pending.id)
        return ok(pending)

    async def delete_pending(self, pending_id: str) -> Result[None]:
        self._pending.pop(pending_id, None)
        return ok(None)

    async def replace_pending(self, pending: PendingGame) -> Result[PendingGame]:
        if pending.id not in self._pending:
            return not_found(pending.id)
        self._pending[pending.id] = pending
        return ok(pending)
