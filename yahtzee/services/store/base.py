"""Store interface shared by the persistence adapters."""

from typing import Protocol

from yahtzee.schemas.game_engine import ActiveGame, NewPendingGame, PendingGame
from yahtzee.services.result import NotFound, Result, err


class GameStore(Protocol):
    """Repository of pending and active games keyed by opaque string ids.

    Every operation returns a Result whose error is ``NotFound`` or
    ``StoreError``; adapters never raise for infrastructure failures.
    """

    async def list_games(self) -> Result[list[ActiveGame]]: ...

    async def get_game(self, game_id: str) -> Result[ActiveGame]: ...

    async def add_game(self, game: ActiveGame) -> Result[ActiveGame]: ...

    async def replace_game(self, game: ActiveGame) -> Result[ActiveGame]: ...

    async def delete_game(self, game_id: str) -> Result[None]: ...

    async def list_pending(self) -> Result[list[PendingGame]]: ...

    async def get_pending(self, pending_id: str) -> Result[PendingGame]: ...

    async def add_pending(self, draft: NewPendingGame) -> Result[PendingGame]: ...

    async def delete_pending(self, pending_id: str) -> Result[None]: ...

    async def replace_pending(self, pending: PendingGame) -> Result[PendingGame]: ...


def not_found(key: str) -> Result:
    return err(NotFound(key=key))
