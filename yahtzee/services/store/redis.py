"""Upstash Redis backed store.

Layout:
    {prefix}:games   (Hash) game_id -> ActiveGame JSON
    {prefix}:pending (Hash) pending_id -> PendingGame JSON

A pending game keeps its id when it becomes active.
"""

import json
import logging
import uuid

from pydantic import ValidationError
from upstash_redis.asyncio import Redis

from yahtzee.schemas.game_engine import ActiveGame, NewPendingGame, PendingGame
from yahtzee.services.game.engine import active_from_memento, to_memento
from yahtzee.services.result import Result, StoreError, err, ok

from .base import not_found

logger = logging.getLogger(__name__)


def _store_error(operation: str, e: Exception) -> Result:
    logger.error("Redis %s failed: %s", operation, e)
    return err(StoreError(cause=f"{operation}: {e}"))


class RedisStore:
    """GameStore over an async Upstash Redis client.

    Active games are restored through the memento path on every read, so the
    reroll budget follows ``restore_rolls_left``.
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "yahtzee",
        restore_rolls_left: bool = False,
    ):
        self._redis = redis_client
        self._prefix = key_prefix
        self._restore_rolls_left = restore_rolls_left

    def _games_key(self) -> str:
        return f"{self._prefix}:games"

    def _pending_key(self) -> str:
        return f"{self._prefix}:pending"

    def _load_game(self, raw: str) -> ActiveGame:
        return active_from_memento(json.loads(raw), self._restore_rolls_left)

    async def list_games(self) -> Result[list[ActiveGame]]:
        try:
            raw_games = await self._redis.hgetall(self._games_key())
            return ok([self._load_game(raw) for raw in raw_games.values()])
        except (ValidationError, json.JSONDecodeError) as e:
            return _store_error("list_games (corrupt record)", e)
        except Exception as e:
            return _store_error("list_games", e)

    async def get_game(self, game_id: str) -> Result[ActiveGame]:
        try:
            raw = await self._redis.hget(self._games_key(), game_id)
            if raw is None:
                return not_found(game_id)
            return ok(self._load_game(raw))
        except (ValidationError, json.JSONDecodeError) as e:
            return _store_error(f"get_game {game_id} (corrupt record)", e)
        except Exception as e:
            return _store_error(f"get_game {game_id}", e)

    async def add_game(self, game: ActiveGame) -> Result[ActiveGame]:
        try:
            await self._redis.hset(self._games_key(), game.id, json.dumps(to_memento(game)))
            logger.debug("Stored active game %s in Redis", game.id)
            return ok(game)
        except Exception as e:
            return _store_error(f"add_game {game.id}", e)

    async def replace_game(self, game: ActiveGame) -> Result[ActiveGame]:
        try:
            if not await self._redis.hexists(self._games_key(), game.id):
                return not_found(game.id)
            await self._redis.hset(self._games_key(), game.id, json.dumps(to_memento(game)))
            return ok(game)
        except Exception as e:
            return _store_error(f"replace_game {game.id}", e)

    async def delete_game(self, game_id: str) -> Result[None]:
        try:
            await self._redis.hdel(self._games_key(), game_id)
            return ok(None)
        except Exception as e:
            return _store_error(f"delete_game {game_id}", e)

    async def list_pending(self) -> Result[list[PendingGame]]:
        try:
            raw_pending = await self._redis.hgetall(self._pending_key())
            return ok([PendingGame.model_validate_json(raw) for raw in raw_pending.values()])
        except ValidationError as e:
            return _store_error("list_pending (corrupt record)", e)
        except Exception as e:
            return _store_error("list_pending", e)

    async def get_pending(self, pending_id: str) -> Result[PendingGame]:
        try:
            raw = await self._redis.hget(self._pending_key(), pending_id)
            if raw is None:
                return not_found(pending_id)
            return ok(PendingGame.model_validate_json(raw))
        except ValidationError as e:
            return _store_error(f"get_pending {pending_id} (corrupt record)", e)
        except Exception as e:
            return _store_error(f"get_pending {pending_id}", e)

    async def add_pending(self, draft: NewPendingGame) -> Result[PendingGame]:
        pending = PendingGame(id=uuid.uuid4().hex, **draft.model_dump())
        try:
            await self._redis.hset(self._pending_key(), pending.id, pending.model_dump_json())
            logger.debug("Stored pending game %s in Redis", pending.id)
            return ok(pending)
        except Exception as e:
            return _store_error(f"add_pending {pending.id}", e)

    async def delete_pending(self, pending_id: str) -> Result[None]:
        try:
            await self._redis.hdel(self._pending_key(), pending_id)
            return ok(None)
        except Exception as e:
            return _store_error(f"delete_pending {pending_id}", e)

    async def replace_pending(self, pending: PendingGame) -> Result[PendingGame]:
        try:
            if not await self._redis.hexists(self._pending_key(), pending.id):
                return not_found(pending.id)
            await self._redis.hset(self._pending_key(), pending.id, pending.model_dump_json())
            return ok(pending)
        except Exception as e:
            return _store_error(f"replace_pending {pending.id}", e)
