"""Persistence adapters for pending and active games."""

from .base import GameStore
from .memory import MemoryStore
from .redis import RedisStore

__all__ = [
    "GameStore",
    "MemoryStore",
    "RedisStore",
]
