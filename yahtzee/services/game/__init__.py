"""Game service module.

Provides the game engine (engine/): dice, scoring, turn transitions and
snapshots.
"""

# Re-export from engine for convenience
from .engine import (
    GameAction,
    Randomizer,
    RegisterAction,
    RerollAction,
    StandardRandomizer,
    new_game,
    process_action,
)

__all__ = [
    "GameAction",
    "Randomizer",
    "RegisterAction",
    "RerollAction",
    "StandardRandomizer",
    "new_game",
    "process_action",
]
