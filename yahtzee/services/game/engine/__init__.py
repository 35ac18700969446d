"""Game engine module - pure functional game logic.

This module provides the core game engine with:
- Dice rolling over an injectable Randomizer
- Scoring rules for every scorecard category
- Action types for explicit player inputs
- Pure turn transitions returning a Result
- Memento snapshot / restore for persistence

Usage:
    from yahtzee.services.game.engine import (
        StandardRandomizer,
        RerollAction,
        new_game,
        process_action,
    )

    randomizer = StandardRandomizer(seed=42)
    state = new_game(["Alice", "Bob"], randomizer).unwrap()

    result = process_action(state, RerollAction(held=[0, 1]), randomizer)
    result.resolve(
        lambda new_state: broadcast(new_state),
        lambda error: print(f"Error: {error.code} - {error.message}"),
    )
"""

# Actions - explicit player inputs
from .actions import (
    GameAction,
    RegisterAction,
    RerollAction,
)

# Dice
from .dice import Randomizer, StandardRandomizer, reroll_dice, roll_dice, shuffle

# Snapshot / restore
from .memento import active_from_memento, from_memento, to_memento

# Transitions and projections
from .process import is_finished, new_game, process_action, register, reroll, totals

# Scoring
from .scoring import score

__all__ = [
    # Actions
    "GameAction",
    "RerollAction",
    "RegisterAction",
    # Dice
    "Randomizer",
    "StandardRandomizer",
    "roll_dice",
    "reroll_dice",
    "shuffle",
    # Memento
    "to_memento",
    "from_memento",
    "active_from_memento",
    # Processing
    "new_game",
    "reroll",
    "register",
    "process_action",
    "is_finished",
    "totals",
    # Scoring
    "score",
]
