"""Snapshot / restore of game state for persistence."""

import logging
from typing import Any

from yahtzee.schemas.game_engine import INITIAL_ROLLS_LEFT, ActiveGame, GameState

logger = logging.getLogger(__name__)


def to_memento(state: GameState) -> dict[str, Any]:
    """JSON-ready snapshot of every field of ``state``."""
    return state.model_dump(mode="json")


def from_memento[S: GameState](
    data: dict[str, Any],
    model: type[S] = GameState,
    restore_rolls_left: bool = False,
) -> S:
    """Rebuild a state from a snapshot.

    The reroll budget is reset to its turn-start value unless
    ``restore_rolls_left`` is set; a persisted budget is not trusted by default.
    """
    state = model.model_validate(data)
    if restore_rolls_left or state.rolls_left == INITIAL_ROLLS_LEFT:
        return state
    logger.debug(
        "Resetting rolls_left on restore: persisted=%d, restored=%d",
        state.rolls_left,
        INITIAL_ROLLS_LEFT,
    )
    return state.model_copy(update={"rolls_left": INITIAL_ROLLS_LEFT})


def active_from_memento(data: dict[str, Any], restore_rolls_left: bool = False) -> ActiveGame:
    return from_memento(data, ActiveGame, restore_rolls_left)
