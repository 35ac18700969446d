"""Turn state machine for a single game.

Every transition is a pure function: it takes a state and returns a
``Result`` holding a new state (the input is never mutated), or the reason the
action is illegal. The same functions work for ``GameState`` and its
``ActiveGame`` subclass because new states are produced with ``model_copy``.
"""

import logging
from collections.abc import Iterable

from yahtzee.schemas.game_engine import (
    INITIAL_ROLLS_LEFT,
    Category,
    GameState,
    Scorecard,
)
from yahtzee.services.result import (
    AlreadyRegistered,
    NoRerollsLeft,
    Result,
    WrongPlayerCount,
    err,
    ok,
)

from .actions import GameAction, RegisterAction, RerollAction
from .dice import Randomizer, reroll_dice, roll_dice, shuffle
from .scoring import is_complete, score, total

logger = logging.getLogger(__name__)


def new_game(
    players: list[str],
    randomizer: Randomizer,
    number_of_players: int | None = None,
) -> Result[GameState]:
    """Start a game: shuffle the turn order and roll the opening dice.

    Args:
        players: Player names in joining order.
        randomizer: Source for the shuffle and the first roll.
        number_of_players: Expected player count, checked when given.

    Returns:
        Ok with the initial state, or Err(WrongPlayerCount).
    """
    if number_of_players is not None and len(players) != number_of_players:
        logger.warning(
            "Cannot start game: expected %d players, got %d",
            number_of_players,
            len(players),
        )
        return err(WrongPlayerCount(expected=number_of_players, actual=len(players)))

    turn_order = shuffle(players, randomizer)
    state = GameState(
        players=turn_order,
        scores=[Scorecard() for _ in turn_order],
        player_in_turn=0,
        roll=roll_dice(randomizer),
        rolls_left=INITIAL_ROLLS_LEFT,
    )
    logger.info("Game started: turn_order=%s, opening_roll=%s", turn_order, state.roll)
    return ok(state)


def reroll[S: GameState](state: S, held: Iterable[int], randomizer: Randomizer) -> Result[S]:
    """Reroll the dice not held. Does not advance the turn."""
    if state.rolls_left == 0:
        logger.warning("Reroll rejected: player=%s has no rerolls left", state.current_player)
        return err(NoRerollsLeft())

    new_state = state.model_copy(
        update={
            "roll": reroll_dice(state.roll, held, randomizer),
            "rolls_left": state.rolls_left - 1,
        }
    )
    logger.debug(
        "Reroll: player=%s, roll=%s, rolls_left=%d",
        state.current_player,
        new_state.roll,
        new_state.rolls_left,
    )
    return ok(new_state)


def register[S: GameState](state: S, category: Category, randomizer: Randomizer) -> Result[S]:
    """Score the current roll for the player in turn and pass the dice on.

    Legal whatever the remaining reroll budget is.
    """
    scorecard = state.scores[state.player_in_turn]
    if scorecard.registered(category):
        logger.warning(
            "Register rejected: player=%s already registered %s",
            state.current_player,
            category.value,
        )
        return err(AlreadyRegistered(category=category.value))

    points = score(category, state.roll)
    updated = Scorecard(scores={**scorecard.scores, category: points})
    scores = [
        updated if index == state.player_in_turn else card
        for index, card in enumerate(state.scores)
    ]
    next_player = (state.player_in_turn + 1) % len(state.players)

    new_state = state.model_copy(
        update={
            "scores": scores,
            "player_in_turn": next_player,
            "roll": roll_dice(randomizer),
            "rolls_left": INITIAL_ROLLS_LEFT,
        }
    )
    logger.info(
        "Registered: player=%s, category=%s, points=%d, next_player=%s",
        state.current_player,
        category.value,
        points,
        new_state.current_player,
    )
    return ok(new_state)


def process_action[S: GameState](state: S, action: GameAction, randomizer: Randomizer) -> Result[S]:
    """Dispatch a typed action to its transition."""
    if isinstance(action, RerollAction):
        return reroll(state, action.held, randomizer)
    elif isinstance(action, RegisterAction):
        return register(state, action.category, randomizer)
    raise TypeError(f"Unknown action type: {type(action).__name__}")


def is_finished(state: GameState) -> bool:
    """True once every player has filled every category."""
    return all(is_complete(scorecard.scores) for scorecard in state.scores)


def totals(state: GameState) -> list[int]:
    """Total score per player, index-aligned with ``state.players``."""
    return [total(scorecard.scores) for scorecard in state.scores]
