"""Game action types - explicit player inputs separated from game state."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from yahtzee.schemas.game_engine import Category
from yahtzee.services.game.engine.dice import DICE_COUNT


class RerollAction(BaseModel):
    """Player rerolls every die not held."""

    action_type: Literal["reroll"] = "reroll"
    held: list[Annotated[int, Field(ge=0, lt=DICE_COUNT)]] = Field(
        default_factory=list, description="Positions (0-4) of the dice to keep"
    )


class RegisterAction(BaseModel):
    """Player scores the current roll in a category."""

    action_type: Literal["register"] = "register"
    category: Category


# Union type for all game actions
GameAction = Annotated[
    RerollAction | RegisterAction,
    Field(discriminator="action_type"),
]
