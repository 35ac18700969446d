from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

INITIAL_ROLLS_LEFT = 2


# Scorecard categories
class Category(str, Enum):
    ONES = "ones"
    TWOS = "twos"
    THREES = "threes"
    FOURS = "fours"
    FIVES = "fives"
    SIXES = "sixes"
    PAIR = "pair"
    TWO_PAIRS = "two_pairs"
    THREE_OF_A_KIND = "three_of_a_kind"
    FOUR_OF_A_KIND = "four_of_a_kind"
    FULL_HOUSE = "full_house"
    SMALL_STRAIGHT = "small_straight"
    LARGE_STRAIGHT = "large_straight"
    CHANCE = "chance"
    YAHTZEE = "yahtzee"


def _empty_scores() -> dict[Category, int | None]:
    return {category: None for category in Category}


class Scorecard(BaseModel):
    """One player's scores; an unset category has not been played yet."""

    scores: dict[Category, int | None] = Field(default_factory=_empty_scores)

    def registered(self, category: Category) -> bool:
        return self.scores.get(category) is not None


# Game state for broadcasting and game flow
class GameState(BaseModel):
    """State of a started game.

    Players are listed in turn order; ``scores`` is index-aligned with them.
    Transitions live in ``yahtzee.services.game.engine`` and always return a
    new instance via ``model_copy``.
    """

    players: list[str]
    scores: list[Scorecard]
    player_in_turn: int = 0
    roll: list[int]
    rolls_left: int = INITIAL_ROLLS_LEFT

    @property
    def current_player(self) -> str:
        return self.players[self.player_in_turn]


# Lifecycle records as persisted by the store


class NewPendingGame(BaseModel):
    """Pending game before the store has assigned an id."""

    creator: str
    number_of_players: int
    players: list[str] = []


class PendingGame(NewPendingGame):
    """A game still recruiting players."""

    kind: Literal["pending"] = "pending"
    id: str

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.number_of_players


class ActiveGame(GameState):
    """A started game as known to the store."""

    kind: Literal["active"] = "active"
    id: str


AnyGame = Annotated[PendingGame | ActiveGame, Field(discriminator="kind")]
