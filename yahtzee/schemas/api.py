"""Pydantic schemas for the REST API."""

from typing import Annotated

from pydantic import BaseModel, Field

from yahtzee.schemas.game_engine import ActiveGame
from yahtzee.services.game.engine import RegisterAction, RerollAction, is_finished, totals


class CreateGameRequest(BaseModel):
    """Request body for creating a game."""

    creator: str = Field(..., min_length=1, description="Name of the creating player")
    number_of_players: int = Field(..., description="Players needed before the game starts")


class JoinGameRequest(BaseModel):
    """Request body for joining a pending game."""

    player: str = Field(..., min_length=1, description="Name of the joining player")


class RerollRequest(RerollAction):
    player: str = Field(..., description="Player performing the action")


class RegisterRequest(RegisterAction):
    player: str = Field(..., description="Player performing the action")


ActionRequest = Annotated[
    RerollRequest | RegisterRequest,
    Field(discriminator="action_type"),
]


class ActiveGameResponse(ActiveGame):
    """Active game with its derived scores."""

    finished: bool
    totals: list[int]

    @classmethod
    def from_game(cls, game: ActiveGame) -> "ActiveGameResponse":
        return cls(**game.model_dump(), finished=is_finished(game), totals=totals(game))


class ErrorDetail(BaseModel):
    """Error body returned for every failed request."""

    error_code: str
    message: str
