"""REST endpoints for pending and active games."""

import logging
from typing import NoReturn

from fastapi import APIRouter, HTTPException, status

from yahtzee.dependencies.coordinator import Coordinator
from yahtzee.schemas.api import (
    ActionRequest,
    ActiveGameResponse,
    CreateGameRequest,
    ErrorDetail,
    JoinGameRequest,
)
from yahtzee.schemas.game_engine import ActiveGame, PendingGame
from yahtzee.services.result import (
    AlreadyRegistered,
    Forbidden,
    GameError,
    NoRerollsLeft,
    NotFound,
    StoreError,
    WrongPlayerCount,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["games"])

ERROR_STATUS_MAP: dict[type[GameError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NoRerollsLeft: status.HTTP_409_CONFLICT,
    AlreadyRegistered: status.HTTP_409_CONFLICT,
    WrongPlayerCount: status.HTTP_400_BAD_REQUEST,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_error(error: GameError) -> NoReturn:
    """Translate a failure kind into an HTTP error response."""
    http_status = ERROR_STATUS_MAP.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Request failed: %s - %s", error.code, error.message)
    else:
        logger.warning("Request rejected: %s - %s", error.code, error.message)
    raise HTTPException(
        status_code=http_status,
        detail=ErrorDetail(error_code=error.code, message=error.message).model_dump(),
    )


def to_response(game: PendingGame | ActiveGame) -> PendingGame | ActiveGameResponse:
    if isinstance(game, PendingGame):
        return game
    return ActiveGameResponse.from_game(game)


@router.post("/pending-games", status_code=status.HTTP_201_CREATED)
async def create_game(
    request: CreateGameRequest,
    coordinator: Coordinator,
) -> PendingGame | ActiveGameResponse:
    """Create a game with the creator seated.

    Returns the pending game, or the started game when it needs one player.
    """
    logger.info(
        "POST /pending-games - creator: %s, number_of_players: %d",
        request.creator,
        request.number_of_players,
    )
    result = await coordinator.create(request.creator, request.number_of_players)
    return result.resolve(to_response, raise_for_error)


@router.get("/pending-games")
async def list_pending_games(coordinator: Coordinator) -> list[PendingGame]:
    result = await coordinator.list_pending()
    return result.resolve(lambda games: games, raise_for_error)


@router.get("/pending-games/{pending_id}")
async def get_pending_game(pending_id: str, coordinator: Coordinator) -> PendingGame:
    result = await coordinator.get_pending(pending_id)
    return result.resolve(lambda game: game, raise_for_error)


@router.post("/pending-games/{pending_id}/players")
async def join_game(
    pending_id: str,
    request: JoinGameRequest,
    coordinator: Coordinator,
) -> PendingGame | ActiveGameResponse:
    """Join a pending game; the last seat starts it."""
    logger.info("POST /pending-games/%s/players - player: %s", pending_id, request.player)
    result = await coordinator.join(pending_id, request.player)
    return result.resolve(to_response, raise_for_error)


@router.get("/games")
async def list_games(coordinator: Coordinator) -> list[ActiveGameResponse]:
    result = await coordinator.list_games()
    return result.resolve(
        lambda games: [ActiveGameResponse.from_game(game) for game in games],
        raise_for_error,
    )


@router.get("/games/{game_id}")
async def get_game(game_id: str, coordinator: Coordinator) -> ActiveGameResponse:
    result = await coordinator.get_game(game_id)
    return result.resolve(ActiveGameResponse.from_game, raise_for_error)


@router.post("/games/{game_id}/actions")
async def perform_action(
    game_id: str,
    request: ActionRequest,
    coordinator: Coordinator,
) -> ActiveGameResponse:
    """Reroll or register on behalf of the player in turn.

    Raises:
        HTTPException 403: If the player is not in turn.
        HTTPException 404: If the game id is unknown.
        HTTPException 409: If no rerolls are left or the category is taken.
        HTTPException 500: If the store fails.
    """
    logger.info(
        "POST /games/%s/actions - player: %s, action: %s",
        game_id,
        request.player,
        request.action_type,
    )
    result = await coordinator.process_action(game_id, request, request.player)
    return result.resolve(ActiveGameResponse.from_game, raise_for_error)
