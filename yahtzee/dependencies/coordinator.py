from typing import Annotated

from fastapi import Depends, Request

from yahtzee.services.session import SessionCoordinator


def get_coordinator(request: Request) -> SessionCoordinator:
    """Coordinator built by the application lifespan."""
    return request.app.state.coordinator


Coordinator = Annotated[SessionCoordinator, Depends(get_coordinator)]
