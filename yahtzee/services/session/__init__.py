"""Session coordination across concurrent games."""

from .coordinator import Broadcaster, SessionCoordinator

__all__ = [
    "Broadcaster",
    "SessionCoordinator",
]
