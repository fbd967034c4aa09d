"""Game domain services: catalog, deck, effects, turn rules and rooms.

This package holds the game mechanics used by HTTP routes and socket
handlers, keeping transport concerns separated from the rules.
"""

from .engine import ActionRejected
from .registry import GameAlreadyActive, RoomNotFound, RoomRegistry
from .service import ActivationOutcome, GameService
from .settings import GameSettings

__all__ = [
    'ActionRejected',
    'ActivationOutcome',
    'GameAlreadyActive',
    'GameService',
    'GameSettings',
    'RoomNotFound',
    'RoomRegistry',
]
