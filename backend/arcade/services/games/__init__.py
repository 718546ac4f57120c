"""Game domain services: lifecycle engine and per-game rules.

This package contains the turn-based game logic that HTTP routes call
into, keeping transport concerns separated from core game mechanics.
Rule modules raise the typed errors from ``errors``; routes never catch
them, a single app-level handler renders them.
"""

from .errors import (
    GameError,
    NotFound,
    Forbidden,
    NotYourTurn,
    InvalidState,
    NotStarted,
    NoCardsAvailable,
    CardAlreadyActive,
    DrawCooldown,
    InvalidInput,
    InvalidCoordinates,
    Conflict,
    AlreadyAttacked,
    AlreadyJoined,
    GameFull,
    UnsupportedGameType,
)
from .status import GameType, GameStatus

__all__ = [
    "GameError",
    "NotFound",
    "Forbidden",
    "NotYourTurn",
    "InvalidState",
    "NotStarted",
    "NoCardsAvailable",
    "CardAlreadyActive",
    "DrawCooldown",
    "InvalidInput",
    "InvalidCoordinates",
    "Conflict",
    "AlreadyAttacked",
    "AlreadyJoined",
    "GameFull",
    "UnsupportedGameType",
    "GameType",
    "GameStatus",
]
