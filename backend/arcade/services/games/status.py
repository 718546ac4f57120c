"""Game types, status labels and the allowed status transitions per type.

Every status change goes through ``transition`` so no game can move
backwards; the one exception is a rejected lotería claim, which returns
the game from ``verification`` to ``in_progress``.
"""
from enum import Enum

from .errors import InvalidState, UnsupportedGameType


class GameType(str, Enum):
    BATTLESHIP = 'battleship'
    SIMONSAY = 'simonsay'
    LOTERIA = 'loteria'

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedGameType(f'Unsupported game type: {value}')


class GameStatus(str, Enum):
    WAITING = 'waiting'
    STARTED = 'started'
    CARD_SELECTION = 'card_selection'
    WAITING_FIRST_COLOR = 'waiting_first_color'
    IN_PROGRESS = 'in_progress'
    VERIFICATION = 'verification'
    FINISHED = 'finished'


class PlayerResult(str, Enum):
    PENDING = 'pending'
    WIN = 'win'
    LOSE = 'lose'


S = GameStatus

TRANSITIONS = {
    GameType.BATTLESHIP: {
        S.WAITING: {S.STARTED},
        S.STARTED: {S.IN_PROGRESS, S.FINISHED},
        S.IN_PROGRESS: {S.FINISHED},
    },
    GameType.SIMONSAY: {
        S.WAITING: {S.STARTED},
        S.STARTED: {S.WAITING_FIRST_COLOR, S.FINISHED},
        S.WAITING_FIRST_COLOR: {S.IN_PROGRESS, S.FINISHED},
        S.IN_PROGRESS: {S.FINISHED},
    },
    GameType.LOTERIA: {
        S.WAITING: {S.CARD_SELECTION, S.IN_PROGRESS},
        S.CARD_SELECTION: {S.IN_PROGRESS},
        S.IN_PROGRESS: {S.VERIFICATION, S.FINISHED},
        S.VERIFICATION: {S.FINISHED, S.IN_PROGRESS},
    },
}

# Pre-play statuses: players may still join, ready up or withdraw.
LOBBY_STATUSES = {
    GameType.BATTLESHIP: {S.WAITING, S.STARTED},
    GameType.SIMONSAY: {S.WAITING, S.STARTED},
    GameType.LOTERIA: {S.WAITING, S.CARD_SELECTION},
}

# Statuses for which the in-game status projection is available.
VISIBLE_STATUSES = {
    GameType.BATTLESHIP: {S.STARTED, S.IN_PROGRESS, S.FINISHED},
    GameType.SIMONSAY: {S.STARTED, S.WAITING_FIRST_COLOR, S.IN_PROGRESS, S.FINISHED},
    GameType.LOTERIA: {S.IN_PROGRESS, S.VERIFICATION, S.FINISHED},
}


def can_transition(game_type, current, new):
    allowed = TRANSITIONS[GameType(game_type)].get(GameStatus(current), set())
    return GameStatus(new) in allowed


def transition(game, new_status):
    """Move ``game`` to ``new_status`` or raise InvalidState."""
    new_status = GameStatus(new_status)
    if game.status == new_status.value:
        return game
    if not can_transition(game.game_type, game.status, new_status):
        raise InvalidState(
            f'Cannot move {game.game_type} game from {game.status} to {new_status.value}'
        )
    game.status = new_status.value
    return game


def is_lobby(game):
    return GameStatus(game.status) in LOBBY_STATUSES[GameType(game.game_type)]


def is_finished(game):
    return game.status == S.FINISHED.value


def is_visible(game):
    return GameStatus(game.status) in VISIBLE_STATUSES[GameType(game.game_type)]
