class GameError(Exception):
    """Base for every error a game operation raises on purpose."""
    status_code = 400
    kind = 'error'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__ or self.kind)
        self.message = message or self.__class__.__doc__ or self.kind


class NotFound(GameError):
    """Not found"""
    status_code = 404
    kind = 'not_found'


class Forbidden(GameError):
    """You are not allowed to do that"""
    status_code = 403
    kind = 'forbidden'


class NotYourTurn(Forbidden):
    """It is not your turn"""


class InvalidState(GameError):
    """Action not allowed in the current game state"""
    status_code = 409
    kind = 'invalid_state'


class NotStarted(InvalidState):
    """The game has not started"""


class NoCardsAvailable(InvalidState):
    """No cards left in the deck"""


class CardAlreadyActive(InvalidState):
    """The current card must be processed before drawing again"""


class DrawCooldown(InvalidState):
    """Wait before drawing another card"""


class InvalidInput(GameError):
    """Invalid input"""
    status_code = 400
    kind = 'invalid_input'


class InvalidCoordinates(InvalidInput):
    """Coordinates out of range"""


class Conflict(GameError):
    """Already done"""
    status_code = 409
    kind = 'conflict'


class AlreadyAttacked(Conflict):
    """Cell already attacked"""


class AlreadyJoined(Conflict):
    """You are already in this game"""


class GameFull(Conflict):
    """The game is full"""


class UnsupportedGameType(GameError):
    """Unsupported game type"""
    status_code = 400
    kind = 'unsupported_game_type'
