"""Entity lookups shared by the lifecycle engine and the rule modules."""
import functools
import inspect

from arcade.models import Game
from .errors import NotFound, Forbidden, InvalidState
from .locks import game_lock
from .status import GameType, GameStatus


def load_game(game_id, game_type=None):
    try:
        game_id = int(game_id)
    except (TypeError, ValueError):
        raise NotFound('Game not found')
    game = Game.query.filter_by(id=game_id).first()
    if not game:
        raise NotFound('Game not found')
    if game_type is not None and game.game_type != GameType(game_type).value:
        raise NotFound(f'{GameType(game_type).value} game not found')
    return game


def require_player(game, user_id):
    player = game.player_for(user_id)
    if not player:
        raise Forbidden('You are not a player in this game')
    return player


def serialized(func):
    """Run the wrapped action while holding the lock of its ``game_id`` argument."""
    signature = inspect.signature(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        bound = signature.bind(*args, **kwargs)
        game_id = bound.arguments.get('game_id')
        try:
            key = int(game_id)
        except (TypeError, ValueError):
            return func(*args, **kwargs)
        with game_lock(key):
            return func(*args, **kwargs)

    return wrapper


def require_startable(game, user_id, ready):
    """Start guard for two-player games: host only, everyone ready."""
    host = game.host
    if not host or host.user_id != user_id:
        raise Forbidden('Only the host can start the game')
    if game.status != GameStatus.STARTED.value or not ready:
        raise InvalidState('Not every player is ready')
