"""Game lifecycle engine.

Everything every game type shares: create, join, ready-check, start,
status projections, leave/surrender, heartbeat and rematch. Type specific
behaviour is looked up once in ``RULES`` and delegated to the rule module.
"""
from flask import current_app

from arcade import db
from arcade.models import Game, utcnow
from arcade.services.audit import log_action
from . import battleship, simonsay, loteria
from .errors import AlreadyJoined, Forbidden, GameFull, InvalidState, NotFound, NotStarted
from .locks import game_lock, discard_lock
from .status import GameStatus, GameType, transition, is_lobby, is_finished, is_visible
from .store import load_game, require_player, serialized

RULES = {
    GameType.BATTLESHIP: battleship,
    GameType.SIMONSAY: simonsay,
    GameType.LOTERIA: loteria,
}

# Types whose lobby moves to ``started`` once everyone is ready.
READY_CHECKED = {GameType.BATTLESHIP, GameType.SIMONSAY}


def rules_for(game_or_type):
    game_type = getattr(game_or_type, 'game_type', game_or_type)
    return RULES[GameType.parse(game_type)]


def create_game(host_user_id, game_type, config=None):
    game_type = GameType.parse(game_type)
    game = RULES[game_type].create_game(host_user_id, config)
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[create] game={game.id} type={game_type.value} code={game.code} host={host_user_id}")
    log_action(host_user_id, 'create', 'game', f'Created {game_type.value} game {game.code}', {'game_id': game.id})
    return {'game_id': game.id, 'code': game.code, 'game_type': game_type.value}


def _find_lobby(code):
    code = (code or '').strip().upper()
    if not code:
        raise NotFound('Game not found')
    for game in Game.query.filter_by(code=code).order_by(Game.id.desc()).all():
        if is_lobby(game):
            return game
    raise NotFound('No open game with that code')


def join_game(user_id, code):
    game = _find_lobby(code)
    with game_lock(game.id):
        db.session.refresh(game)
        if not is_lobby(game):
            raise NotFound('No open game with that code')
        if game.player_for(user_id):
            raise AlreadyJoined()
        rules = rules_for(game)
        if len(game.players) >= rules.max_players(game):
            raise GameFull()
        game.players.append(rules.new_player(game, user_id))
        db.session.commit()
    current_app.logger.info(f"[join] game={game.id} user={user_id} players={len(game.players)}")
    log_action(user_id, 'join', 'game', f'Joined {game.game_type} game {game.code}', {'game_id': game.id})
    return game


@serialized
def set_ready(user_id, game_id):
    """Mark the caller ready and move the lobby to ``started`` when it can."""
    game = load_game(game_id)
    player = require_player(game, user_id)
    if is_finished(game):
        raise InvalidState('The game is already finished')
    if not player.ready:
        if not is_lobby(game):
            raise InvalidState('The game already started')
        player.ready = True

    game_type = GameType(game.game_type)
    if (
        game_type in READY_CHECKED
        and game.status == GameStatus.WAITING.value
        and rules_for(game).ready_to_start(game)
    ):
        transition(game, GameStatus.STARTED)
    db.session.commit()

    all_ready = all(p.ready for p in game.players)
    current_app.logger.info(f"[ready] game={game.id} user={user_id} all_ready={all_ready} status={game.status}")
    return {'ready': True, 'all_ready': all_ready, 'status': game.status}


@serialized
def start_game(user_id, game_id):
    game = load_game(game_id)
    require_player(game, user_id)
    if is_finished(game):
        raise InvalidState('The game is already finished')
    if not is_lobby(game):
        return {'message': 'The game already started', 'game_id': game.id, 'status': game.status}
    return rules_for(game).start(game, user_id)


def get_game(game_id, user_id):
    game = load_game(game_id)
    require_player(game, user_id)
    return game.to_dict()


def get_lobby_status(game_id, user_id):
    game = load_game(game_id)
    payload = rules_for(game).lobby_status(game, user_id)
    payload['game_type'] = game.game_type
    return payload


def get_game_status(game_id, user_id):
    game = load_game(game_id)
    require_player(game, user_id)
    if not is_visible(game):
        raise NotStarted()
    payload = rules_for(game).game_status(game, user_id)
    payload['game_type'] = game.game_type
    return payload


def _delete_game(game):
    for p in list(game.players):
        db.session.delete(p)
    db.session.delete(game)


@serialized
def leave_game(user_id, game_id):
    """Withdraw from a lobby, or surrender a game that is already running."""
    game = load_game(game_id)
    player = require_player(game, user_id)
    if is_finished(game):
        raise InvalidState('The game is already finished')
    rules = rules_for(game)

    if not is_lobby(game):
        return rules.surrender(game, player)

    closes = getattr(rules, 'closes_lobby', None)
    if closes and closes(game, player):
        _delete_game(game)
        db.session.commit()
        discard_lock(game_id)
        current_app.logger.info(f"[leave] game={game_id} user={user_id} lobby_closed=True")
        return {'left': True, 'game_closed': True}

    game.players.remove(player)
    db.session.delete(player)
    closed = not game.players
    if closed:
        db.session.delete(game)
    db.session.commit()
    if closed:
        discard_lock(game_id)
    current_app.logger.info(f"[leave] game={game_id} user={user_id} lobby_closed={closed}")
    return {'left': True, 'game_closed': closed}


@serialized
def heartbeat(user_id, game_id):
    game = load_game(game_id)
    player = require_player(game, user_id)
    player.last_seen_at = utcnow()
    db.session.commit()
    return {'ok': True, 'last_seen_at': player.last_seen_at.isoformat()}


def _all_requested(game):
    requested = set(game.rematch_requested_by or [])
    return bool(game.players) and all(p.id in requested for p in game.players)


@serialized
def request_rematch(game_id, player_game_id):
    game = load_game(game_id)
    if not any(p.id == player_game_id for p in game.players):
        raise Forbidden('You are not a player in this game')
    if not is_finished(game):
        raise InvalidState('Rematch is only available once the game is finished')
    if player_game_id not in (game.rematch_requested_by or []):
        game.rematch_requested_by = list(game.rematch_requested_by or []) + [player_game_id]
        db.session.commit()
    return {
        'requested': True,
        'all_requested': _all_requested(game),
        'rematch_requested_by': list(game.rematch_requested_by),
        'rematch_game_id': game.rematch_game_id,
    }


@serialized
def start_rematch(user_id, game_id):
    """Create the follow-up game once everybody asked for it. Idempotent."""
    game = load_game(game_id)
    require_player(game, user_id)
    if not is_finished(game):
        raise InvalidState('Rematch is only available once the game is finished')
    if game.rematch_game_id:
        rematch = load_game(game.rematch_game_id)
        return {'game_id': rematch.id, 'code': rematch.code, 'game_type': rematch.game_type}

    host = next((p for p in game.players if getattr(p, 'is_host', False)), game.host)
    if host.user_id != user_id:
        raise Forbidden('Only the host can start the rematch')
    if not _all_requested(game):
        raise InvalidState('Not every player asked for a rematch')

    rules = rules_for(game)
    rematch = rules.create_game(host.user_id, game.settings())
    for p in game.players:
        if p.id != host.id:
            rematch.players.append(rules.new_player(rematch, p.user_id))
    db.session.add(rematch)
    db.session.flush()
    game.rematch_game_id = rematch.id
    db.session.commit()
    current_app.logger.info(f"[rematch] game={game.id} new_game={rematch.id} code={rematch.code}")
    log_action(user_id, 'rematch', 'game', f'Rematch of {game.code} as {rematch.code}', {
        'game_id': game.id,
        'rematch_game_id': rematch.id,
    })
    return {'game_id': rematch.id, 'code': rematch.code, 'game_type': rematch.game_type}
