from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from arcade.services.games import lifecycle
from arcade.services.games.store import load_game, require_player


games = Blueprint('games', __name__)


def _int_or_none(value):
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@games.route('/create/<string:game_type>', methods=['POST'])
@login_required
def create_game(game_type):
    data = request.get_json(silent=True) or {}
    config = {}
    if 'minPlayers' in data or 'maxPlayers' in data:
        min_players = _int_or_none(data.get('minPlayers'))
        max_players = _int_or_none(data.get('maxPlayers'))
        if (data.get('minPlayers') is not None and min_players is None) or \
                (data.get('maxPlayers') is not None and max_players is None):
            return jsonify({'error': 'minPlayers and maxPlayers must be integers'}), 400
        config = {'min_players': min_players, 'max_players': max_players}
    created = lifecycle.create_game(current_user.id, game_type, config)
    return jsonify({
        'message': 'New game created!',
        'game_id': created['game_id'],
        'code': created['code'],
        'game_type': created['game_type'],
    }), 201


@games.route('/join', methods=['POST'])
@login_required
def join_game():
    data = request.get_json(silent=True) or {}
    code = data.get('code')
    if not code or not isinstance(code, str):
        return jsonify({'error': 'Game code is required'}), 400
    game = lifecycle.join_game(current_user.id, code)
    return jsonify(game.to_dict()), 201


@games.route('/<int:game_id>', methods=['GET'])
@login_required
def get_game(game_id):
    return jsonify(lifecycle.get_game(game_id, current_user.id))


@games.route('/<int:game_id>/ready', methods=['POST'])
@login_required
def set_ready(game_id):
    return jsonify(lifecycle.set_ready(current_user.id, game_id))


@games.route('/<int:game_id>/start', methods=['POST'])
@login_required
def start_game(game_id):
    return jsonify(lifecycle.start_game(current_user.id, game_id))


@games.route('/<int:game_id>/lobby-status', methods=['GET'])
@login_required
def lobby_status(game_id):
    return jsonify(lifecycle.get_lobby_status(game_id, current_user.id))


@games.route('/<int:game_id>/status', methods=['GET'])
@login_required
def game_status(game_id):
    return jsonify(lifecycle.get_game_status(game_id, current_user.id))


@games.route('/<int:game_id>/leave', methods=['POST'])
@login_required
def leave_game(game_id):
    return jsonify(lifecycle.leave_game(current_user.id, game_id))


@games.route('/<int:game_id>/heartbeat', methods=['POST'])
@login_required
def heartbeat(game_id):
    return jsonify(lifecycle.heartbeat(current_user.id, game_id))


@games.route('/<int:game_id>/rematch', methods=['POST'])
@login_required
def request_rematch(game_id):
    player = require_player(load_game(game_id), current_user.id)
    return jsonify(lifecycle.request_rematch(game_id, player.id))


@games.route('/<int:game_id>/rematch/start', methods=['POST'])
@login_required
def start_rematch(game_id):
    return jsonify(lifecycle.start_rematch(current_user.id, game_id))
