from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from arcade.services.games import loteria as rules


loteria = Blueprint('loteria', __name__)


@loteria.route('/<int:game_id>/card', methods=['POST'])
@login_required
def generate_card(game_id):
    return jsonify(rules.generate_player_card(game_id, current_user.id))


@loteria.route('/<int:game_id>/draw', methods=['POST'])
@login_required
def draw_card(game_id):
    return jsonify(rules.draw_card(game_id, current_user.id))


@loteria.route('/<int:game_id>/process-card', methods=['POST'])
@login_required
def process_card(game_id):
    return jsonify(rules.process_current_card(game_id, current_user.id))


@loteria.route('/<int:game_id>/reshuffle', methods=['POST'])
@login_required
def reshuffle(game_id):
    return jsonify(rules.reshuffle_cards(game_id, current_user.id))


@loteria.route('/<int:game_id>/token', methods=['POST'])
@login_required
def place_token(game_id):
    data = request.get_json(silent=True) or {}
    if 'cellIndex' in data:
        cell_index = data.get('cellIndex')
    elif 'row' in data and 'col' in data:
        row, col = data.get('row'), data.get('col')
        if not isinstance(row, int) or not isinstance(col, int) or not (0 <= row < 4 and 0 <= col < 4):
            return jsonify({'error': 'row and col must be integers between 0 and 3'}), 400
        cell_index = row * 4 + col
    else:
        return jsonify({'error': 'cellIndex or row/col is required'}), 400
    return jsonify(rules.place_token(game_id, current_user.id, cell_index))


@loteria.route('/<int:game_id>/claim', methods=['POST'])
@login_required
def claim_win(game_id):
    return jsonify(rules.claim_win(game_id, current_user.id))


@loteria.route('/<int:game_id>/kick', methods=['POST'])
@login_required
def kick_player(game_id):
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    if not isinstance(user_id, int):
        return jsonify({'error': 'userId is required'}), 400
    return jsonify(rules.kick_player(game_id, current_user.id, user_id))
