from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from arcade.services.games import simonsay as rules


simonsay = Blueprint('simonsay', __name__)


def _color_from_body():
    data = request.get_json(silent=True) or {}
    color = data.get('color')
    if not isinstance(color, str) or not rules.is_valid_color(color):
        return None
    return color


@simonsay.route('/<int:game_id>/colors', methods=['POST'])
@login_required
def set_colors(game_id):
    data = request.get_json(silent=True) or {}
    colors = data.get('colors')
    if not isinstance(colors, list):
        return jsonify({'error': 'colors must be a list'}), 400
    return jsonify(rules.set_colors(game_id, current_user.id, colors))


@simonsay.route('/<int:game_id>/first-color', methods=['POST'])
@login_required
def choose_first_color(game_id):
    color = _color_from_body()
    if color is None:
        return jsonify({'error': 'A hex color like #FF0000 is required'}), 400
    return jsonify(rules.choose_first_color(game_id, current_user.id, color))


@simonsay.route('/<int:game_id>/play', methods=['POST'])
@login_required
def play_color(game_id):
    color = _color_from_body()
    if color is None:
        return jsonify({'error': 'A hex color like #FF0000 is required'}), 400
    return jsonify(rules.play_color(game_id, current_user.id, color))


@simonsay.route('/<int:game_id>/choose', methods=['POST'])
@login_required
def choose_color(game_id):
    color = _color_from_body()
    if color is None:
        return jsonify({'error': 'A hex color like #FF0000 is required'}), 400
    return jsonify(rules.choose_color(game_id, current_user.id, color))
