from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from arcade.services.games import battleship as rules


battleship = Blueprint('battleship', __name__)


# x/y stay strings; the rules module validates them
@battleship.route('/<int:game_id>/attack/<x>/<y>', methods=['POST'])
@login_required
def attack(game_id, x, y):
    return jsonify(rules.attack(current_user.id, game_id, x, y))


@battleship.route('/<int:game_id>/surrender', methods=['POST'])
@login_required
def surrender(game_id):
    return jsonify(rules.surrender_game(game_id, current_user.id))
