from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from arcade.services.games import experience
from arcade.services.audit import recent_logs


stats = Blueprint('stats', __name__)


@stats.route('/battleship', methods=['GET'])
@login_required
def battleship_stats():
    return jsonify(experience.battleship_stats(current_user.id))


@stats.route('/games/<int:game_id>', methods=['GET'])
@login_required
def game_details(game_id):
    return jsonify(experience.game_details(game_id, current_user.id))


@stats.route('/logs', methods=['GET'])
@login_required
def my_logs():
    try:
        page = int(request.args.get('page', 1))
        limit = int(request.args.get('limit', 10))
    except ValueError:
        return jsonify({'error': 'page and limit must be integers'}), 400
    return jsonify(recent_logs(page=page, limit=limit, user_id=current_user.id, table=request.args.get('table')))
