"""Battleship rules: board setup, attacks, surrender and masked status."""
import random

from flask import current_app

from arcade import db
from arcade.models import BattleshipGame, BattleshipPlayer, Move
from arcade.services.audit import log_action
from .errors import (
    InvalidState,
    InvalidCoordinates,
    AlreadyAttacked,
    NotFound,
    NotYourTurn,
)
from .experience import award_experience, update_precision
from .generators import Cell, reveal, generate_board, count_cells, mask_board
from .status import GameStatus, GameType, PlayerResult, transition
from .store import load_game, require_player, require_startable, serialized

MAX_PLAYERS = 2


def create_game(host_user_id, config=None):
    cfg = current_app.config
    config = config or {}
    game = BattleshipGame(
        board_size=int(config.get('board_size') or cfg.get('BATTLESHIP_BOARD_SIZE', 8)),
        ship_count=int(config.get('ship_count') or cfg.get('BATTLESHIP_SHIP_COUNT', 15)),
    )
    game.players.append(new_player(game, host_user_id))
    return game


def new_player(game, user_id):
    return BattleshipPlayer(user_id=user_id)


def max_players(game):
    return MAX_PLAYERS


def ready_to_start(game):
    return len(game.players) == MAX_PLAYERS and all(p.ready for p in game.players)


def _needs_board(player):
    return not player.board or count_cells(player.board, Cell.SHIP) == 0


def start(game, user_id):
    """Deal missing boards, pick who fires first and enter ``in_progress``."""
    require_startable(game, user_id, ready_to_start(game))
    size = game.board_size or 8
    ships = game.ship_count or 15
    for p in game.players:
        if _needs_board(p):
            p.board = generate_board(size, ships)
    if not game.current_turn_user_id:
        game.current_turn_user_id = random.choice(game.players).user_id
    transition(game, GameStatus.IN_PROGRESS)
    db.session.commit()
    current_app.logger.info(f"[start] game={game.id} type=battleship first_turn={game.current_turn_user_id}")

    me = game.player_for(user_id)
    opponent = game.opponent_of(user_id)
    return {
        'game_id': game.id,
        'current_turn_user_id': game.current_turn_user_id,
        'my_board': me.board,
        'enemy_board': mask_board(opponent.board),
        'status': game.status,
    }


def _validate_coordinates(game, x, y):
    size = game.board_size or 8
    try:
        x, y = int(x), int(y)
    except (TypeError, ValueError):
        raise InvalidCoordinates('Coordinates must be integers')
    if not (0 <= x < size and 0 <= y < size):
        raise InvalidCoordinates(f'Coordinates must be between 0 and {size - 1}')
    return x, y


@serialized
def attack(user_id, game_id, x, y):
    game = load_game(game_id, GameType.BATTLESHIP)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    me = require_player(game, user_id)
    if game.current_turn_user_id != user_id:
        raise NotYourTurn()
    x, y = _validate_coordinates(game, x, y)
    opponent = game.opponent_of(user_id)
    if not opponent or not opponent.board:
        raise NotFound('Opponent not found')

    board = [list(row) for row in opponent.board]
    if board[x][y] >= Cell.MISS:
        raise AlreadyAttacked()
    board[x][y] = int(reveal(board[x][y]))
    was_hit = board[x][y] == Cell.HIT
    opponent.board = board

    if was_hit:
        me.ships_sunk = (me.ships_sunk or 0) + 1
        opponent.ships_lost = (opponent.ships_lost or 0) + 1

    db.session.add(Move(player_game_id=me.id, x=x, y=y, hit=was_hit))
    db.session.flush()
    update_precision(user_id)
    current_app.logger.info(f"[attack] game={game.id} user={user_id} x={x} y={y} hit={was_hit}")

    if count_cells(board, Cell.SHIP) == 0:
        declare_victory(game, me, opponent)
        return {'status': 'win', 'x': x, 'y': y, 'message': 'You won the game!'}

    if not was_hit:
        game.current_turn_user_id = opponent.user_id
    db.session.commit()
    return {'status': 'hit' if was_hit else 'miss', 'x': x, 'y': y}


def declare_victory(game, winner, loser):
    winner.result = PlayerResult.WIN.value
    loser.result = PlayerResult.LOSE.value
    transition(game, GameStatus.FINISHED)
    game.winner = winner.user_id
    game.current_turn_user_id = None
    db.session.commit()
    current_app.logger.info(f"[finish] game={game.id} type=battleship winner={winner.user_id}")
    award_experience(winner.user_id, loser.user_id)
    log_action(winner.user_id, 'win', 'game', f'Won battleship game {game.code}', {'game_id': game.id})


@serialized
def surrender_game(game_id, user_id):
    game = load_game(game_id, GameType.BATTLESHIP)
    if game.status == GameStatus.FINISHED.value:
        raise InvalidState('The game is already finished')
    if len(game.players) != MAX_PLAYERS:
        raise InvalidState('Battleship needs exactly two players')
    loser = require_player(game, user_id)
    winner = game.opponent_of(user_id)

    loser.result = PlayerResult.LOSE.value
    winner.result = PlayerResult.WIN.value
    transition(game, GameStatus.FINISHED)
    game.winner = winner.user_id
    game.current_turn_user_id = None
    game.surrendered_by = list(game.surrendered_by or []) + [loser.id]
    db.session.commit()
    current_app.logger.info(f"[surrender] game={game.id} type=battleship loser={loser.user_id}")

    award_experience(winner.user_id, loser.user_id)
    log_action(user_id, 'surrender', 'game', f'Surrendered battleship game {game.code}', {'game_id': game.id})
    return {'status': 'finished', 'winner': winner.user_id, 'loser': loser.user_id}


def _player_summary(p):
    return {
        'user_id': p.user_id,
        'ready': p.ready,
        'ships_sunk': p.ships_sunk or 0,
        'ships_lost': p.ships_lost or 0,
        'user': p.user.to_public_dict() if p.user else None,
    }


def game_status(game, user_id):
    me = require_player(game, user_id)
    opponent = game.opponent_of(user_id)
    if not opponent:
        raise NotFound('No opponent in this game')

    if game.status == GameStatus.FINISHED.value:
        winner = next((p for p in game.players if p.result == PlayerResult.WIN.value), None)
        loser = next((p for p in game.players if p.result == PlayerResult.LOSE.value), None)
        return {
            'status': game.status,
            'winner': game.winner,
            'winner_name': winner.user.name if winner and winner.user else 'Unknown',
            'loser_name': loser.user.name if loser and loser.user else 'Unknown',
            'my_board': me.board or [],
            'enemy_board': opponent.board or [],
        }

    return {
        'status': game.status,
        'current_turn_user_id': game.current_turn_user_id,
        'is_my_turn': game.current_turn_user_id == user_id,
        'players': [_player_summary(p) for p in game.players],
        'my_board': me.board or [],
        'enemy_board': mask_board(opponent.board),
        'my_ships_remaining': count_cells(me.board, Cell.SHIP),
        'enemy_ships_remaining': count_cells(opponent.board, Cell.SHIP),
    }


def lobby_status(game, user_id):
    require_player(game, user_id)
    return {
        'game_id': game.id,
        'code': game.code,
        'status': game.status,
        'players': [dict(_player_summary(p), id=p.id) for p in game.players],
        'started': game.status == GameStatus.STARTED.value,
    }


def surrender(game, player):
    return surrender_game(game.id, player.user_id)
