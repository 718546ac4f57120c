"""Simon Says rules.

Each player owns an individual sequence. On your turn you first repeat
your own sequence, color by color, then pick one color from your
opponent's palette that gets appended to *their* sequence, and the turn
passes. A wrong color ends the game on the spot.
"""
import random
import re

from flask import current_app

from arcade import db
from arcade.models import SimonSayGame, SimonSayPlayer, SimonMove
from arcade.services.audit import log_action
from .errors import Conflict, InvalidInput, InvalidState, NotFound, NotYourTurn
from .generators import DEFAULT_COLORS
from .status import GameStatus, GameType, PlayerResult, transition
from .store import load_game, require_player, require_startable, serialized

MAX_PLAYERS = 2
PALETTE_SIZE = 6
COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')


def is_valid_color(color):
    return isinstance(color, str) and bool(COLOR_PATTERN.match(color))


def create_game(host_user_id, config=None):
    game = SimonSayGame()
    game.players.append(new_player(game, host_user_id))
    return game


def new_player(game, user_id):
    return SimonSayPlayer(user_id=user_id, custom_colors=list(DEFAULT_COLORS))


def max_players(game):
    return MAX_PLAYERS


def ready_to_start(game):
    return (
        len(game.players) == MAX_PLAYERS
        and all(p.ready for p in game.players)
        and all(len(p.custom_colors or []) == PALETTE_SIZE for p in game.players)
    )


@serialized
def set_colors(game_id, user_id, colors):
    if not isinstance(colors, (list, tuple)) or len(colors) != PALETTE_SIZE:
        raise InvalidInput(f'You must pick exactly {PALETTE_SIZE} colors')
    if not all(is_valid_color(c) for c in colors):
        raise InvalidInput('Colors must be hex values like #FF0000')
    game = load_game(game_id, GameType.SIMONSAY)
    if game.status != GameStatus.WAITING.value:
        raise InvalidState('Colors can only be changed in the lobby')
    player = require_player(game, user_id)
    player.custom_colors = [c.upper() for c in colors]
    db.session.commit()
    return {'message': 'Colors updated', 'custom_colors': player.custom_colors}


def start(game, user_id):
    require_startable(game, user_id, ready_to_start(game))
    starter = random.choice(game.players)
    game.current_turn_user_id = starter.user_id
    transition(game, GameStatus.WAITING_FIRST_COLOR)
    db.session.commit()
    current_app.logger.info(f"[start] game={game.id} type=simonsay starter={starter.user_id}")
    return {
        'game_id': game.id,
        'current_turn_user_id': game.current_turn_user_id,
        'status': game.status,
        'phase': 'choose_first_color',
        'message': 'Pick the first color for your opponent',
    }


def _both_players(game, user_id):
    me = require_player(game, user_id)
    opponent = game.opponent_of(user_id)
    if not opponent:
        raise NotFound('No opponent in this game')
    return me, opponent


def _hand_color_to(game, chooser, opponent, color):
    """Append ``color`` to the opponent's sequence and pass them the turn."""
    normalized = color.upper() if isinstance(color, str) else color
    if normalized not in (opponent.custom_colors or []):
        raise InvalidInput("You must pick a color from your opponent's palette")
    opponent.sequence = list(opponent.sequence or []) + [normalized]
    opponent.current_sequence_index = 0
    chooser.current_sequence_index = 0
    game.current_turn_user_id = opponent.user_id
    db.session.add(SimonMove(player_game_id=opponent.id, sequence=list(opponent.sequence)))
    return normalized


@serialized
def choose_first_color(game_id, user_id, color):
    game = load_game(game_id, GameType.SIMONSAY)
    if game.status != GameStatus.WAITING_FIRST_COLOR.value:
        raise InvalidState('It is not time to pick the first color')
    me, opponent = _both_players(game, user_id)
    if game.current_turn_user_id != user_id:
        raise NotYourTurn()
    chosen = _hand_color_to(game, me, opponent, color)
    transition(game, GameStatus.IN_PROGRESS)
    db.session.commit()
    current_app.logger.info(f"[first-color] game={game.id} user={user_id} color={chosen}")
    return {
        'success': True,
        'phase': 'opponent_turn',
        'message': f'Color {chosen} added. Opponent repeats next.',
        'current_turn_user_id': opponent.user_id,
        'sequence_length': len(opponent.sequence),
    }


@serialized
def play_color(game_id, user_id, color):
    game = load_game(game_id, GameType.SIMONSAY)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    me, opponent = _both_players(game, user_id)
    if game.current_turn_user_id != user_id:
        raise NotYourTurn()

    sequence = me.sequence or []
    index = me.current_sequence_index or 0
    if index >= len(sequence):
        raise InvalidState('You already completed your sequence')

    played = color.upper() if isinstance(color, str) else color
    if played != sequence[index]:
        return end_game(game, opponent, me, 'wrong_color')

    me.current_sequence_index = index + 1
    db.session.commit()
    if me.current_sequence_index >= len(sequence):
        return {
            'success': True,
            'phase': 'choose_color',
            'message': 'Sequence complete! Now pick a color for your opponent.',
            'sequence_completed': True,
            'colors_correct': me.current_sequence_index,
            'total_colors': len(sequence),
        }
    return {
        'success': True,
        'phase': 'continue_sequence',
        'message': 'Correct. Keep going.',
        'sequence_completed': False,
        'colors_correct': me.current_sequence_index,
        'total_colors': len(sequence),
        'next_color_index': me.current_sequence_index,
    }


@serialized
def choose_color(game_id, user_id, color):
    game = load_game(game_id, GameType.SIMONSAY)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    me, opponent = _both_players(game, user_id)
    if game.current_turn_user_id != user_id:
        raise NotYourTurn()
    if (me.current_sequence_index or 0) < len(me.sequence or []):
        raise InvalidState('Finish your sequence first')
    chosen = _hand_color_to(game, me, opponent, color)
    db.session.commit()
    current_app.logger.info(f"[choose-color] game={game.id} user={user_id} color={chosen}")
    return {
        'success': True,
        'phase': 'opponent_turn',
        'message': f'Color {chosen} added. Opponent turn.',
        'current_turn_user_id': opponent.user_id,
        'opponent_sequence_length': len(opponent.sequence),
    }


def end_game(game, winner, loser, reason):
    """Finish the game. Simon Says grants no experience."""
    winner.result = PlayerResult.WIN.value
    loser.result = PlayerResult.LOSE.value
    transition(game, GameStatus.FINISHED)
    game.winner = winner.user_id
    game.current_turn_user_id = None
    db.session.commit()
    current_app.logger.info(f"[finish] game={game.id} type=simonsay winner={winner.user_id} reason={reason}")
    log_action(winner.user_id, 'win', 'game', f'Won simonsay game {game.code}', {'game_id': game.id, 'reason': reason})
    return {
        'success': False,
        'phase': 'game_over',
        'game_over': True,
        'winner': winner.user_id,
        'loser': loser.user_id,
        'reason': reason,
        'my_final_sequence': list(loser.sequence or []),
        'opponent_final_sequence': list(winner.sequence or []),
    }


def _phase_for(game, me, user_id):
    if game.status == GameStatus.WAITING_FIRST_COLOR.value:
        return 'choose_first_color' if game.current_turn_user_id == user_id else 'opponent_turn'
    if game.current_turn_user_id != user_id:
        return 'opponent_turn'
    if (me.current_sequence_index or 0) < len(me.sequence or []):
        return 'repeat_sequence'
    return 'choose_color'


def game_status(game, user_id):
    me, opponent = _both_players(game, user_id)

    if game.status == GameStatus.FINISHED.value:
        winner = game.player_for(game.winner) if game.winner else None
        loser = opponent if winner is me else me
        return {
            'status': game.status,
            'winner': game.winner,
            'winner_name': winner.user.name if winner and winner.user else 'Unknown',
            'loser_name': loser.user.name if loser and loser.user else 'Unknown',
            'my_sequence': list(me.sequence or []),
            'opponent_sequence': list(opponent.sequence or []),
            'my_colors': list(me.custom_colors or []),
            'opponent_colors': list(opponent.custom_colors or []),
        }

    my_sequence = me.sequence or []
    return {
        'status': game.status,
        'current_turn_user_id': game.current_turn_user_id,
        'is_my_turn': game.current_turn_user_id == user_id,
        'phase': _phase_for(game, me, user_id),
        'players': [
            {
                'user_id': p.user_id,
                'ready': p.ready,
                'custom_colors': list(p.custom_colors or []),
                'sequence_length': len(p.sequence or []),
                'current_sequence_index': p.current_sequence_index or 0,
                'user': p.user.to_public_dict() if p.user else None,
            }
            for p in game.players
        ],
        'my_colors': list(me.custom_colors or []),
        'opponent_colors': list(opponent.custom_colors or []),
        'my_sequence_length': len(my_sequence),
        'my_current_progress': me.current_sequence_index or 0,
        'opponent_sequence_length': len(opponent.sequence or []),
        'opponent_current_progress': opponent.current_sequence_index or 0,
        'last_color_added': my_sequence[-1] if my_sequence else None,
    }


def lobby_status(game, user_id):
    require_player(game, user_id)
    return {
        'game_id': game.id,
        'code': game.code,
        'status': game.status,
        'players': [
            {
                'id': p.id,
                'user_id': p.user_id,
                'ready': p.ready,
                'custom_colors': list(p.custom_colors or []),
                'has_colors': len(p.custom_colors or []) == PALETTE_SIZE,
                'user': p.user.to_public_dict() if p.user else None,
            }
            for p in game.players
        ],
        'started': game.status == GameStatus.STARTED.value,
    }


def surrender(game, player):
    """Leaving a running game records the loss; no winner is declared."""
    if player.id in (game.surrendered_by or []):
        raise Conflict('You already left this game')
    player.result = PlayerResult.LOSE.value
    game.surrendered_by = list(game.surrendered_by or []) + [player.id]
    db.session.commit()
    current_app.logger.info(f"[surrender] game={game.id} type=simonsay user={player.user_id}")
    log_action(player.user_id, 'surrender', 'game', f'Left simonsay game {game.code}', {'game_id': game.id})
    return {'left': True, 'game_over': False, 'result': player.result}
