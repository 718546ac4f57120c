"""Lotería rules.

Host-driven rather than turn-based: the host draws cards one at a time,
every other player marks matching cells on a 4x4 card and claims the win
once the card is full. A claim is verified against the drawn cards on the
spot; a bad claim turns the claimant into a spectator.
"""
import math
import random

from flask import current_app

from arcade import db
from arcade.models import LoteriaGame, LoteriaPlayer, utcnow
from arcade.services.audit import log_action
from .errors import (
    Forbidden,
    InvalidInput,
    InvalidState,
    Conflict,
    NotFound,
    NoCardsAvailable,
    CardAlreadyActive,
    DrawCooldown,
)
from .generators import CARD_CELLS, new_deck, generate_player_card as deal_card, pick_card
from .status import GameStatus, GameType, PlayerResult, transition, is_lobby
from .store import load_game, require_player, serialized

HARD_MIN_PLAYERS = 4
HARD_MAX_PLAYERS = 16


def _bounds(config):
    cfg = current_app.config
    config = config or {}
    min_players = config.get('min_players')
    max_players = config.get('max_players')
    if min_players is None:
        min_players = cfg.get('LOTERIA_MIN_PLAYERS', HARD_MIN_PLAYERS)
    if max_players is None:
        max_players = cfg.get('LOTERIA_MAX_PLAYERS', HARD_MAX_PLAYERS)
    try:
        min_players, max_players = int(min_players), int(max_players)
    except (TypeError, ValueError):
        raise InvalidInput('min_players and max_players must be integers')
    if min_players < HARD_MIN_PLAYERS or max_players > HARD_MAX_PLAYERS or min_players > max_players:
        raise InvalidInput(
            f'Players must satisfy {HARD_MIN_PLAYERS} <= min_players <= max_players <= {HARD_MAX_PLAYERS}'
        )
    return min_players, max_players


def create_game(host_user_id, config=None):
    min_players, max_players = _bounds(config)
    cooldown = (config or {}).get('draw_cooldown_seconds')
    if cooldown is None:
        cooldown = current_app.config.get('LOTERIA_DRAW_COOLDOWN_SEC', 2)
    game = LoteriaGame(
        min_players=min_players,
        max_players=max_players,
        host_user_id=host_user_id,
        drawn_cards=[],
        available_cards=new_deck(),
        banned_players=[],
        draw_cooldown_seconds=int(cooldown),
    )
    game.players.append(LoteriaPlayer(
        user_id=host_user_id,
        is_host=True,
        ready=True,
        card_generated=True,
    ))
    return game


def new_player(game, user_id):
    return LoteriaPlayer(user_id=user_id)


def max_players(game):
    return game.max_players or HARD_MAX_PLAYERS


def ready_to_start(game):
    """canStart: enough players, every one of them ready with a card."""
    return (
        len(game.players) >= (game.min_players or HARD_MIN_PLAYERS)
        and all(p.ready and p.card_generated for p in game.players)
    )


def closes_lobby(game, player):
    return bool(player.is_host)


def _require_host(game, user_id):
    player = game.player_for(user_id)
    if not player or not player.is_host:
        raise Forbidden('Only the host can do that')
    return player


@serialized
def generate_player_card(game_id, user_id):
    game = load_game(game_id, GameType.LOTERIA)
    if not is_lobby(game):
        raise InvalidState('Cards can only be generated in the lobby')
    player = require_player(game, user_id)
    if player.is_host:
        raise Forbidden('The host does not play a card')

    player.player_card = deal_card()
    player.marked_cells = [False] * CARD_CELLS
    player.tokens_used = 0
    player.card_generated = True
    if game.status == GameStatus.WAITING.value:
        transition(game, GameStatus.CARD_SELECTION)
    db.session.commit()
    return {'player_card': list(player.player_card), 'message': 'Card generated'}


def start(game, user_id):
    _require_host(game, user_id)
    if not is_lobby(game):
        raise InvalidState('The game already started or finished')
    if not ready_to_start(game):
        raise InvalidState('Missing players, cards or ready checks')
    transition(game, GameStatus.IN_PROGRESS)
    db.session.commit()
    current_app.logger.info(f"[start] game={game.id} type=loteria players={len(game.players)}")
    return {'message': 'Loteria game started', 'status': game.status}


@serialized
def draw_card(game_id, user_id):
    game = load_game(game_id, GameType.LOTERIA)
    _require_host(game, user_id)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    available = list(game.available_cards or [])
    if not available:
        raise NoCardsAvailable()
    if game.current_card:
        raise CardAlreadyActive()
    cooldown = int(game.draw_cooldown_seconds or 0)
    if cooldown and game.last_draw_at:
        elapsed = (utcnow() - game.last_draw_at).total_seconds()
        if elapsed < cooldown:
            raise DrawCooldown(f'Wait {math.ceil(cooldown - elapsed)} seconds before drawing again')

    card = pick_card(available)
    available.remove(card)
    game.available_cards = available
    game.drawn_cards = list(game.drawn_cards or []) + [card]
    game.current_card = card
    game.last_draw_at = utcnow()
    db.session.commit()
    current_app.logger.info(f"[draw] game={game.id} card={card} remaining={len(available)}")
    return {
        'drawn_card': card,
        'cards_remaining': len(available),
        'next_card_in': cooldown,
    }


@serialized
def process_current_card(game_id, user_id):
    game = load_game(game_id, GameType.LOTERIA)
    _require_host(game, user_id)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    game.current_card = None
    db.session.commit()
    return {'message': 'Card processed, the next one can be drawn'}


@serialized
def reshuffle_cards(game_id, user_id):
    game = load_game(game_id, GameType.LOTERIA)
    _require_host(game, user_id)
    if game.status == GameStatus.FINISHED.value:
        raise InvalidState('The game is finished')
    if not game.drawn_cards:
        raise InvalidState('No cards have been drawn yet')
    deck = new_deck()
    random.shuffle(deck)
    game.available_cards = deck
    game.drawn_cards = []
    game.current_card = None
    db.session.commit()
    current_app.logger.info(f"[reshuffle] game={game.id}")
    return {'message': 'Cards reshuffled', 'cards_remaining': len(deck)}


@serialized
def place_token(game_id, user_id, cell_index):
    game = load_game(game_id, GameType.LOTERIA)
    player = require_player(game, user_id)
    if player.is_host:
        raise Forbidden('The host does not place tokens')
    if player.is_spectator:
        raise Forbidden('Spectators cannot place tokens')
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    try:
        cell_index = int(cell_index)
    except (TypeError, ValueError):
        raise InvalidInput('cell_index must be an integer')
    if not 0 <= cell_index < CARD_CELLS:
        raise InvalidInput(f'cell_index must be between 0 and {CARD_CELLS - 1}')
    marked = list(player.marked_cells or [False] * CARD_CELLS)
    if marked[cell_index]:
        raise Conflict('That cell is already marked')
    if not game.current_card or player.player_card[cell_index] != game.current_card:
        raise InvalidInput('That cell does not match the current card')

    marked[cell_index] = True
    player.marked_cells = marked
    player.tokens_used = (player.tokens_used or 0) + 1
    db.session.commit()
    return {
        'row': cell_index // 4,
        'col': cell_index % 4,
        'cell_index': cell_index,
        'tokens_used': player.tokens_used,
        'can_claim': player.tokens_used == CARD_CELLS,
    }


@serialized
def claim_win(game_id, user_id):
    game = load_game(game_id, GameType.LOTERIA)
    if game.status != GameStatus.IN_PROGRESS.value:
        raise InvalidState('The game is not in progress')
    player = require_player(game, user_id)
    if player.is_host:
        raise Forbidden('The host cannot claim a win')
    if player.is_spectator:
        raise Forbidden('Spectators cannot claim a win')
    if (player.tokens_used or 0) < CARD_CELLS:
        raise InvalidState('Your card is not complete')

    player.claimed_win = True
    transition(game, GameStatus.VERIFICATION)
    game.player_under_review = user_id
    game.review_started_at = utcnow()
    db.session.flush()

    is_valid = verify_win(game, player)
    return {
        'claimed': True,
        'is_valid': is_valid,
        'is_cheater': not is_valid,
        'message': 'You won the game!' if is_valid else 'Invalid claim, you are now a spectator',
    }


def verify_win(game, player):
    """Full-card check: all 16 cells marked and every marked card drawn."""
    if game.status != GameStatus.VERIFICATION.value:
        raise InvalidState('No claim under review')
    drawn = set(game.drawn_cards or [])
    marked_cards = [card for card, marked in zip(player.player_card or [], player.marked_cells or []) if marked]
    is_valid = len(marked_cards) == CARD_CELLS and all(card in drawn for card in marked_cards)

    game.player_under_review = None
    game.review_started_at = None
    if is_valid:
        player.verification_result = 'valid'
        player.result = PlayerResult.WIN.value
        for other in game.players:
            if other.id != player.id:
                other.result = PlayerResult.LOSE.value
        transition(game, GameStatus.FINISHED)
        game.winner = player.user_id
        game.current_card = None
        db.session.commit()
        current_app.logger.info(f"[finish] game={game.id} type=loteria winner={player.user_id}")
        log_action(player.user_id, 'win', 'game', f'Won loteria game {game.code}', {'game_id': game.id})
    else:
        player.verification_result = 'invalid'
        player.is_spectator = True
        player.claimed_win = False
        player.result = PlayerResult.LOSE.value
        game.banned_players = list(game.banned_players or []) + [player.user_id]
        transition(game, GameStatus.IN_PROGRESS)
        db.session.commit()
        current_app.logger.info(f"[claim-rejected] game={game.id} user={player.user_id}")
    return is_valid


@serialized
def kick_player(game_id, host_user_id, kick_user_id):
    game = load_game(game_id, GameType.LOTERIA)
    if not is_lobby(game):
        raise InvalidState('Players can only be kicked in the lobby')
    _require_host(game, host_user_id)
    target = game.player_for(kick_user_id)
    if not target or target.is_host:
        raise NotFound('Player not found or cannot be kicked')
    game.players.remove(target)
    db.session.delete(target)
    db.session.commit()
    log_action(host_user_id, 'kick', 'player_game', f'Kicked user {kick_user_id}', {'game_id': game.id})
    return {'kicked': True, 'kicked_user_id': kick_user_id}


def surrender(game, player):
    """Leaving a running game: the host ends it, anyone else becomes a spectator."""
    if player.id in (game.surrendered_by or []):
        raise Conflict('You already left this game')
    game.surrendered_by = list(game.surrendered_by or []) + [player.id]
    player.result = PlayerResult.LOSE.value
    if player.is_host:
        for p in game.players:
            p.result = PlayerResult.LOSE.value
        transition(game, GameStatus.FINISHED)
        game.winner = None
        game.current_card = None
        db.session.commit()
        current_app.logger.info(f"[finish] game={game.id} type=loteria host_left=True")
        return {'left': True, 'game_over': True, 'message': 'The host left. Game over.'}
    player.is_spectator = True
    player.claimed_win = False
    db.session.commit()
    return {'left': True, 'game_over': False, 'message': 'You left and are now a spectator.'}


def _card_view(p):
    return {
        'user_id': p.user_id,
        'player_card': list(p.player_card or []),
        'marked_cells': list(p.marked_cells or []),
        'tokens_used': p.tokens_used or 0,
        'is_spectator': bool(p.is_spectator),
        'claimed_win': bool(p.claimed_win),
        'user': {'id': p.user.id, 'name': p.user.name} if p.user else None,
    }


def game_status(game, user_id):
    me = require_player(game, user_id)
    base = {
        'game_id': game.id,
        'status': game.status,
        'current_card': game.current_card,
        'drawn_cards': list(game.drawn_cards or []),
        'cards_remaining': len(game.available_cards or []),
        'is_host': bool(me.is_host),
        'player_under_review': game.player_under_review,
        'banned_players': list(game.banned_players or []),
    }
    contestants = [p for p in game.players if not p.is_host]

    if game.status == GameStatus.FINISHED.value:
        winner = game.player_for(game.winner) if game.winner else None
        base.update({
            'game_over': True,
            'winner': game.winner,
            'winner_name': winner.user.name if winner and winner.user else None,
            'winners': [p.user_id for p in contestants if p.result == PlayerResult.WIN.value],
            'losers': [p.user_id for p in contestants if p.result == PlayerResult.LOSE.value],
            'remaining_cards': list(game.available_cards or []),
        })
        if me.is_host:
            base['final_players_cards'] = [_card_view(p) for p in contestants]
        return base

    if me.is_host:
        base['host_view'] = {
            'players_cards': [_card_view(p) for p in contestants],
            'can_draw': bool(game.available_cards) and not game.current_card,
            'can_reshuffle': bool(game.drawn_cards),
            'cards_in_deck': len(game.available_cards or []),
        }
        return base

    base.update({
        'user_id': me.user_id,
        'is_spectator': bool(me.is_spectator),
        'tokens_used': me.tokens_used or 0,
        'my_card': list(me.player_card or []),
        'my_marked_cells': list(me.marked_cells or []),
        'result': me.result,
        'players_info': [
            {
                'user_id': p.user_id,
                'tokens_used': p.tokens_used or 0,
                'is_spectator': bool(p.is_spectator),
                'claimed_win': bool(p.claimed_win),
            }
            for p in contestants if p.user_id != user_id
        ],
    })
    return base


def lobby_status(game, user_id):
    me = require_player(game, user_id)
    host = next((p for p in game.players if p.is_host), None)
    return {
        'game_id': game.id,
        'code': game.code,
        'status': game.status,
        'min_players': game.min_players,
        'max_players': game.max_players,
        'current_players': len(game.players),
        'is_host': bool(me.is_host),
        'my_card_generated': bool(me.card_generated),
        'my_ready': me.ready,
        'can_start': ready_to_start(game),
        'host': {
            'user_id': host.user_id,
            'user': host.user.to_public_dict() if host.user else None,
        } if host else None,
        'players': [
            {
                'user_id': p.user_id,
                'ready': p.ready,
                'card_generated': bool(p.card_generated),
                'is_host': False,
                'user': p.user.to_public_dict() if p.user else None,
            }
            for p in game.players if not p.is_host
        ],
    }
