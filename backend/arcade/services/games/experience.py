from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from arcade import db
from arcade.models import User, Game, PlayerGame, BattleshipPlayer, Move
from .errors import NotFound, Forbidden, InvalidInput
from .generators import mask_board
from .status import GameStatus, GameType, PlayerResult


def _add_exp(user: User, amount: int) -> None:
    """Add experience and convert every full EXP_PER_LEVEL into a level."""
    per_level = int(current_app.config.get('EXP_PER_LEVEL', 1000))
    user.exp = int(user.exp or 0) + amount
    while per_level > 0 and user.exp >= per_level:
        user.exp -= per_level
        user.level = int(user.level or 1) + 1


def grant_win_experience(user_id: int) -> None:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    user.wins = int(user.wins or 0) + 1
    _add_exp(user, int(current_app.config.get('WIN_EXP', 250)))
    db.session.add(user)
    db.session.commit()


def grant_loss_experience(user_id: int) -> None:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    user.losses = int(user.losses or 0) + 1
    _add_exp(user, int(current_app.config.get('LOSS_EXP', 125)))
    db.session.add(user)
    db.session.commit()


def award_experience(winner_id: int, loser_id: int) -> bool:
    """Grant win/loss experience after a finished game.

    Runs after the result is committed; failures are logged and swallowed.
    """
    try:
        grant_win_experience(winner_id)
        grant_loss_experience(loser_id)
        return True
    except (NotFound, SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception(f"[exp] failed granting experience winner={winner_id} loser={loser_id}")
        return False


def update_precision(user_id: int) -> None:
    """precision = round(100 * hits / moves) over every battleship move of the user."""
    moves = (
        Move.query.join(PlayerGame, Move.player_game_id == PlayerGame.id)
        .filter(PlayerGame.user_id == user_id)
        .all()
    )
    user = db.session.get(User, user_id)
    if not user:
        return
    hits = sum(1 for m in moves if m.hit)
    user.precision = round(hits * 100 / len(moves)) if moves else 0
    db.session.add(user)


def battleship_stats(user_id: int) -> dict:
    won, lost = [], []
    for pg in BattleshipPlayer.query.filter_by(user_id=user_id).order_by(BattleshipPlayer.id).all():
        if pg.result not in (PlayerResult.WIN.value, PlayerResult.LOSE.value):
            continue
        game = pg.game
        opponent = game.opponent_of(user_id) if game else None
        summary = {
            'game_id': game.id,
            'code': game.code,
            'date': game.created_at.isoformat() if game.created_at else None,
            'ships_sunk': pg.ships_sunk or 0,
            'ships_lost': pg.ships_lost or 0,
            'opponent_user_id': opponent.user_id if opponent else None,
        }
        (won if pg.result == PlayerResult.WIN.value else lost).append(summary)
    return {
        'wins': len(won),
        'losses': len(lost),
        'won_games': won,
        'lost_games': lost,
    }


def game_details(game_id: int, user_id: int) -> dict:
    game = Game.query.filter_by(id=game_id).first()
    if not game or game.game_type != GameType.BATTLESHIP.value:
        raise InvalidInput('Not a valid battleship game')
    me = game.player_for(user_id)
    if not me:
        raise Forbidden('You are not a player in this game')
    opponent = game.opponent_of(user_id)
    opponent_board = None
    if opponent:
        # Unhit ships stay hidden until the game is over
        finished = game.status == GameStatus.FINISHED.value
        opponent_board = opponent.board if finished else mask_board(opponent.board)
    moves = Move.query.filter_by(player_game_id=me.id).order_by(Move.id).all()
    hits = sum(1 for m in moves if m.hit)
    return {
        'game_id': game.id,
        'board': me.board or [],
        'opponent_board': opponent_board,
        'result': me.result,
        'ships_sunk': me.ships_sunk or 0,
        'ships_lost': me.ships_lost or 0,
        'moves': [m.to_dict() for m in moves],
        'accuracy': (hits * 100.0 / len(moves)) if moves else 0,
    }
