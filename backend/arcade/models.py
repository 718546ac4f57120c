from arcade import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import uuid


def utcnow():
    """Naive UTC timestamp (sqlite drops tzinfo on the way back)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    wins = db.Column(db.Integer, default=0, nullable=False)
    losses = db.Column(db.Integer, default=0, nullable=False)
    exp = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    precision = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'wins': self.wins,
            'losses': self.losses,
            'exp': self.exp,
            'level': self.level,
            'precision': self.precision,
        }

    def to_public_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'wins': self.wins,
            'losses': self.losses,
            'level': self.level,
            'exp': self.exp,
        }


class RefreshToken(db.Model):
    __tablename__ = 'refresh_token'
    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.Text, nullable=False, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)


# Statuses in which a join code is still claimable.
LOBBY_CODES = ('waiting', 'started', 'card_selection')


def generate_game_code(length=8):
    """Generate a join code that no lobby game is currently using."""
    while True:
        code = uuid.uuid4().hex[:length].upper()
        if not Game.query.filter(Game.code == code, Game.status.in_(LOBBY_CODES)).first():
            return code


class Game(db.Model):
    """One match. Concrete rules live on the per-type subclasses below,
    all stored in the single ``game`` table and told apart by ``game_type``."""
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), nullable=False, index=True)
    game_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(32), nullable=False, default='waiting')
    current_turn_user_id = db.Column(db.Integer, nullable=True)
    winner = db.Column(db.Integer, nullable=True)
    # Lists of PlayerGame ids
    surrendered_by = db.Column(db.JSON, nullable=False, default=list)
    rematch_requested_by = db.Column(db.JSON, nullable=False, default=list)
    rematch_game_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    players = db.relationship(
        'PlayerGame',
        back_populates='game',
        order_by='PlayerGame.id',
    )

    __mapper_args__ = {'polymorphic_on': game_type}

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.code:
            self.code = generate_game_code()
        if self.status is None:
            self.status = 'waiting'
        if self.surrendered_by is None:
            self.surrendered_by = []
        if self.rematch_requested_by is None:
            self.rematch_requested_by = []

    @property
    def host(self):
        return self.players[0] if self.players else None

    def player_for(self, user_id):
        for p in self.players:
            if p.user_id == user_id:
                return p
        return None

    def opponent_of(self, user_id):
        for p in self.players:
            if p.user_id != user_id:
                return p
        return None

    def settings(self):
        """Creation settings carried over to a rematch."""
        return {}

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'game_type': self.game_type,
            'status': self.status,
            'current_turn_user_id': self.current_turn_user_id,
            'winner': self.winner,
            'players': [p.to_dict() for p in self.players],
            'surrendered_by': list(self.surrendered_by or []),
            'rematch_requested_by': list(self.rematch_requested_by or []),
            'rematch_game_id': self.rematch_game_id,
        }


class BattleshipGame(Game):
    board_size = db.Column(db.Integer, nullable=True)
    ship_count = db.Column(db.Integer, nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'battleship'}

    def settings(self):
        return {'board_size': self.board_size, 'ship_count': self.ship_count}


class SimonSayGame(Game):
    __mapper_args__ = {'polymorphic_identity': 'simonsay'}


class LoteriaGame(Game):
    min_players = db.Column(db.Integer, nullable=True)
    max_players = db.Column(db.Integer, nullable=True)
    host_user_id = db.Column(db.Integer, nullable=True)
    current_card = db.Column(db.String(32), nullable=True)
    drawn_cards = db.Column(db.JSON, nullable=True)
    available_cards = db.Column(db.JSON, nullable=True)
    player_under_review = db.Column(db.Integer, nullable=True)
    review_started_at = db.Column(db.DateTime, nullable=True)
    banned_players = db.Column(db.JSON, nullable=True)
    draw_cooldown_seconds = db.Column(db.Integer, nullable=True)
    last_draw_at = db.Column(db.DateTime, nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'loteria'}

    def settings(self):
        return {
            'min_players': self.min_players,
            'max_players': self.max_players,
            'draw_cooldown_seconds': self.draw_cooldown_seconds,
        }


class PlayerGame(db.Model):
    """Per-user state inside one game; same single-table layout as Game."""
    __tablename__ = 'player_game'
    __table_args__ = (db.UniqueConstraint('user_id', 'game_id', name='uq_player_game_user_game'),)
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    game_type = db.Column(db.String(16), nullable=False)
    result = db.Column(db.String(16), nullable=False, default='pending')
    ready = db.Column(db.Boolean, nullable=False, default=False)
    last_seen_at = db.Column(db.DateTime, nullable=True)

    game = db.relationship('Game', back_populates='players')
    user = db.relationship('User')

    __mapper_args__ = {'polymorphic_on': game_type}

    def __init__(self, **kwargs):
        super(PlayerGame, self).__init__(**kwargs)
        if self.result is None:
            self.result = 'pending'
        if self.ready is None:
            self.ready = False

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'game_id': self.game_id,
            'result': self.result,
            'ready': self.ready,
        }


class BattleshipPlayer(PlayerGame):
    board = db.Column(db.JSON, nullable=True)
    ships_sunk = db.Column(db.Integer, nullable=True)
    ships_lost = db.Column(db.Integer, nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'battleship'}

    def __init__(self, **kwargs):
        kwargs.setdefault('board', [])
        kwargs.setdefault('ships_sunk', 0)
        kwargs.setdefault('ships_lost', 0)
        super(BattleshipPlayer, self).__init__(**kwargs)


class SimonSayPlayer(PlayerGame):
    custom_colors = db.Column(db.JSON, nullable=True)
    sequence = db.Column(db.JSON, nullable=True)
    current_sequence_index = db.Column(db.Integer, nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'simonsay'}

    def __init__(self, **kwargs):
        kwargs.setdefault('custom_colors', [])
        kwargs.setdefault('sequence', [])
        kwargs.setdefault('current_sequence_index', 0)
        super(SimonSayPlayer, self).__init__(**kwargs)


class LoteriaPlayer(PlayerGame):
    player_card = db.Column(db.JSON, nullable=True)
    marked_cells = db.Column(db.JSON, nullable=True)
    tokens_used = db.Column(db.Integer, nullable=True)
    is_host = db.Column(db.Boolean, nullable=True)
    is_spectator = db.Column(db.Boolean, nullable=True)
    card_generated = db.Column(db.Boolean, nullable=True)
    claimed_win = db.Column(db.Boolean, nullable=True)
    verification_result = db.Column(db.String(16), nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'loteria'}

    def __init__(self, **kwargs):
        kwargs.setdefault('player_card', [])
        kwargs.setdefault('marked_cells', [False] * 16)
        kwargs.setdefault('tokens_used', 0)
        kwargs.setdefault('is_host', False)
        kwargs.setdefault('is_spectator', False)
        kwargs.setdefault('card_generated', False)
        kwargs.setdefault('claimed_win', False)
        super(LoteriaPlayer, self).__init__(**kwargs)


class Move(db.Model):
    """Append-only battleship attack record."""
    __tablename__ = 'move'
    id = db.Column(db.Integer, primary_key=True)
    player_game_id = db.Column(db.Integer, db.ForeignKey('player_game.id'), nullable=False, index=True)
    x = db.Column(db.Integer, nullable=False)
    y = db.Column(db.Integer, nullable=False)
    hit = db.Column(db.Boolean, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'player_game_id': self.player_game_id,
            'x': self.x,
            'y': self.y,
            'hit': self.hit,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class SimonMove(db.Model):
    """Append-only record of a sequence handed to a Simon Says player."""
    __tablename__ = 'simon_move'
    id = db.Column(db.Integer, primary_key=True)
    player_game_id = db.Column(db.Integer, db.ForeignKey('player_game.id'), nullable=False, index=True)
    sequence = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)


class AuditLog(db.Model):
    __tablename__ = 'audit_log'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    action = db.Column(db.String(64), nullable=False)
    table_name = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    details = db.Column('metadata', db.JSON, nullable=True)
    timestamp = db.Column(db.DateTime, default=utcnow)
