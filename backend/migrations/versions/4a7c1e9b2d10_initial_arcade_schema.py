"""initial arcade schema: users, tokens, games, player games, moves, audit log

Revision ID: 4a7c1e9b2d10
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4a7c1e9b2d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('wins', sa.Integer(), nullable=False),
        sa.Column('losses', sa.Integer(), nullable=False),
        sa.Column('exp', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('precision', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'refresh_token',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    op.create_index('ix_refresh_token_user_id', 'refresh_token', ['user_id'])

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=8), nullable=False),
        sa.Column('game_type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('current_turn_user_id', sa.Integer(), nullable=True),
        sa.Column('winner', sa.Integer(), nullable=True),
        sa.Column('surrendered_by', sa.JSON(), nullable=False),
        sa.Column('rematch_requested_by', sa.JSON(), nullable=False),
        sa.Column('rematch_game_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        # battleship
        sa.Column('board_size', sa.Integer(), nullable=True),
        sa.Column('ship_count', sa.Integer(), nullable=True),
        # loteria
        sa.Column('min_players', sa.Integer(), nullable=True),
        sa.Column('max_players', sa.Integer(), nullable=True),
        sa.Column('host_user_id', sa.Integer(), nullable=True),
        sa.Column('current_card', sa.String(length=32), nullable=True),
        sa.Column('drawn_cards', sa.JSON(), nullable=True),
        sa.Column('available_cards', sa.JSON(), nullable=True),
        sa.Column('player_under_review', sa.Integer(), nullable=True),
        sa.Column('review_started_at', sa.DateTime(), nullable=True),
        sa.Column('banned_players', sa.JSON(), nullable=True),
        sa.Column('draw_cooldown_seconds', sa.Integer(), nullable=True),
        sa.Column('last_draw_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_code', 'game', ['code'])

    op.create_table(
        'player_game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('game_type', sa.String(length=16), nullable=False),
        sa.Column('result', sa.String(length=16), nullable=False),
        sa.Column('ready', sa.Boolean(), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(), nullable=True),
        # battleship
        sa.Column('board', sa.JSON(), nullable=True),
        sa.Column('ships_sunk', sa.Integer(), nullable=True),
        sa.Column('ships_lost', sa.Integer(), nullable=True),
        # simonsay
        sa.Column('custom_colors', sa.JSON(), nullable=True),
        sa.Column('sequence', sa.JSON(), nullable=True),
        sa.Column('current_sequence_index', sa.Integer(), nullable=True),
        # loteria
        sa.Column('player_card', sa.JSON(), nullable=True),
        sa.Column('marked_cells', sa.JSON(), nullable=True),
        sa.Column('tokens_used', sa.Integer(), nullable=True),
        sa.Column('is_host', sa.Boolean(), nullable=True),
        sa.Column('is_spectator', sa.Boolean(), nullable=True),
        sa.Column('card_generated', sa.Boolean(), nullable=True),
        sa.Column('claimed_win', sa.Boolean(), nullable=True),
        sa.Column('verification_result', sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'game_id', name='uq_player_game_user_game'),
    )
    op.create_index('ix_player_game_user_id', 'player_game', ['user_id'])
    op.create_index('ix_player_game_game_id', 'player_game', ['game_id'])

    op.create_table(
        'move',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_game_id', sa.Integer(), nullable=False),
        sa.Column('x', sa.Integer(), nullable=False),
        sa.Column('y', sa.Integer(), nullable=False),
        sa.Column('hit', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['player_game_id'], ['player_game.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_move_player_game_id', 'move', ['player_game_id'])

    op.create_table(
        'simon_move',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_game_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['player_game_id'], ['player_game.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_simon_move_player_game_id', 'simon_move', ['player_game_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('table_name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_log_user_id', 'audit_log', ['user_id'])


def downgrade():
    op.drop_index('ix_audit_log_user_id', table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_index('ix_simon_move_player_game_id', table_name='simon_move')
    op.drop_table('simon_move')
    op.drop_index('ix_move_player_game_id', table_name='move')
    op.drop_table('move')
    op.drop_index('ix_player_game_game_id', table_name='player_game')
    op.drop_index('ix_player_game_user_id', table_name='player_game')
    op.drop_table('player_game')
    op.drop_index('ix_game_code', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_refresh_token_user_id', table_name='refresh_token')
    op.drop_table('refresh_token')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
