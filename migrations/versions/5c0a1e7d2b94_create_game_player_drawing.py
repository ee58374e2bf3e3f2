"""create game, player and drawing tables

Revision ID: 5c0a1e7d2b94
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c0a1e7d2b94'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=64), nullable=False),
        sa.Column('number_of_players', sa.Integer(), nullable=False),
        sa.Column('games_parts', sa.JSON(), nullable=False),
        sa.Column('drawing_time', sa.Float(), nullable=True),
        sa.Column('join', sa.Boolean(), nullable=False),
        sa.Column('start_game', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('game') as batch_op:
        batch_op.create_index(batch_op.f('ix_game_game_code'), ['game_code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=64), nullable=False),
        sa.Column('player_name', sa.String(length=128), nullable=False),
        sa.Column('player_number', sa.Integer(), nullable=True),
        sa.Column('player_image', sa.Text(), nullable=True),
        sa.Column('player_body_images', sa.JSON(), nullable=False),
        sa.Column('player_body_parts_with_player_names', sa.JSON(), nullable=False),
        sa.Column('player_current_step', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('player') as batch_op:
        batch_op.create_index(batch_op.f('ix_player_game_id'), ['game_id'], unique=False)

    op.create_table(
        'drawing',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=64), nullable=False),
        sa.Column('player_name', sa.String(length=128), nullable=False),
        sa.Column('player_part', sa.String(length=64), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('drawing_points', sa.JSON(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=True),
        sa.Column('player_image', sa.Text(), nullable=True),
        sa.Column('player_drawing', sa.Text(), nullable=True),
        sa.Column('drawed_parts_of_player', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_code', 'player_name', 'player_part', 'chunk_index', name='uq_drawing_chunk'),
    )
    with op.batch_alter_table('drawing') as batch_op:
        batch_op.create_index(batch_op.f('ix_drawing_game_code'), ['game_code'], unique=False)


def downgrade():
    with op.batch_alter_table('drawing') as batch_op:
        batch_op.drop_index(batch_op.f('ix_drawing_game_code'))
    op.drop_table('drawing')
    with op.batch_alter_table('player') as batch_op:
        batch_op.drop_index(batch_op.f('ix_player_game_id'))
    op.drop_table('player')
    with op.batch_alter_table('game') as batch_op:
        batch_op.drop_index(batch_op.f('ix_game_game_code'))
    op.drop_table('game')
