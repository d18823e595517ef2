"""create player and score_record tables

Revision ID: 4b7e2a91c0de
Revises:
Create Date: 2025-09-02 10:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4b7e2a91c0de'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('badge_id', sa.String(length=128), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('total_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('last_played', sa.DateTime(timezone=True), nullable=True),
            sa.Column('game_stats', sa.JSON(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_player_badge_id', 'player', ['badge_id'], unique=True)

    if 'score_record' not in existing_tables:
        op.create_table(
            'score_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id'), nullable=False),
            sa.Column('game_name', sa.String(length=64), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False),
            sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('duration', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_score_record_player_game', 'score_record', ['player_id', 'game_name'])
        op.create_index('ix_score_record_game_score', 'score_record', ['game_name', 'score'])
        op.create_index('ix_score_record_game_level_score', 'score_record', ['game_name', 'level', 'score'])


def downgrade():
    op.drop_index('ix_score_record_game_level_score', table_name='score_record')
    op.drop_index('ix_score_record_game_score', table_name='score_record')
    op.drop_index('ix_score_record_player_game', table_name='score_record')
    op.drop_table('score_record')
    op.drop_index('ix_player_badge_id', table_name='player')
    op.drop_table('player')
