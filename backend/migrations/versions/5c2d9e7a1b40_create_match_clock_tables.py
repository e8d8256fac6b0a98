"""create user, team, game, ball_possession and game_event tables

Revision ID: 5c2d9e7a1b40
Revises: 
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('user') as batch_op:
        batch_op.create_index(batch_op.f('ix_user_username'), ['username'], unique=True)

    op.create_table(
        'team',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('home_team_id', sa.Integer(), nullable=False),
        sa.Column('away_team_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('home_score', sa.Integer(), nullable=False),
        sa.Column('away_score', sa.Integer(), nullable=False),
        sa.Column('current_period', sa.Integer(), nullable=False),
        sa.Column('number_of_periods', sa.Integer(), nullable=False),
        sa.Column('period_duration', sa.Integer(), nullable=False),
        sa.Column('time_remaining', sa.Integer(), nullable=True),
        sa.Column('timer_state', sa.String(length=16), nullable=False),
        sa.Column('timer_started_at', sa.Float(), nullable=True),
        sa.Column('timer_paused_at', sa.Float(), nullable=True),
        sa.Column('updated_at', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['home_team_id'], ['team.id']),
        sa.ForeignKeyConstraint(['away_team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'ball_possession',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('period', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.Float(), nullable=False),
        sa.Column('ended_at', sa.Float(), nullable=True),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('shots_taken', sa.Integer(), nullable=False),
        sa.Column('result', sa.String(length=20), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('ball_possession') as batch_op:
        batch_op.create_index(batch_op.f('ix_ball_possession_game_id'), ['game_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_ball_possession_team_id'), ['team_id'], unique=False)

    op.create_table(
        'game_event',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=32), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('period', sa.Integer(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('game_event') as batch_op:
        batch_op.create_index(batch_op.f('ix_game_event_game_id'), ['game_id'], unique=False)


def downgrade():
    with op.batch_alter_table('game_event') as batch_op:
        batch_op.drop_index(batch_op.f('ix_game_event_game_id'))
    op.drop_table('game_event')
    with op.batch_alter_table('ball_possession') as batch_op:
        batch_op.drop_index(batch_op.f('ix_ball_possession_team_id'))
        batch_op.drop_index(batch_op.f('ix_ball_possession_game_id'))
    op.drop_table('ball_possession')
    op.drop_table('game')
    op.drop_table('team')
    with op.batch_alter_table('user') as batch_op:
        batch_op.drop_index(batch_op.f('ix_user_username'))
    op.drop_table('user')
