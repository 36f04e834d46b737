"""workout log schema: exercises, sessions, sets, profile, chat

Revision ID: 4b1e0c7d2a91
Revises:
Create Date: 2026-10-19 10:12:03.118204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b1e0c7d2a91'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

message_role = sa.Enum('user', 'assistant', name='message_role')


def upgrade() -> None:
    # 1) exercise catalog
    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('muscle_group', sa.String(length=32), nullable=False, server_default='Other'),
        sa.Column('best_weight', sa.Float(), nullable=True),
        sa.Column('best_volume', sa.Float(), nullable=True),
        sa.Column('hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_exercises_name', 'exercises', ['name'], unique=True)

    # 2) sessions
    op.create_table(
        'workout_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('label', sa.String(length=120), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('end_time', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_workout_sessions_start_time', 'workout_sessions', ['start_time'])
    op.create_index('ix_workout_sessions_end_time', 'workout_sessions', ['end_time'])

    # 3) exercise occurrences within a session
    op.create_table(
        'workout_exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('workout_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exercise_id', sa.Integer(), sa.ForeignKey('exercises.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('session_id', 'exercise_id', name='uq_workout_exercise_session_exercise'),
    )
    op.create_index('ix_workout_exercises_session_id', 'workout_exercises', ['session_id'])
    op.create_index('ix_workout_exercises_exercise_id', 'workout_exercises', ['exercise_id'])

    # 4) sets
    op.create_table(
        'workout_sets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('workout_exercise_id', sa.Integer(), sa.ForeignKey('workout_exercises.id', ondelete='CASCADE'), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False, server_default='0'),
        sa.Column('reps', sa.Integer(), nullable=False),
        sa.Column('rpe', sa.Integer(), nullable=True),
        sa.Column('is_pr', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('weight >= 0', name='ck_workout_sets_weight_non_negative'),
        sa.CheckConstraint('reps > 0', name='ck_workout_sets_reps_positive'),
    )
    op.create_index('ix_workout_sets_workout_exercise_id', 'workout_sets', ['workout_exercise_id'])

    # 5) profile + chat history
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('weight_lbs', sa.Float(), nullable=True),
        sa.Column('height_inches', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('role', message_role, nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('workout_sessions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('logged_payload', sa.JSON(), nullable=True),
    )
    op.create_index('ix_chat_messages_timestamp', 'chat_messages', ['timestamp'])


def downgrade() -> None:
    op.drop_index('ix_chat_messages_timestamp', table_name='chat_messages')
    op.drop_table('chat_messages')
    op.drop_table('user_profiles')
    op.drop_index('ix_workout_sets_workout_exercise_id', table_name='workout_sets')
    op.drop_table('workout_sets')
    op.drop_index('ix_workout_exercises_exercise_id', table_name='workout_exercises')
    op.drop_index('ix_workout_exercises_session_id', table_name='workout_exercises')
    op.drop_table('workout_exercises')
    op.drop_index('ix_workout_sessions_end_time', table_name='workout_sessions')
    op.drop_index('ix_workout_sessions_start_time', table_name='workout_sessions')
    op.drop_table('workout_sessions')
    op.drop_index('ix_exercises_name', table_name='exercises')
    op.drop_table('exercises')
    message_role.drop(op.get_bind(), checkfirst=True)
