"""create question bank and match record tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'question' not in existing_tables:
        op.create_table(
            'question',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('question', sa.Text(), nullable=False),
            sa.Column('options', sa.JSON(), nullable=False),
            sa.Column('correct_index', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )

    if 'question_club' not in existing_tables:
        op.create_table(
            'question_club',
            sa.Column('question_id', sa.String(length=64), sa.ForeignKey('question.id'), primary_key=True),
            sa.Column('club_id', sa.String(length=64), primary_key=True),
        )
        op.create_index('ix_question_club_club_id', 'question_club', ['club_id'])

    if 'match_record' not in existing_tables:
        op.create_table(
            'match_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('match_id', sa.String(length=64), nullable=True, unique=True),
            sa.Column('player1_id', sa.String(length=64), nullable=False),
            sa.Column('player2_id', sa.String(length=64), nullable=False),
            sa.Column('questions', sa.JSON(), nullable=False),
            sa.Column('p1_score', sa.Integer(), nullable=False),
            sa.Column('p2_score', sa.Integer(), nullable=False),
            sa.Column('winner_id', sa.String(length=64), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_match_record_player1_id', 'match_record', ['player1_id'])
        op.create_index('ix_match_record_player2_id', 'match_record', ['player2_id'])
        op.create_index('ix_match_record_created_at', 'match_record', ['created_at'])


def downgrade():
    op.drop_index('ix_match_record_created_at', table_name='match_record')
    op.drop_index('ix_match_record_player2_id', table_name='match_record')
    op.drop_index('ix_match_record_player1_id', table_name='match_record')
    op.drop_table('match_record')
    op.drop_index('ix_question_club_club_id', table_name='question_club')
    op.drop_table('question_club')
    op.drop_table('question')
