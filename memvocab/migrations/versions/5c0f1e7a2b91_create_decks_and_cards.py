"""create decks and cards

Revision ID: 5c0f1e7a2b91
Revises:
Create Date: 2025-06-02 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c0f1e7a2b91'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DECK_INDEXES = ('topic', 'description', 'language_from', 'language_to', 'amount')
CARD_INDEXES = (
    'deck_id', 'source_language', 'target_language',
    'source_word', 'target_word', 'pronunciation', 'remark',
)


def upgrade() -> None:
    """Schema version 1: decks store their card amount."""
    op.create_table(
        'decks',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('topic', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('language_from', sa.String(length=64), nullable=False),
        sa.Column('language_to', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('prompt_to_ai_agent', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in DECK_INDEXES:
        op.create_index(f'ix_decks_{column}', 'decks', [column])

    op.create_table(
        'cards',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('deck_id', sa.String(length=64), nullable=False),
        sa.Column('source_language', sa.String(length=64), nullable=False),
        sa.Column('target_language', sa.String(length=64), nullable=False),
        sa.Column('source_word', sa.Text(), nullable=False),
        sa.Column('target_word', sa.Text(), nullable=False),
        sa.Column('pronunciation', sa.Text(), nullable=False, server_default=''),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in CARD_INDEXES:
        op.create_index(f'ix_cards_{column}', 'cards', [column])


def downgrade() -> None:
    for column in CARD_INDEXES:
        op.drop_index(f'ix_cards_{column}', table_name='cards')
    op.drop_table('cards')
    for column in DECK_INDEXES:
        op.drop_index(f'ix_decks_{column}', table_name='decks')
    op.drop_table('decks')
