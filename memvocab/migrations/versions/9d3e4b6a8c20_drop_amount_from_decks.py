"""drop amount from decks

Revision ID: 9d3e4b6a8c20
Revises: 5c0f1e7a2b91
Create Date: 2025-06-16 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '9d3e4b6a8c20'
down_revision: Union[str, Sequence[str], None] = '5c0f1e7a2b91'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Schema version 2: the card amount is computed from cards at read time.

    The table is recreated and every row copied without the column, so no
    stored deck keeps a stale amount.
    """
    with op.batch_alter_table('decks', recreate='always') as batch_op:
        batch_op.drop_index('ix_decks_amount')
        batch_op.drop_column('amount')


def downgrade() -> None:
    with op.batch_alter_table('decks', recreate='always') as batch_op:
        batch_op.add_column(sa.Column('amount', sa.Integer(), nullable=True, server_default='0'))
        batch_op.create_index('ix_decks_amount', ['amount'])
