"""add_phone_number_to_orders

Revision ID: 20250618010000
Revises: 20240320000002
Create Date: 2025-06-18 01:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20250618010000'
down_revision: Union[str, None] = '20240320000002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('orders', sa.Column('phone_number', sa.String(length=50), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('orders') as batch_op:
        batch_op.drop_column('phone_number')
