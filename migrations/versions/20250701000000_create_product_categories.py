"""create_product_categories

Products move from a single category_id column to the product_categories
association table. Existing links are copied before the column is dropped.

The downgrade is LOSSY: category_id comes back empty and every link in
product_categories is discarded.

Revision ID: 20250701000000
Revises: 20250618010000
Create Date: 2025-07-01 00:00:00.000000

"""
import logging
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

logger = logging.getLogger(__name__)


# revision identifiers, used by Alembic.
revision: str = '20250701000000'
down_revision: Union[str, None] = '20250618010000'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'product_categories',
        sa.Column(
            'product_id',
            sa.Integer(),
            sa.ForeignKey('products.id', ondelete='CASCADE'),
            primary_key=True,
            nullable=False,
        ),
        sa.Column(
            'category_id',
            sa.Integer(),
            sa.ForeignKey('categories.id', ondelete='CASCADE'),
            primary_key=True,
            nullable=False,
        ),
    )

    op.execute(
        "INSERT INTO product_categories (product_id, category_id) "
        "SELECT id, category_id FROM products WHERE category_id IS NOT NULL"
    )

    with op.batch_alter_table('products') as batch_op:
        batch_op.drop_constraint('products_category_id_fkey', type_='foreignkey')
        batch_op.drop_column('category_id')


def downgrade() -> None:
    logger.warning(
        "Downgrading 20250701000000 is lossy: products.category_id is re-added "
        "empty and all product_categories links are dropped"
    )

    with op.batch_alter_table('products') as batch_op:
        batch_op.add_column(sa.Column('category_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            'products_category_id_fkey',
            'categories',
            ['category_id'],
            ['id'],
            ondelete='SET NULL',
        )

    op.drop_table('product_categories')
