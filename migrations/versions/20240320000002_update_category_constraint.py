"""update_category_constraint

Deleting a category removes its products instead of being blocked.

Revision ID: 20240320000002
Revises: 20240301000000
Create Date: 2024-03-20 00:00:02.000000

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '20240320000002'
down_revision: Union[str, None] = '20240301000000'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _replace_category_fk(ondelete: str) -> None:
    with op.batch_alter_table('products') as batch_op:
        batch_op.drop_constraint('products_category_id_fkey', type_='foreignkey')
        batch_op.create_foreign_key(
            'products_category_id_fkey',
            'categories',
            ['category_id'],
            ['id'],
            ondelete=ondelete,
            onupdate='CASCADE',
        )


def upgrade() -> None:
    _replace_category_fk('CASCADE')


def downgrade() -> None:
    _replace_category_fk('RESTRICT')
