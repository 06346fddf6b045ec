"""
Tests for the Alembic revisions, run against a temporary SQLite file.
"""
import logging

import pytest
from sqlalchemy import create_engine, inspect, text

from bookstore.core.exceptions import MigrationError
from bookstore.db import migrate

HEAD = "20250701000000"


@pytest.fixture
def sync_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrations.db'}")
    yield engine
    engine.dispose()


def _upgrade(engine, revision="head"):
    with engine.connect() as connection:
        migrate.upgrade(revision, connection=connection)


def _downgrade(engine, revision="-1"):
    with engine.connect() as connection:
        migrate.downgrade(revision, connection=connection)


def _columns(engine, table):
    return {c["name"] for c in inspect(engine).get_columns(table)}


class TestMigrations:
    """Test schema upgrades and downgrades."""

    def test_upgrade_to_head(self, sync_engine):
        _upgrade(sync_engine)

        tables = set(inspect(sync_engine).get_table_names())
        assert {
            "users", "products", "categories", "product_categories", "carts", "cart_items",
            "orders", "order_details", "payments", "reviews", "wishlists",
        } <= tables
        assert "category_id" not in _columns(sync_engine, "products")
        assert "phone_number" in _columns(sync_engine, "orders")

        with sync_engine.connect() as connection:
            assert migrate.current_revision(connection) == HEAD

    def test_join_table_downgrade_restores_empty_column(self, sync_engine, caplog):
        _upgrade(sync_engine)
        with sync_engine.begin() as connection:
            connection.execute(text(
                "INSERT INTO categories (id, name) VALUES (1, 'Fiction')"
            ))
            connection.execute(text(
                "INSERT INTO products (id, title, author, description, price, stock, sales_count, featured) "
                "VALUES (1, 'Dune', 'Frank Herbert', 'Desert planet.', 19.99, 3, 0, 0)"
            ))
            connection.execute(text(
                "INSERT INTO product_categories (product_id, category_id) VALUES (1, 1)"
            ))

        with caplog.at_level(logging.WARNING):
            _downgrade(sync_engine)

        assert "product_categories" not in inspect(sync_engine).get_table_names()
        assert "category_id" in _columns(sync_engine, "products")
        assert any("lossy" in record.getMessage() for record in caplog.records)

        with sync_engine.connect() as connection:
            values = connection.execute(text("SELECT category_id FROM products")).scalars().all()
            assert values == [None]
            assert migrate.current_revision(connection) == "20250618010000"

    def test_join_table_upgrade_copies_existing_links(self, sync_engine):
        _upgrade(sync_engine, "20250618010000")
        with sync_engine.begin() as connection:
            connection.execute(text("INSERT INTO categories (id, name) VALUES (1, 'Fiction'), (2, 'Mystery')"))
            connection.execute(text(
                "INSERT INTO products (id, title, author, description, price, stock, sales_count, featured, "
                "category_id) VALUES "
                "(1, 'Dune', 'Frank Herbert', 'Desert planet.', 19.99, 3, 0, 0, 1), "
                "(2, 'Rebecca', 'Daphne du Maurier', 'Manderley.', 9.99, 1, 0, 0, 2), "
                "(3, 'Untagged', 'Anon', 'No category.', 5.00, 1, 0, 0, NULL)"
            ))

        _upgrade(sync_engine)

        with sync_engine.connect() as connection:
            links = connection.execute(text(
                "SELECT product_id, category_id FROM product_categories ORDER BY product_id"
            )).all()
        assert [tuple(row) for row in links] == [(1, 1), (2, 2)]

    def test_phone_number_revision(self, sync_engine):
        _upgrade(sync_engine, "20240320000002")
        assert "phone_number" not in _columns(sync_engine, "orders")

        _upgrade(sync_engine, "20250618010000")
        assert "phone_number" in _columns(sync_engine, "orders")

    def test_category_fk_revision(self, sync_engine):
        _upgrade(sync_engine, "20240301000000")
        fks = inspect(sync_engine).get_foreign_keys("products")
        assert [fk["options"].get("ondelete") for fk in fks if fk["name"] == "products_category_id_fkey"] == ["RESTRICT"]

        _upgrade(sync_engine, "20240320000002")
        fks = inspect(sync_engine).get_foreign_keys("products")
        assert [fk["options"].get("ondelete") for fk in fks if fk["name"] == "products_category_id_fkey"] == ["CASCADE"]

    def test_full_downgrade(self, sync_engine):
        _upgrade(sync_engine)
        _downgrade(sync_engine, "base")

        assert set(inspect(sync_engine).get_table_names()) <= {"alembic_version"}

    def test_unknown_revision_raises_migration_error(self, sync_engine):
        with pytest.raises(MigrationError) as exc_info:
            _upgrade(sync_engine, "does_not_exist")
        assert exc_info.value.details["target"] == "does_not_exist"

    def test_failed_revision_rolls_back_its_ddl(self, sync_engine, tmp_path):
        extra = tmp_path / "extra_versions"
        extra.mkdir()
        (extra / "29990101000000_broken_revision.py").write_text(
            '"""broken revision"""\n'
            "import sqlalchemy as sa\n"
            "from alembic import op\n"
            "\n"
            'revision = "29990101000000"\n'
            f'down_revision = "{HEAD}"\n'
            "branch_labels = None\n"
            "depends_on = None\n"
            "\n"
            "\n"
            "def upgrade():\n"
            '    op.create_table("scratch_notes", sa.Column("id", sa.Integer, primary_key=True))\n'
            '    op.add_column("orders", sa.Column("gift_message", sa.Text, nullable=True))\n'
            '    op.execute("INSERT INTO no_such_table (id) VALUES (1)")\n'
            "\n"
            "\n"
            "def downgrade():\n"
            '    op.drop_column("orders", "gift_message")\n'
            '    op.drop_table("scratch_notes")\n'
        )

        with sync_engine.connect() as connection:
            with pytest.raises(MigrationError) as exc_info:
                migrate.upgrade("heads", connection=connection, version_locations=[extra])
        assert exc_info.value.details["direction"] == "upgrade"

        assert "scratch_notes" not in inspect(sync_engine).get_table_names()
        assert "gift_message" not in _columns(sync_engine, "orders")
        with sync_engine.connect() as connection:
            assert migrate.current_revision(connection) == HEAD

    def test_schema_usable_after_migrating(self, sync_engine):
        _upgrade(sync_engine)
        with sync_engine.begin() as connection:
            connection.execute(text("INSERT INTO categories (id, name) VALUES (1, 'Fiction')"))
        with sync_engine.connect() as connection:
            assert connection.execute(text("SELECT name FROM categories")).scalar_one() == "Fiction"
