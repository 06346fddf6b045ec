"""
Tests for seed data.
"""
import pytest
from sqlalchemy import select, func

from bookstore.core.exceptions import ReferentialIntegrityError
from bookstore.core.security import is_password_hash
from bookstore.db.seed import BOOKS, CATEGORY_NAMES, seed_catalog, seed_demo_user, unseed_demo_user
from bookstore.models import Category, Product, User
from bookstore.services import CatalogService, OrderService, UserService


class TestDemoUser:
    """Test the demo user seeder."""

    @pytest.mark.asyncio
    async def test_seed_and_unseed(self, db):
        assert await seed_demo_user(db) is True

        demo = await UserService(db).get_user_by_email("demo@example.com")
        assert demo.name == "Demo User"
        assert demo.role == "user"
        assert is_password_hash(demo.password)
        assert demo.validate_password("password123")
        assert demo.preferences["newsletter"] is True

        assert await unseed_demo_user(db) == 1
        assert await db.scalar(select(func.count(User.id))) == 0

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db):
        assert await seed_demo_user(db) is True
        assert await seed_demo_user(db) is False
        assert await db.scalar(select(func.count(User.id))) == 1

    @pytest.mark.asyncio
    async def test_unseed_leaves_other_users(self, db, user):
        await seed_demo_user(db)
        await unseed_demo_user(db)

        remaining = (await db.execute(select(User.email))).scalars().all()
        assert remaining == [user.email]
        assert await unseed_demo_user(db) == 0

    @pytest.mark.asyncio
    async def test_unseed_blocked_by_orders(self, db, product, shipping_address):
        await seed_demo_user(db)
        demo_id = await db.scalar(select(User.id).where(User.email == "demo@example.com"))
        product_id = product.id
        await OrderService(db).place_order(demo_id, [{"product_id": product_id, "quantity": 1}], shipping_address)

        with pytest.raises(ReferentialIntegrityError):
            await unseed_demo_user(db)


class TestCatalogSeed:
    """Test the catalog seeder."""

    @pytest.mark.asyncio
    async def test_seed_catalog(self, db):
        created = await seed_catalog(db)

        assert created == {"users": 1, "categories": len(CATEGORY_NAMES), "products": len(BOOKS)}

        admin = await UserService(db).get_user_by_email("admin@example.com")
        assert admin.is_admin
        assert admin.validate_password("admin123")

        catalog = CatalogService(db)
        fiction = await catalog.get_category_by_name("Fiction")
        titles = [p.title for p in await catalog.list_category_products(fiction.id)]
        assert titles == ["The Great Gatsby", "To Kill a Mockingbird"]

        best = await catalog.list_best_sellers(limit=1)
        assert best[0].title == "The Da Vinci Code"
        assert best[0].sales_count == 150

    @pytest.mark.asyncio
    async def test_seed_catalog_twice(self, db):
        await seed_catalog(db)
        again = await seed_catalog(db)

        assert again == {"users": 0, "categories": 0, "products": 0}
        assert await db.scalar(select(func.count(Category.id))) == len(CATEGORY_NAMES)
        assert await db.scalar(select(func.count(Product.id))) == len(BOOKS)
