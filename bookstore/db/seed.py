"""
Seed data

- seed_demo_user / unseed_demo_user: one demo account, bulk-inserted with a
  pre-hashed password and removed again by email
- seed_catalog: admin account, starter categories and books

All seeders are idempotent: rows that already exist (by email, category name
or product title) are left as they are.
"""
import logging
from typing import Dict

from sqlalchemy import select, insert, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookstore.core.config import settings
from bookstore.core.security import hash_password
from bookstore.core.utils import utcnow
from bookstore.models.category import Category
from bookstore.models.product import Product
from bookstore.models.user import User, UserRole, default_address, default_preferences
from bookstore.core.exceptions import translate_integrity_error
from bookstore.services.base import commit_or_translate
from bookstore.services.catalog_service import CatalogService
from bookstore.services.user_service import UserService

logger = logging.getLogger(__name__)

CATEGORY_NAMES = ["Fiction", "Non-Fiction", "Science Fiction", "Mystery", "Romance"]

STOCK_IMAGE = "https://images.unsplash.com/photo-1544947950-fa07a98d237f?q=80&w=1000"

BOOKS = [
    {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "description": "A story of the fabulously wealthy Jay Gatsby and his love for the beautiful Daisy Buchanan.",
        "price": "14.99",
        "stock": 50,
        "sales_count": 100,
        "category": "Fiction",
    },
    {
        "title": "To Kill a Mockingbird",
        "author": "Harper Lee",
        "description": "The story of racial injustice and the loss of innocence in the American South.",
        "price": "12.99",
        "stock": 45,
        "sales_count": 85,
        "category": "Fiction",
    },
    {
        "title": "1984",
        "author": "George Orwell",
        "description": "A dystopian social science fiction novel and cautionary tale.",
        "price": "13.99",
        "stock": 40,
        "sales_count": 120,
        "category": "Science Fiction",
    },
    {
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "description": "A romantic novel of manners.",
        "price": "11.99",
        "stock": 35,
        "sales_count": 95,
        "category": "Romance",
    },
    {
        "title": "The Da Vinci Code",
        "author": "Dan Brown",
        "description": "A mystery thriller novel.",
        "price": "15.99",
        "stock": 30,
        "sales_count": 150,
        "category": "Mystery",
    },
]


async def seed_demo_user(db: AsyncSession) -> bool:
    """
    Insert the demo account.

    The row goes in through a Core INSERT, which never reaches the ORM
    flush, so the password is hashed here.

    Returns:
        True if inserted, False if the account already existed
    """
    email = settings.DEMO_USER_EMAIL.lower()
    existing = await db.scalar(select(User.id).where(User.email == email))
    if existing is not None:
        logger.info(f"Demo user {email} already present (id={existing})")
        return False

    now = utcnow()
    await db.execute(
        insert(User.__table__),
        [{
            "name": "Demo User",
            "email": email,
            "password": hash_password(settings.DEMO_USER_PASSWORD),
            "role": UserRole.USER.value,
            "address": default_address(),
            "preferences": default_preferences(),
            "created_at": now,
            "updated_at": now,
        }],
    )
    await commit_or_translate(db)

    logger.info(f"Seeded demo user {email}")
    return True


async def unseed_demo_user(db: AsyncSession) -> int:
    """Delete exactly the demo account. Returns the number of rows removed."""
    email = settings.DEMO_USER_EMAIL.lower()
    try:
        result = await db.execute(
            delete(User.__table__).where(User.__table__.c.email == email)
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise translate_integrity_error(e, f"Demo user {email} still has orders") from e

    logger.info(f"Removed demo user {email} ({result.rowcount} row)")
    return result.rowcount


async def seed_catalog(db: AsyncSession) -> Dict[str, int]:
    """
    Create the admin account, starter categories and books.

    Returns:
        Counts of rows created per kind
    """
    created = {"users": 0, "categories": 0, "products": 0}
    users = UserService(db)
    catalog = CatalogService(db)

    if await users.get_user_by_email(settings.ADMIN_EMAIL) is None:
        admin = await users.create_user(
            name="Admin User",
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            role=UserRole.ADMIN.value,
        )
        created["users"] += 1
        logger.info(f"Admin user created: {admin.email}")

    categories: Dict[str, Category] = {}
    for name in CATEGORY_NAMES:
        category = await catalog.get_category_by_name(name)
        if category is None:
            category = await catalog.create_category(name=name)
            created["categories"] += 1
        categories[name] = category

    for book in BOOKS:
        existing = await db.scalar(select(Product.id).where(Product.title == book["title"]))
        if existing is not None:
            continue

        fields = {k: v for k, v in book.items() if k not in ("category", "sales_count")}
        product = await catalog.create_product(
            **fields,
            image=STOCK_IMAGE,
            featured=True,
            category_ids=[categories[book["category"]].id],
        )
        product.sales_count = book["sales_count"]
        await commit_or_translate(db)
        created["products"] += 1

    logger.info(
        f"Catalog seeded: {created['users']} user(s), {created['categories']} categor(ies), "
        f"{created['products']} product(s)"
    )
    return created
