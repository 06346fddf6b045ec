"""
Catalog Service

Categories, products and the many-to-many link between them. Links are
managed with single-row INSERT/DELETE statements against product_categories
so attaching or detaching one category never rewrites a product's other links.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, func, or_, delete, insert

from bookstore.core.exceptions import ReferentialIntegrityError, UniquenessConflict
from bookstore.models.category import Category
from bookstore.models.order import OrderDetail
from bookstore.models.product import Product, product_categories
from bookstore.schemas.base import parse_input
from bookstore.schemas.catalog import CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)


class CatalogService(BaseService):

    # ============================================================
    # Categories
    # ============================================================

    async def get_category(self, category_id: int) -> Category:
        return await self._get_or_raise(Category, category_id)

    async def get_category_by_name(self, name: str) -> Optional[Category]:
        result = await self.db.execute(select(Category).where(Category.name == name.strip()))
        return result.scalar_one_or_none()

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name.asc()))
        return list(result.scalars().all())

    async def create_category(
        self,
        name: str,
        description: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Category:
        """
        Create a category.

        Raises:
            ValidationError: Missing name
            UniquenessConflict: Name already used
        """
        data = parse_input(CategoryCreate, {"name": name, "description": description, "image": image})

        if await self.get_category_by_name(data.name):
            raise UniquenessConflict(f"Category '{data.name.strip()}' already exists", details={"field": "name"})

        category = Category(**data.model_dump())
        self.db.add(category)
        await self._commit("Category name already exists")

        logger.info(f"Created category id={category.id} name={category.name}")
        return category

    async def update_category(self, category_id: int, **fields) -> Category:
        data = parse_input(CategoryUpdate, fields)
        category = await self.get_category(category_id)

        new_name = fields.get("name")
        if new_name is not None:
            existing = await self.get_category_by_name(new_name)
            if existing is not None and existing.id != category.id:
                raise UniquenessConflict(f"Category '{new_name.strip()}' already exists", details={"field": "name"})

        for key in data.model_fields_set:
            value = getattr(data, key)
            if key == "name" and value is None:
                continue
            setattr(category, key, value)

        await self._commit("Category name already exists")
        logger.info(f"Updated category id={category.id}")
        return category

    async def delete_category(self, category_id: int) -> None:
        """Delete a category; its product links are removed, the products stay."""
        category = await self.get_category(category_id)
        self._forget_links(category=category)
        await self.db.delete(category)
        await self._commit()
        logger.info(f"Deleted category id={category_id}")

    # ============================================================
    # Products
    # ============================================================

    async def get_product(self, product_id: int) -> Product:
        return await self._get_or_raise(Product, product_id)

    async def create_product(self, **fields) -> Product:
        """
        Create a product, optionally linked to existing categories.

        Raises:
            ValidationError: Missing title/author/description, price <= 0,
                negative stock
            NotFoundError: A category id does not exist
        """
        data = parse_input(ProductCreate, fields)
        values = data.model_dump(exclude={"category_ids"})

        categories = []
        for category_id in dict.fromkeys(data.category_ids):
            categories.append(await self.get_category(category_id))

        product = Product(**values, categories=categories)
        self.db.add(product)
        await self._commit()

        logger.info(f"Created product id={product.id} title={product.title} price={product.price}")
        return product

    async def update_product(self, product_id: int, **fields) -> Product:
        data = parse_input(ProductUpdate, fields)
        product = await self.get_product(product_id)

        for key in data.model_fields_set:
            value = getattr(data, key)
            if value is None and key in ("title", "author", "description", "price", "stock", "featured"):
                continue
            setattr(product, key, value)

        await self._commit()
        logger.info(f"Updated product id={product.id} fields={sorted(data.model_fields_set)}")
        return product

    async def delete_product(self, product_id: int) -> None:
        """
        Delete a product together with its reviews, wishlist entries, cart
        lines and category links.

        Raises:
            ReferentialIntegrityError: The product appears on an order
        """
        product = await self.get_product(product_id)

        ordered = await self.db.scalar(
            select(func.count(OrderDetail.id)).where(OrderDetail.product_id == product_id)
        )
        if ordered:
            raise ReferentialIntegrityError(
                f"Product {product_id} appears on {ordered} order line(s) and cannot be deleted",
                details={"product_id": product_id, "order_lines": ordered},
            )

        self._forget_links(product=product)
        await self.db.delete(product)
        await self._commit(f"Product {product_id} is still referenced")
        logger.info(f"Deleted product id={product_id}")

    async def list_products(
        self,
        featured: Optional[bool] = None,
        category_id: Optional[int] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Product]:
        """List products, newest first, with optional filters."""
        conditions = []

        if featured is not None:
            conditions.append(Product.featured == featured)

        if search:
            search_pattern = f"%{search.lower()}%"
            conditions.append(
                or_(
                    func.lower(Product.title).like(search_pattern),
                    func.lower(Product.author).like(search_pattern),
                )
            )

        query = select(Product)
        if category_id is not None:
            query = query.join(product_categories, product_categories.c.product_id == Product.id)
            conditions.append(product_categories.c.category_id == category_id)

        query = (
            query.where(*conditions)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
            .offset(offset)
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_best_sellers(self, limit: int = 10) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.sales_count > 0)
            .order_by(Product.sales_count.desc(), Product.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_on_sale(self, limit: int = 10) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.sale_price.is_not(None), Product.sale_price < Product.price)
            .order_by(Product.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ============================================================
    # Product <-> Category links
    # ============================================================

    def _forget_links(self, product: Product = None, category: Category = None) -> None:
        # Link rows are written with Core statements; drop any loaded collections
        if product is not None:
            self.db.expire(product, ["categories"])
        if category is not None:
            self.db.expire(category, ["products"])

    async def _link_exists(self, product_id: int, category_id: int) -> bool:
        found = await self.db.scalar(
            select(func.count()).select_from(product_categories).where(
                product_categories.c.product_id == product_id,
                product_categories.c.category_id == category_id,
            )
        )
        return bool(found)

    async def add_product_category(self, product_id: int, category_id: int) -> bool:
        """
        Link a product to a category.

        Returns:
            False if the link already existed, True if it was created
        """
        product = await self.get_product(product_id)
        category = await self.get_category(category_id)

        if await self._link_exists(product_id, category_id):
            return False

        await self.db.execute(
            insert(product_categories).values(product_id=product_id, category_id=category_id)
        )
        self._forget_links(product, category)
        await self._commit()

        logger.info(f"Linked product id={product_id} to category id={category_id}")
        return True

    async def remove_product_category(self, product_id: int, category_id: int) -> bool:
        """
        Unlink a product from a category.

        Returns:
            True if a link was removed
        """
        product = await self.get_product(product_id)
        category = await self.get_category(category_id)

        result = await self.db.execute(
            delete(product_categories).where(
                product_categories.c.product_id == product_id,
                product_categories.c.category_id == category_id,
            )
        )
        self._forget_links(product, category)
        await self._commit()

        removed = result.rowcount > 0
        if removed:
            logger.info(f"Unlinked product id={product_id} from category id={category_id}")
        return removed

    async def list_product_categories(self, product_id: int) -> List[Category]:
        await self.get_product(product_id)
        result = await self.db.execute(
            select(Category)
            .join(product_categories, product_categories.c.category_id == Category.id)
            .where(product_categories.c.product_id == product_id)
            .order_by(Category.name.asc())
        )
        return list(result.scalars().all())

    async def list_category_products(self, category_id: int) -> List[Product]:
        await self.get_category(category_id)
        result = await self.db.execute(
            select(Product)
            .join(product_categories, product_categories.c.product_id == Product.id)
            .where(product_categories.c.category_id == category_id)
            .order_by(Product.title.asc())
        )
        return list(result.scalars().all())
