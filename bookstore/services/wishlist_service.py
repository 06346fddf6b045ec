"""
Wishlist Service
"""
import logging
from typing import List

from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from bookstore.core.exceptions import NotFoundError, UniquenessConflict
from bookstore.models.product import Product
from bookstore.models.user import User
from bookstore.models.wishlist import Wishlist
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)


class WishlistService(BaseService):

    async def contains(self, user_id: int, product_id: int) -> bool:
        found = await self.db.scalar(
            select(func.count(Wishlist.id)).where(
                Wishlist.user_id == user_id,
                Wishlist.product_id == product_id,
            )
        )
        return bool(found)

    async def add(self, user_id: int, product_id: int) -> Wishlist:
        await self._get_or_raise(User, user_id)
        await self._get_or_raise(Product, product_id)

        if await self.contains(user_id, product_id):
            raise UniquenessConflict(
                "Product already in wishlist",
                details={"user_id": user_id, "product_id": product_id},
            )

        entry = Wishlist(user_id=user_id, product_id=product_id)
        self.db.add(entry)
        await self._commit("Product already in wishlist")

        logger.info(f"Wishlist id={entry.id}: user id={user_id} saved product id={product_id}")
        return entry

    async def remove(self, user_id: int, item_or_product_id: int) -> None:
        """
        Remove a wishlist entry by its own id or by product id.

        An entry whose id matches wins over one whose product_id matches.
        """
        result = await self.db.execute(
            select(Wishlist).where(
                Wishlist.user_id == user_id,
                or_(Wishlist.id == item_or_product_id, Wishlist.product_id == item_or_product_id),
            )
        )
        candidates = list(result.scalars().all())
        if not candidates:
            raise NotFoundError("Wishlist item", item_or_product_id)

        entry = next((c for c in candidates if c.id == item_or_product_id), candidates[0])
        await self.db.delete(entry)
        await self._commit()

    async def list(self, user_id: int) -> List[Wishlist]:
        """The user's wishlist with products loaded, newest first."""
        result = await self.db.execute(
            select(Wishlist)
            .where(Wishlist.user_id == user_id)
            .options(selectinload(Wishlist.product))
            .order_by(Wishlist.created_at.desc(), Wishlist.id.desc())
        )
        return list(result.scalars().all())
