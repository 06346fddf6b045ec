"""
Cart Service

One cart per user, created on first use. Cart lines hold a quantity only;
prices are read from the product whenever a total is needed.
"""
import logging
from decimal import Decimal
from typing import List

from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload

from bookstore.core.exceptions import NotFoundError
from bookstore.models.cart import Cart, CartItem
from bookstore.models.product import Product
from bookstore.models.user import User
from bookstore.services.base import BaseService
from bookstore.utils.db_sanitizer import CENTS, sanitize_integer

logger = logging.getLogger(__name__)


class CartService(BaseService):

    async def _find_cart(self, user_id: int):
        result = await self.db.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create_cart(self, user_id: int) -> Cart:
        cart = await self._find_cart(user_id)
        if cart is not None:
            return cart

        await self._get_or_raise(User, user_id)

        cart = Cart(user_id=user_id)
        self.db.add(cart)
        await self._commit()

        logger.info(f"Created cart id={cart.id} for user id={user_id}")
        return cart

    async def _get_item(self, user_id: int, item_id: int) -> CartItem:
        result = await self.db.execute(
            select(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .where(CartItem.id == item_id, Cart.user_id == user_id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("CartItem", item_id)
        return item

    async def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
        """
        Put a product in the user's cart.

        If the product is already there its quantity is increased instead.
        """
        quantity = sanitize_integer(quantity, "quantity", min_value=1, allow_none=False)
        await self._get_or_raise(Product, product_id)
        cart = await self.get_or_create_cart(user_id)

        result = await self.db.execute(
            select(CartItem).where(CartItem.cart_id == cart.id, CartItem.product_id == product_id)
        )
        item = result.scalar_one_or_none()

        if item is not None:
            item.quantity = item.quantity + quantity
        else:
            item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
            self.db.add(item)

        await self._commit()

        logger.info(f"Cart id={cart.id}: product id={product_id} quantity now {item.quantity}")
        return item

    async def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> CartItem:
        item = await self._get_item(user_id, item_id)
        item.quantity = quantity
        await self._commit()
        return item

    async def remove_item(self, user_id: int, item_id: int) -> None:
        item = await self._get_item(user_id, item_id)
        await self.db.delete(item)
        await self._commit()

    async def list_items(self, user_id: int) -> List[CartItem]:
        """Cart lines with their products loaded, oldest first."""
        result = await self.db.execute(
            select(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .where(Cart.user_id == user_id)
            .options(selectinload(CartItem.product))
            .order_by(CartItem.id.asc())
        )
        return list(result.scalars().all())

    async def clear_cart(self, user_id: int, commit: bool = True) -> int:
        """Remove every line from the user's cart. Returns the number removed."""
        cart = await self._find_cart(user_id)
        if cart is None:
            return 0

        result = await self.db.execute(
            delete(CartItem).where(CartItem.cart_id == cart.id).execution_options(synchronize_session="fetch")
        )
        if commit:
            await self._commit()
        return result.rowcount

    async def cart_total(self, user_id: int) -> Decimal:
        total = Decimal("0.00")
        for item in await self.list_items(user_id):
            total += item.product.effective_price * item.quantity
        return total.quantize(CENTS)
