"""
Order Service

Placing an order is one transaction: every input and every line's stock is
checked before anything is written, then order lines are created at the
current effective price, stock is decremented and sales counters are bumped.
Any failure rolls the whole placement back. Line items cannot be changed
afterwards; only status and fulfilment fields move. Deleting a pending order
puts its stock back.
"""
import logging
import secrets
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload

from bookstore.core.config import settings
from bookstore.core.exceptions import InsufficientStockError, NotFoundError, OrderStateError, ValidationError
from bookstore.core.utils import utcnow
from bookstore.models.cart import Cart, CartItem
from bookstore.models.order import Order, OrderDetail, OrderPaymentStatus, OrderStatus, PaymentMethod
from bookstore.models.product import Product
from bookstore.models.user import User
from bookstore.schemas.base import parse_input
from bookstore.schemas.order import OrderItemIn, OrderOptions, OrderTrackingUpdate, ShippingAddress
from bookstore.services.base import BaseService

logger = logging.getLogger(__name__)

# Owners may withdraw an order only before it is processed
OWNER_DELETABLE_STATUSES = frozenset({OrderStatus.PENDING.value})
ADMIN_DELETABLE_STATUSES = frozenset({OrderStatus.PENDING.value, OrderStatus.CANCELLED.value})


def generate_tracking_number() -> str:
    """TRK- followed by 12 uppercase hex digits."""
    return "TRK-" + secrets.token_hex(6).upper()


class OrderService(BaseService):

    async def _lock_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        result = await self.db.execute(
            select(Product).where(Product.id.in_(list(product_ids))).with_for_update()
        )
        return {p.id: p for p in result.scalars().all()}

    async def _build_order(
        self,
        user_id: int,
        items: Iterable[Any],
        shipping_address: Dict[str, Any],
        phone_number: Optional[str],
        payment_method: str,
        notes: Optional[str],
    ) -> Order:
        await self._get_or_raise(User, user_id)

        lines = [parse_input(OrderItemIn, item) for item in items]
        if not lines:
            raise ValidationError("Order must contain at least one item", field="items")

        address = parse_input(ShippingAddress, shipping_address or {})
        options = parse_input(
            OrderOptions,
            {"payment_method": payment_method, "phone_number": phone_number, "notes": notes},
        )

        # Repeated product ids collapse into one line
        quantities: Dict[int, int] = {}
        for line in lines:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = await self._lock_products(quantities)

        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise NotFoundError("Product", product_id)
            if product.stock < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for '{product.title}': requested {quantity}, available {product.stock}",
                    product_id=product_id,
                    requested_qty=quantity,
                    available_qty=product.stock,
                )

        details = []
        total = Decimal("0.00")
        for product_id, quantity in quantities.items():
            detail = OrderDetail(product_id=product_id, quantity=quantity, price=products[product_id].effective_price)
            details.append(detail)
            total += detail.subtotal

        tracking_number = generate_tracking_number()
        order = Order(
            user_id=user_id,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            # Mock checkout settles immediately
            payment_status=(
                OrderPaymentStatus.PAID.value
                if options.payment_method == PaymentMethod.MOCK
                else OrderPaymentStatus.PENDING.value
            ),
            payment_method=options.payment_method.value,
            shipping_address=address.model_dump(),
            phone_number=options.phone_number,
            notes=options.notes,
            tracking_number=tracking_number,
            tracking_url=f"{settings.TRACKING_URL_BASE.rstrip('/')}/{tracking_number}",
            estimated_delivery=utcnow() + timedelta(days=settings.ORDER_ESTIMATED_DELIVERY_DAYS),
            details=details,
        )

        # Stock only moves once the order itself is valid
        for product_id, quantity in quantities.items():
            product = products[product_id]
            product.stock = product.stock - quantity
            product.sales_count = product.sales_count + quantity

        self.db.add(order)
        return order

    async def place_order(
        self,
        user_id: int,
        items: Iterable[Any],
        shipping_address: Dict[str, Any],
        phone_number: Optional[str] = None,
        payment_method: str = "mock",
        notes: Optional[str] = None,
    ) -> Order:
        """
        Place an order for explicit items.

        Args:
            items: [{"product_id": ..., "quantity": ...}, ...]
            shipping_address: {street, city, state, zipCode, country}

        Raises:
            NotFoundError: Unknown user or product
            InsufficientStockError: A line asks for more than is in stock
            ValidationError: Empty order, bad quantity, address, phone number
                or payment method
        """
        try:
            order = await self._build_order(user_id, items, shipping_address, phone_number, payment_method, notes)
            await self._commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Placed order id={order.id} user id={user_id} total={order.total_amount} "
            f"lines={len(order.details)} tracking={order.tracking_number}"
        )
        return await self.get_order(order.id)

    async def place_order_from_cart(
        self,
        user_id: int,
        shipping_address: Dict[str, Any],
        phone_number: Optional[str] = None,
        payment_method: str = "mock",
        notes: Optional[str] = None,
    ) -> Order:
        """Place an order for everything in the user's cart, then empty the cart."""
        try:
            result = await self.db.execute(
                select(CartItem)
                .join(Cart, Cart.id == CartItem.cart_id)
                .where(Cart.user_id == user_id)
                .order_by(CartItem.id.asc())
            )
            cart_items = list(result.scalars().all())
            if not cart_items:
                raise ValidationError("Cart is empty", field="items")

            items = [{"product_id": ci.product_id, "quantity": ci.quantity} for ci in cart_items]
            order = await self._build_order(user_id, items, shipping_address, phone_number, payment_method, notes)

            await self.db.execute(
                delete(CartItem)
                .where(CartItem.id.in_([ci.id for ci in cart_items]))
                .execution_options(synchronize_session="fetch")
            )
            await self._commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Placed order id={order.id} from cart of user id={user_id}, {len(cart_items)} line(s)")
        return await self.get_order(order.id)

    async def get_order(self, order_id: int, user_id: Optional[int] = None) -> Order:
        """
        Load an order with its lines and their products.

        When user_id is given, orders owned by someone else are reported as
        not found.
        """
        query = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.details).selectinload(OrderDetail.product))
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(Order.user_id == user_id)

        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def list_user_orders(self, user_id: int) -> List[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .options(selectinload(Order.details))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def update_order_status(self, order_id: int, status: str) -> Order:
        order = await self._get_or_raise(Order, order_id)
        previous = order.status
        order.status = status
        await self._commit()

        logger.info(f"Order id={order_id} status {previous} -> {order.status}")
        return order

    async def update_order_tracking(self, order_id: int, **fields) -> Order:
        """
        Set tracking_number, tracking_url and/or estimated_delivery.

        Only the fields passed are changed; passing None clears one.

        Raises:
            ValidationError: Unknown field, malformed URL or date
            NotFoundError: No such order
        """
        data = parse_input(OrderTrackingUpdate, fields)
        order = await self._get_or_raise(Order, order_id)

        for key in data.model_fields_set:
            value = getattr(data, key)
            if key == "tracking_url" and value is not None:
                value = str(value)
            setattr(order, key, value)

        await self._commit()
        logger.info(f"Updated tracking for order id={order_id} fields={sorted(data.model_fields_set)}")
        return order

    async def delete_order(self, order_id: int, user_id: Optional[int] = None) -> None:
        """
        Delete an order, returning its quantities to stock.

        With user_id the caller is the owner and only pending orders may go;
        without it cancelled orders may be deleted as well. Sales counters are
        reduced but never below zero. Payments on the order go with it.

        Raises:
            NotFoundError: No such order (or not owned by user_id)
            OrderStateError: The order's status does not allow deletion
        """
        order = await self.get_order(order_id, user_id=user_id)

        allowed = OWNER_DELETABLE_STATUSES if user_id is not None else ADMIN_DELETABLE_STATUSES
        if order.status not in allowed:
            raise OrderStateError(
                f"Cannot delete order with status '{order.status}'",
                field="status",
                details={"current_status": order.status, "allowed_statuses": sorted(allowed)},
            )

        try:
            products = await self._lock_products(d.product_id for d in order.details)
            for detail in order.details:
                product = products[detail.product_id]
                product.stock = product.stock + detail.quantity
                product.sales_count = max(0, product.sales_count - detail.quantity)
                logger.info(f"Restored stock for product id={product.id}: +{detail.quantity}")

            await self.db.delete(order)
            await self._commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Deleted order id={order_id}")
