"""
Tests for order placement, status and tracking updates, and deletion.
"""
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bookstore.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    OrderStateError,
    ValidationError,
)
from bookstore.core.utils import utcnow
from bookstore.services import CartService, CatalogService, OrderService, PaymentService, UserService


def _aware(value):
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class TestPlaceOrder:
    """Test OrderService.place_order."""

    @pytest.mark.asyncio
    async def test_lines_totals_and_stock(self, db, user, make_product, shipping_address):
        dune = await make_product(title="Dune", price="19.99", stock=5)
        emma = await make_product(title="Emma", price="12.00", sale_price="9.50", stock=2)

        order = await OrderService(db).place_order(
            user.id,
            [{"product_id": dune.id, "quantity": 2}, {"product_id": emma.id, "quantity": 1}],
            shipping_address,
            phone_number="555-0100",
        )

        lines = {d.product_id: d for d in order.details}
        assert lines[dune.id].price == Decimal("19.99")
        assert lines[dune.id].subtotal == Decimal("39.98")
        assert lines[emma.id].price == Decimal("9.50")
        assert lines[emma.id].subtotal == Decimal("9.50")
        assert order.total_amount == Decimal("49.48")
        assert order.phone_number == "555-0100"
        assert order.shipping_address == shipping_address

        dune = await CatalogService(db).get_product(dune.id)
        emma = await CatalogService(db).get_product(emma.id)
        assert (dune.stock, dune.sales_count) == (3, 2)
        assert (emma.stock, emma.sales_count) == (1, 1)

    @pytest.mark.asyncio
    async def test_tracking_and_delivery(self, db, user, product, shipping_address):
        order = await OrderService(db).place_order(
            user.id, [{"product_id": product.id, "quantity": 1}], shipping_address
        )

        assert re.fullmatch(r"TRK-[0-9A-F]{12}", order.tracking_number)
        assert order.tracking_url == f"https://track.example.com/{order.tracking_number}"

        eta = _aware(order.estimated_delivery)
        expected = utcnow() + timedelta(days=5)
        assert abs(eta - expected) < timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_defaults(self, db, user, product, shipping_address):
        order = await OrderService(db).place_order(
            user.id, [{"product_id": product.id, "quantity": 1}], shipping_address
        )
        assert order.status == "pending"
        assert order.payment_method == "mock"
        assert order.payment_status == "paid"

        stripe_order = await OrderService(db).place_order(
            user.id, [{"product_id": product.id, "quantity": 1}], shipping_address, payment_method="stripe"
        )
        assert stripe_order.payment_status == "pending"

    @pytest.mark.asyncio
    async def test_repeated_product_lines_are_merged(self, db, user, product, shipping_address):
        order = await OrderService(db).place_order(
            user.id,
            [{"product_id": product.id, "quantity": 1}, {"product_id": product.id, "quantity": 2}],
            shipping_address,
        )
        assert len(order.details) == 1
        assert order.details[0].quantity == 3

    @pytest.mark.asyncio
    async def test_insufficient_stock(self, db, user, make_product, shipping_address):
        plenty = await make_product(stock=10)
        scarce = await make_product(stock=1)
        user_id, plenty_id, scarce_id = user.id, plenty.id, scarce.id

        with pytest.raises(InsufficientStockError) as exc_info:
            await OrderService(db).place_order(
                user_id,
                [{"product_id": plenty_id, "quantity": 2}, {"product_id": scarce_id, "quantity": 2}],
                shipping_address,
            )

        error = exc_info.value
        assert isinstance(error, ValidationError)
        assert error.details["product_id"] == scarce_id
        assert error.details["requested_qty"] == 2
        assert error.details["available_qty"] == 1

        # Nothing was written
        assert (await CatalogService(db).get_product(plenty_id)).stock == 10
        assert await OrderService(db).list_user_orders(user_id) == []

    @pytest.mark.asyncio
    async def test_invalid_input(self, db, user, product, shipping_address):
        # A failed placement rolls back and expires loaded objects
        user_id, product_id = user.id, product.id
        service = OrderService(db)
        with pytest.raises(ValidationError):
            await service.place_order(user_id, [], shipping_address)
        with pytest.raises(ValidationError):
            await service.place_order(user_id, [{"product_id": product_id, "quantity": 0}], shipping_address)
        with pytest.raises(ValidationError):
            await service.place_order(user_id, [{"product_id": product_id, "quantity": 1}], {"street": "x"})
        with pytest.raises(ValidationError):
            await service.place_order(
                user_id, [{"product_id": product_id, "quantity": 1}], shipping_address, payment_method="cash"
            )
        with pytest.raises(NotFoundError):
            await service.place_order(user_id, [{"product_id": 999, "quantity": 1}], shipping_address)
        with pytest.raises(NotFoundError):
            await service.place_order(999, [{"product_id": product_id, "quantity": 1}], shipping_address)

    @pytest.mark.asyncio
    async def test_failed_placement_leaves_stock_untouched(self, db, user, product, shipping_address):
        user_id, product_id = user.id, product.id

        with pytest.raises(ValidationError) as exc_info:
            await OrderService(db).place_order(
                user_id, [{"product_id": product_id, "quantity": 3}], shipping_address, phone_number="1" * 51
            )
        assert exc_info.value.details["field"] == "phone_number"

        # A later commit on the same session must not carry a stock change
        await CartService(db).add_item(user_id, product_id)

        product = await CatalogService(db).get_product(product_id)
        assert (product.stock, product.sales_count) == (10, 0)
        assert await OrderService(db).list_user_orders(user_id) == []


class TestPlaceOrderFromCart:
    """Test OrderService.place_order_from_cart."""

    @pytest.mark.asyncio
    async def test_cart_becomes_order_and_is_emptied(self, db, user, make_product, shipping_address):
        cart = CartService(db)
        first = await make_product(price="5.00")
        second = await make_product(price="7.25")
        await cart.add_item(user.id, first.id, quantity=2)
        await cart.add_item(user.id, second.id)

        order = await OrderService(db).place_order_from_cart(user.id, shipping_address)

        assert order.total_amount == Decimal("17.25")
        assert sorted(d.product_id for d in order.details) == sorted([first.id, second.id])
        assert await cart.list_items(user.id) == []

    @pytest.mark.asyncio
    async def test_empty_cart_rejected(self, db, user, shipping_address):
        with pytest.raises(ValidationError):
            await OrderService(db).place_order_from_cart(user.id, shipping_address)

    @pytest.mark.asyncio
    async def test_failed_cart_placement_keeps_cart_and_stock(self, db, user, product, shipping_address):
        user_id, product_id = user.id, product.id
        await CartService(db).add_item(user_id, product_id, quantity=4)

        with pytest.raises(ValidationError):
            await OrderService(db).place_order_from_cart(user_id, shipping_address, payment_method="barter")

        items = await CartService(db).list_items(user_id)
        assert [(i.product_id, i.quantity) for i in items] == [(product_id, 4)]
        assert (await CatalogService(db).get_product(product_id)).stock == 10


class TestOrderQueries:
    """Test reading and updating placed orders."""

    @pytest.mark.asyncio
    async def test_get_order_scoped_to_owner(self, db, make_user, product, shipping_address):
        owner = await make_user()
        other = await make_user()
        service = OrderService(db)
        order = await service.place_order(owner.id, [{"product_id": product.id, "quantity": 1}], shipping_address)

        assert (await service.get_order(order.id, user_id=owner.id)).id == order.id
        with pytest.raises(NotFoundError):
            await service.get_order(order.id, user_id=other.id)
        with pytest.raises(NotFoundError):
            await service.get_order(999)

    @pytest.mark.asyncio
    async def test_list_user_orders(self, db, user, product, shipping_address):
        service = OrderService(db)
        first = await service.place_order(user.id, [{"product_id": product.id, "quantity": 1}], shipping_address)
        second = await service.place_order(user.id, [{"product_id": product.id, "quantity": 1}], shipping_address)

        orders = await service.list_user_orders(user.id)
        assert {o.id for o in orders} == {first.id, second.id}

    @pytest.mark.asyncio
    async def test_update_status(self, db, user, product, shipping_address):
        service = OrderService(db)
        order = await service.place_order(user.id, [{"product_id": product.id, "quantity": 1}], shipping_address)

        updated = await service.update_order_status(order.id, "shipped")
        assert updated.status == "shipped"

        with pytest.raises(ValidationError):
            await service.update_order_status(order.id, "lost")
        assert updated.status == "shipped"

    @pytest.mark.asyncio
    async def test_update_tracking(self, db, user, product, shipping_address):
        service = OrderService(db)
        order = await service.place_order(user.id, [{"product_id": product.id, "quantity": 1}], shipping_address)
        eta = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)

        updated = await service.update_order_tracking(
            order.id,
            tracking_number="1Z999AA10123456784",
            tracking_url="https://carrier.example.com/track/1Z999AA10123456784",
            estimated_delivery=eta,
        )
        assert updated.tracking_number == "1Z999AA10123456784"
        assert updated.tracking_url == "https://carrier.example.com/track/1Z999AA10123456784"
        assert _aware(updated.estimated_delivery) == eta

        # Untouched fields keep their values
        updated = await service.update_order_tracking(order.id, tracking_number="1Z000")
        assert updated.tracking_number == "1Z000"
        assert updated.tracking_url == "https://carrier.example.com/track/1Z999AA10123456784"

    @pytest.mark.asyncio
    async def test_update_tracking_invalid(self, db, user, product, shipping_address):
        service = OrderService(db)
        order = await service.place_order(user.id, [{"product_id": product.id, "quantity": 1}], shipping_address)

        with pytest.raises(ValidationError):
            await service.update_order_tracking(order.id, tracking_url="not a url")
        with pytest.raises(ValidationError):
            await service.update_order_tracking(order.id, estimated_delivery="soon")
        with pytest.raises(ValidationError):
            await service.update_order_tracking(order.id, carrier="ups")
        with pytest.raises(NotFoundError):
            await service.update_order_tracking(999, tracking_number="X")


class TestDeleteOrder:
    """Test OrderService.delete_order."""

    @pytest.mark.asyncio
    async def test_owner_deletes_pending_order_and_stock_returns(self, db, user, make_product, shipping_address):
        dune = await make_product(stock=5)
        emma = await make_product(stock=3)
        service = OrderService(db)
        order = await service.place_order(
            user.id,
            [{"product_id": dune.id, "quantity": 2}, {"product_id": emma.id, "quantity": 3}],
            shipping_address,
        )

        await service.delete_order(order.id, user_id=user.id)

        dune = await CatalogService(db).get_product(dune.id)
        emma = await CatalogService(db).get_product(emma.id)
        assert (dune.stock, dune.sales_count) == (5, 0)
        assert (emma.stock, emma.sales_count) == (3, 0)
        with pytest.raises(NotFoundError):
            await service.get_order(order.id)

    @pytest.mark.asyncio
    async def test_sales_count_never_negative(self, db, user, product, shipping_address):
        service = OrderService(db)
        order = await service.place_order(user.id, [{"product_id": product.id, "quantity": 4}], shipping_address)
        product.sales_count = 1
        await db.commit()

        await service.delete_order(order.id)

        product = await CatalogService(db).get_product(product.id)
        assert (product.stock, product.sales_count) == (10, 0)

    @pytest.mark.asyncio
    async def test_owner_cannot_delete_other_or_processed_orders(self, db, make_user, product, shipping_address):
        owner = await make_user()
        other = await make_user()
        service = OrderService(db)
        order = await service.place_order(owner.id, [{"product_id": product.id, "quantity": 1}], shipping_address)

        with pytest.raises(NotFoundError):
            await service.delete_order(order.id, user_id=other.id)

        await service.update_order_status(order.id, "cancelled")
        with pytest.raises(OrderStateError) as exc_info:
            await service.delete_order(order.id, user_id=owner.id)
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.details["current_status"] == "cancelled"

        # Cancelled orders can still be removed without an owner scope
        await service.delete_order(order.id)
        assert await service.list_user_orders(owner.id) == []

    @pytest.mark.asyncio
    async def test_shipped_order_cannot_be_deleted(self, db, user, product, shipping_address):
        service = OrderService(db)
        order = await service.place_order(user.id, [{"product_id": product.id, "quantity": 2}], shipping_address)
        await service.update_order_status(order.id, "shipped")

        with pytest.raises(OrderStateError):
            await service.delete_order(order.id)
        assert (await CatalogService(db).get_product(product.id)).stock == 8

    @pytest.mark.asyncio
    async def test_payments_removed_and_user_deletable(self, db, user, product, shipping_address):
        user_id = user.id
        service = OrderService(db)
        order = await service.place_order(user_id, [{"product_id": product.id, "quantity": 1}], shipping_address)
        await PaymentService(db).record_payment(order.id, "pi_delete_me", "10.00", user_id=user_id)

        await service.delete_order(order.id, user_id=user_id)

        assert await PaymentService(db).get_by_intent("pi_delete_me") is None
        await UserService(db).delete_user(user_id)
        with pytest.raises(NotFoundError):
            await UserService(db).get_user(user_id)
