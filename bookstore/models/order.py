"""
Order and OrderDetail models

Orders are immutable in their line items once placed: only status, payment
status and fulfilment fields change afterwards. OrderDetail snapshots the unit
price at placement time; subtotal is always price * quantity.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, validates

from bookstore.core.database import Base
from bookstore.core.types import Money
from bookstore.core.utils import utcnow
from bookstore.utils.db_sanitizer import sanitize_choice, sanitize_integer, sanitize_money, sanitize_string


class OrderStatus(str, PyEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class OrderPaymentStatus(str, PyEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, PyEnum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    MOCK = "mock"


def _in_clause(column, enum_cls):
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # RESTRICT: a user with order history cannot be deleted
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    total_amount = Column(Money, nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=OrderPaymentStatus.PENDING.value)
    payment_intent_id = Column(String(255), nullable=True, index=True)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.MOCK.value)

    # Shipping
    shipping_address = Column(JSON, nullable=False)
    phone_number = Column(String(50), nullable=True)
    tracking_number = Column(String(100), nullable=True)
    tracking_url = Column(String(2048), nullable=True)
    estimated_delivery = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="orders")
    details = relationship(
        "OrderDetail",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderDetail.id",
    )
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        CheckConstraint(_in_clause("status", OrderStatus), name="ck_orders_status"),
        CheckConstraint(_in_clause("payment_status", OrderPaymentStatus), name="ck_orders_payment_status"),
        CheckConstraint(_in_clause("payment_method", PaymentMethod), name="ck_orders_payment_method"),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, user_id={self.user_id}, status='{self.status}')>"

    @validates("total_amount")
    def _validate_total(self, key, value):
        return sanitize_money(value, key, min_value=0, allow_none=False)

    @validates("status")
    def _validate_status(self, key, value):
        return sanitize_choice(value, [s.value for s in OrderStatus], key)

    @validates("payment_status")
    def _validate_payment_status(self, key, value):
        return sanitize_choice(value, [s.value for s in OrderPaymentStatus], key)

    @validates("payment_method")
    def _validate_payment_method(self, key, value):
        return sanitize_choice(value, [m.value for m in PaymentMethod], key)

    @validates("phone_number")
    def _validate_phone(self, key, value):
        return sanitize_string(value, key, max_length=50)


class OrderDetail(Base):
    __tablename__ = "order_details"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # RESTRICT: ordered products stay in the catalog
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Money, nullable=False)
    subtotal = Column(Money, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="details")
    product = relationship("Product", back_populates="order_details")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_details_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_order_details_price_non_negative"),
        CheckConstraint("subtotal >= 0", name="ck_order_details_subtotal_non_negative"),
    )

    def __repr__(self):
        return f"<OrderDetail(id={self.id}, order_id={self.order_id}, product_id={self.product_id})>"

    @validates("quantity")
    def _validate_quantity(self, key, value):
        value = sanitize_integer(value, key, min_value=1, allow_none=False)
        if self.price is not None:
            self.subtotal = self.price * value
        return value

    @validates("price")
    def _validate_price(self, key, value):
        value = sanitize_money(value, key, min_value=0, allow_none=False)
        if self.quantity is not None:
            self.subtotal = value * self.quantity
        return value
