"""
Payment model

payment_intent_id is the provider-side identifier and the idempotency key for
recording a payment: it is UNIQUE, so a replayed notification cannot create a
second row. Status changes are not validated against a transition graph; any
value in PaymentStatus is accepted.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship, validates

from bookstore.core.database import Base
from bookstore.core.types import Money
from bookstore.core.utils import utcnow
from bookstore.utils.db_sanitizer import sanitize_choice, sanitize_money, sanitize_string


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Kept for bookkeeping after the account is gone
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    payment_intent_id = Column(String(255), unique=True, nullable=False, index=True)
    amount = Column(Money, nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(50), nullable=True)
    payment_method_details = Column(JSON, nullable=True)
    receipt_url = Column(String(2048), nullable=True)

    # Refunds
    refunded_amount = Column(Money, nullable=True)
    refund_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="payments")
    user = relationship("User", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_payments_amount_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'succeeded', 'failed', 'refunded')",
            name="ck_payments_status",
        ),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, intent='{self.payment_intent_id}', status='{self.status}')>"

    @validates("payment_intent_id")
    def _validate_intent(self, key, value):
        return sanitize_string(value, key, max_length=255, required=True)

    @validates("amount")
    def _validate_amount(self, key, value):
        return sanitize_money(value, key, min_value=0, allow_none=False)

    @validates("refunded_amount")
    def _validate_refunded_amount(self, key, value):
        return sanitize_money(value, key, min_value=0)

    @validates("currency")
    def _validate_currency(self, key, value):
        value = sanitize_string(value, key, max_length=3, required=True)
        return value.lower()

    @validates("status")
    def _validate_status(self, key, value):
        return sanitize_choice(value, [s.value for s in PaymentStatus], key)
