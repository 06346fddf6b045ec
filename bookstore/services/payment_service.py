"""
Payment Service

Records payments against orders. payment_intent_id is the idempotency key:
recording the same intent twice fails with UniquenessConflict. Status updates
accept any value in PaymentStatus without checking the previous status, and
mirror it onto the order's payment_status.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from bookstore.core.exceptions import NotFoundError, UniquenessConflict, ValidationError
from bookstore.models.order import Order, OrderPaymentStatus
from bookstore.models.payment import Payment, PaymentStatus
from bookstore.models.user import User
from bookstore.schemas.base import parse_input
from bookstore.schemas.order import PaymentCreate
from bookstore.services.base import BaseService
from bookstore.utils.db_sanitizer import sanitize_choice, sanitize_money

logger = logging.getLogger(__name__)

# Payment status -> Order.payment_status
_ORDER_PAYMENT_STATUS = {
    PaymentStatus.PENDING.value: OrderPaymentStatus.PENDING.value,
    PaymentStatus.SUCCEEDED.value: OrderPaymentStatus.PAID.value,
    PaymentStatus.FAILED.value: OrderPaymentStatus.FAILED.value,
    PaymentStatus.REFUNDED.value: OrderPaymentStatus.REFUNDED.value,
}


class PaymentService(BaseService):

    async def get_payment(self, payment_id: int) -> Payment:
        return await self._get_or_raise(Payment, payment_id)

    async def get_by_intent(self, payment_intent_id: str) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.payment_intent_id == payment_intent_id)
        )
        return result.scalar_one_or_none()

    async def _require_intent(self, payment_intent_id: str) -> Payment:
        payment = await self.get_by_intent(payment_intent_id)
        if payment is None:
            raise NotFoundError("Payment", payment_intent_id)
        return payment

    async def list_user_payments(self, user_id: int) -> List[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def _sync_order(self, payment: Payment) -> None:
        order = await self.db.get(Order, payment.order_id)
        if order is not None:
            order.payment_status = _ORDER_PAYMENT_STATUS[payment.status]
            order.payment_intent_id = payment.payment_intent_id

    async def record_payment(
        self,
        order_id: int,
        payment_intent_id: str,
        amount: Any,
        user_id: Optional[int] = None,
        currency: Optional[str] = None,
        status: str = "pending",
        payment_method: Optional[str] = None,
        payment_method_details: Optional[Dict[str, Any]] = None,
        receipt_url: Optional[str] = None,
    ) -> Payment:
        """
        Record a payment for an order.

        Raises:
            ValidationError: Bad amount, currency or status
            NotFoundError: Unknown order or user
            UniquenessConflict: payment_intent_id already recorded
        """
        raw = {
            "order_id": order_id,
            "payment_intent_id": payment_intent_id,
            "amount": amount,
            "user_id": user_id,
            "status": status,
            "payment_method": payment_method,
            "payment_method_details": payment_method_details,
            "receipt_url": receipt_url,
        }
        if currency is not None:
            raw["currency"] = currency
        data = parse_input(PaymentCreate, raw)

        await self._get_or_raise(Order, data.order_id)
        if data.user_id is not None:
            await self._get_or_raise(User, data.user_id)

        if await self.get_by_intent(data.payment_intent_id):
            raise UniquenessConflict(
                f"Payment intent {data.payment_intent_id} already recorded",
                details={"field": "payment_intent_id", "payment_intent_id": data.payment_intent_id},
            )

        payment = Payment(**data.model_dump())
        await self._sync_order(payment)
        self.db.add(payment)
        await self._commit(f"Payment intent {data.payment_intent_id} already recorded")

        logger.info(
            f"Recorded payment id={payment.id} intent={payment.payment_intent_id} "
            f"order id={payment.order_id} amount={payment.amount} {payment.currency} status={payment.status}"
        )
        return payment

    async def update_status(self, payment_intent_id: str, status: str) -> Payment:
        """Set any status in PaymentStatus; no transition graph is enforced."""
        status = sanitize_choice(status, [s.value for s in PaymentStatus], "status")
        payment = await self._require_intent(payment_intent_id)

        previous = payment.status
        payment.status = status
        await self._sync_order(payment)
        await self._commit()

        logger.info(f"Payment intent={payment_intent_id} status {previous} -> {status}")
        return payment

    async def record_refund(self, payment_intent_id: str, amount: Any, reason: Optional[str] = None) -> Payment:
        """
        Mark a payment refunded.

        Raises:
            ValidationError: amount <= 0 or more than was paid
            NotFoundError: Unknown intent
        """
        refund = sanitize_money(amount, "amount", allow_none=False)
        payment = await self._require_intent(payment_intent_id)

        if refund <= Decimal("0"):
            raise ValidationError("Refund amount must be greater than 0", field="amount")
        if refund > payment.amount:
            raise ValidationError(
                f"Refund amount {refund} exceeds payment amount {payment.amount}",
                field="amount",
                details={"payment_amount": str(payment.amount)},
            )

        payment.refunded_amount = refund
        payment.refund_reason = reason
        payment.status = PaymentStatus.REFUNDED.value
        await self._sync_order(payment)
        await self._commit()

        logger.info(f"Refunded {refund} on payment intent={payment_intent_id}")
        return payment
