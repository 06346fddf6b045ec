"""
Order and Payment Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

from bookstore.core.config import settings
from bookstore.models.order import PaymentMethod
from bookstore.models.payment import PaymentStatus


class OrderItemIn(BaseModel):
    """One requested order line."""
    product_id: int
    quantity: int = Field(..., ge=1)


class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zipCode: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderOptions(BaseModel):
    """Order-level checkout fields, checked before any stock is touched."""
    payment_method: PaymentMethod = PaymentMethod.MOCK
    phone_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class OrderTrackingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tracking_number: Optional[str] = Field(None, min_length=1, max_length=100)
    tracking_url: Optional[AnyHttpUrl] = None
    estimated_delivery: Optional[datetime] = None


class PaymentCreate(BaseModel):
    order_id: int
    payment_intent_id: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)
    user_id: Optional[int] = None
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = Field(None, max_length=50)
    payment_method_details: Optional[Dict[str, Any]] = None
    receipt_url: Optional[str] = Field(None, max_length=2048)

    @field_validator("currency")
    @classmethod
    def lowercase_currency(cls, v):
        return v.lower()
