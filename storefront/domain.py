"""Checkout records shared by the validator, reconciler, intent and confirmation steps."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

REQUIRES_PAYMENT_METHOD = "requires_payment_method"
PROCESSING = "processing"
SUCCEEDED = "succeeded"

INTENT_STATUSES = (REQUIRES_PAYMENT_METHOD, PROCESSING, SUCCEEDED)


@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    address: str
    city: str
    zip: str
    email: Optional[str] = None


@dataclass
class PaymentIntent:
    id: str
    client_secret: str
    amount: int                 # minor units
    currency: str
    status: str = REQUIRES_PAYMENT_METHOD
    created_items: Tuple[LineItem, ...] = ()


@dataclass(frozen=True)
class Order:
    order_id: str
    payment_intent_id: str
    amount: Decimal
    currency: str
    items: Tuple[LineItem, ...]
    customer: CustomerInfo
    payment_method: str
    created_at: datetime
    status: str = SUCCEEDED
    is_development_order: bool = field(default=False)
