"""
Mock payment confirmation.

``ConfirmationProcessor`` turns a payment intent plus the shopper's chosen
method and shipping details into an ``Order``. Nothing is charged: card
payments succeed once the customer fields and the cart total check out, and
the ``bypass`` method skips card checks entirely when the processor was built
with ``allow_bypass=True``.

The processor does not read back a stored intent on its own. Callers that
have one may pass it in, and it is advanced to ``succeeded``; either way the
submitted items and amount are reconciled again before an order is minted.
Two confirmations of the same intent produce two orders.
"""
import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from storefront.domain import (
    CustomerInfo, LineItem, Order, PaymentIntent, REQUIRES_PAYMENT_METHOD, SUCCEEDED
)
from storefront.errors import (
    PaymentDeclinedError, PaymentError, PaymentMethodDisabledError, ValidationError
)
from storefront.reconciler import reconcile
from storefront.validators import first_failure, validate_customer

logger = logging.getLogger(__name__)

CARD = "card"
BYPASS = "bypass"

ORDER_PREFIX = "order_"
MISSING_INTENT = "MISSING_INTENT"
INVALID_INTENT_STATE = "INVALID_INTENT_STATE"

# Intent id fragments that simulate issuer declines on the card path
DECLINE_SENTINELS = (
    ("insufficient", "insufficient_funds", "Your card has insufficient funds."),
    ("fail", "card_declined", "Payment failed. Please check your payment information and try again."),
)


def new_order_id() -> str:
    return f"{ORDER_PREFIX}{secrets.token_hex(12)}"


class ConfirmationProcessor:
    def __init__(self, allow_bypass: bool = False, currency: str = "usd"):
        self.allow_bypass = allow_bypass
        self.currency = currency

    def confirm(
        self,
        payment_intent_id: str,
        payment_method_type: Optional[str],
        customer: CustomerInfo,
        items: Sequence[LineItem],
        amount,
        intent: Optional[PaymentIntent] = None,
    ) -> Order:
        if not payment_intent_id or not payment_intent_id.strip():
            raise ValidationError("Payment intent ID is required.", code=MISSING_INTENT, field="paymentIntentId")

        method = (payment_method_type or CARD).strip().lower()
        if method == BYPASS:
            if not self.allow_bypass:
                logger.warning("Bypass payment refused", extra={"extra": {"payment_intent_id": payment_intent_id}})
                raise PaymentMethodDisabledError("The bypass payment method is disabled.")
        else:
            failure = first_failure(validate_customer(customer))
            if failure is not None:
                raise ValidationError(failure.message, code=failure.reason, field=failure.field)

        total = reconcile(items, amount)

        if intent is not None:
            if intent.id != payment_intent_id:
                raise PaymentError("Payment intent does not match the confirmation request.", code=INVALID_INTENT_STATE)
            if intent.status not in (REQUIRES_PAYMENT_METHOD, SUCCEEDED):
                raise PaymentError(f"Payment intent cannot be confirmed from status {intent.status}.",
                                   code=INVALID_INTENT_STATE)

        if method != BYPASS:
            self._check_decline(payment_intent_id)

        if intent is not None:
            intent.status = SUCCEEDED

        order = Order(
            order_id=new_order_id(),
            payment_intent_id=payment_intent_id,
            amount=total.quantize(Decimal("0.01")),
            currency=intent.currency if intent is not None else self.currency,
            items=tuple(items),
            customer=customer,
            payment_method=method,
            created_at=datetime.now(timezone.utc),
            status=SUCCEEDED,
            is_development_order=(method == BYPASS),
        )
        logger.info(
            "Mock payment processed",
            extra={"extra": {
                "order_id": order.order_id,
                "payment_intent_id": payment_intent_id,
                "amount": str(order.amount),
                "payment_method": method,
                "customer": customer.name,
            }},
        )
        return order

    def _check_decline(self, payment_intent_id: str) -> None:
        lowered = payment_intent_id.lower()
        for fragment, code, message in DECLINE_SENTINELS:
            if fragment in lowered:
                logger.warning("Mock payment declined",
                               extra={"extra": {"payment_intent_id": payment_intent_id, "code": code}})
                raise PaymentDeclinedError(message, payment_intent_id, code=code)
