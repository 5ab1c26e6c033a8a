import logging
import secrets
from typing import Optional, Sequence

from storefront.domain import LineItem, PaymentIntent, REQUIRES_PAYMENT_METHOD
from storefront.errors import ValidationError
from storefront.reconciler import EMPTY_CART, check_amount, reconcile, to_minor_units

logger = logging.getLogger(__name__)

INTENT_PREFIX = "pi_mock_"
MISSING_CURRENCY = "MISSING_CURRENCY"


def new_intent_id() -> str:
    return f"{INTENT_PREFIX}{secrets.token_hex(12)}"


def new_client_secret(intent_id: str) -> str:
    # Same shape as a gateway secret: the intent id plus a random tail
    return f"{intent_id}_secret_{secrets.token_hex(12)}"


def create_intent(amount, currency: str, items: Sequence[LineItem], customer_hint: Optional[dict] = None) -> PaymentIntent:
    """
    Mint a new payment intent for a validated cart.

    Checks run in a fixed order and the first failure is raised:
    amount in (0, MAX_AMOUNT], currency present, items present, items add up
    to amount.
    """
    check_amount(amount)
    if not currency or not str(currency).strip():
        raise ValidationError("Currency is required.", code=MISSING_CURRENCY)
    if not items:
        raise ValidationError("Items are required.", code=EMPTY_CART)
    reconcile(items, amount)

    intent_id = new_intent_id()
    intent = PaymentIntent(
        id=intent_id,
        client_secret=new_client_secret(intent_id),
        amount=to_minor_units(amount),
        currency=str(currency).strip().lower(),
        status=REQUIRES_PAYMENT_METHOD,
        created_items=tuple(items),
    )

    customer_name = (customer_hint or {}).get("name") or "Anonymous"
    logger.info(
        "Payment intent created",
        extra={"extra": {
            "payment_intent_id": intent.id,
            "amount": intent.amount,
            "currency": intent.currency,
            "items": ", ".join(f"{i.quantity}x {i.name}" for i in items),
            "customer": customer_name,
        }},
    )
    return intent
