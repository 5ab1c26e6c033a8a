import logging
import time
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.domain import Order, PaymentIntent, SUCCEEDED
from storefront.errors import ValidationError
from storefront.models import Order as OrderRow, OrderItem, PaymentIntentRecord

logger = logging.getLogger(__name__)

MAX_ORDERS = 50


def _item_rows(items):
    return [
        OrderItem(
            product_id=item.id,
            product_name=item.name,
            product_price=item.price,
            quantity=item.quantity,
            line_total=item.line_total,
        )
        for item in items
    ]


def save_intent(db: Session, intent: PaymentIntent) -> PaymentIntentRecord:
    record = PaymentIntentRecord(
        id=intent.id,
        client_secret=intent.client_secret,
        amount=intent.amount,
        currency=intent.currency,
        status=intent.status,
    )
    try:
        db.add(record)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return record


def save_order(db: Session, order: Order, intent_record: PaymentIntentRecord = None) -> OrderRow:
    """Write the order, its items and the intent's new status in one commit."""
    row = OrderRow(
        order_id=order.order_id,
        payment_intent_id=order.payment_intent_id,
        status=order.status,
        total_amount=order.amount,
        currency=order.currency,
        customer_name=order.customer.name,
        customer_email=order.customer.email,
        shipping_address=order.customer.address,
        shipping_city=order.customer.city,
        shipping_zip=order.customer.zip,
        payment_method=order.payment_method,
        is_development_order=order.is_development_order,
        created_at=order.created_at,
        items=_item_rows(order.items),
    )
    try:
        if intent_record is not None:
            intent_record.status = SUCCEEDED
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)

    logger.info("Order saved", extra={"extra": {
        "order_id": row.order_id, "db_id": row.id, "item_count": len(order.items),
    }})
    return row


def list_orders(db: Session, limit: int = 10, dev_only: bool = False):
    query = db.query(OrderRow)
    if dev_only:
        query = query.filter(OrderRow.is_development_order.is_(True))
    limit = max(1, min(limit, MAX_ORDERS))
    return query.order_by(OrderRow.created_at.desc(), OrderRow.id.desc()).limit(limit).all()


def create_manual_order(db: Session, payload) -> OrderRow:
    if not payload.order_id or not payload.customer_name or not payload.total_amount:
        raise ValidationError("Missing required fields: order_id, customer_name, total_amount")

    row = OrderRow(
        order_id=payload.order_id,
        payment_intent_id=payload.payment_intent_id or f"pi_manual_{int(time.time() * 1000)}",
        status=payload.status,
        total_amount=payload.total_amount,
        currency=payload.currency,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        shipping_address=payload.shipping_address,
        shipping_city=payload.shipping_city,
        shipping_zip=payload.shipping_zip,
        payment_method=payload.payment_method,
        is_development_order=payload.is_development_order,
    )
    for item in payload.items:
        price = item.price if item.price is not None else item.product_price
        if price is None:
            raise ValidationError("Order item price is required", field="items")
        price = Decimal(str(price))
        row.items.append(OrderItem(
            product_id=item.product_id or item.id,
            product_name=item.name or item.product_name,
            product_price=price,
            quantity=item.quantity,
            line_total=price * item.quantity,
        ))

    try:
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)

    logger.info("Manual order created", extra={"extra": {
        "order_id": row.order_id, "db_id": row.id, "customer": row.customer_name,
    }})
    return row


def order_to_dict(row: OrderRow) -> dict:
    return {
        "id": row.id,
        "order_id": row.order_id,
        "payment_intent_id": row.payment_intent_id,
        "status": row.status,
        "total_amount": float(row.total_amount) if row.total_amount is not None else None,
        "currency": row.currency,
        "customer_name": row.customer_name,
        "customer_email": row.customer_email,
        "shipping_address": row.shipping_address,
        "shipping_city": row.shipping_city,
        "shipping_zip": row.shipping_zip,
        "payment_method": row.payment_method,
        "is_development_order": row.is_development_order,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "product_price": float(item.product_price),
                "quantity": item.quantity,
                "line_total": float(item.line_total),
            }
            for item in row.items
        ],
    }
