from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront import config
from storefront.auth import verify_admin
from storefront.catalog import (
    catalog_stats, create_product, get_product, list_products, product_to_dict, search_params, search_products
)
from storefront.confirmation import ConfirmationProcessor
from storefront.database import get_db
from storefront.domain import PaymentIntent
from storefront.intents import create_intent
from storefront.models import PaymentIntentRecord
from storefront.orders import create_manual_order, list_orders, order_to_dict, save_intent, save_order
from storefront.schemas import (
    ManualOrderRequest,
    PaymentConfirmationRequest,
    PaymentConfirmationResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    ProductIn,
)

router = APIRouter()

RECEIPT_BASE_URL = "https://mock-receipts.com"


def get_confirmation_processor() -> ConfirmationProcessor:
    return ConfirmationProcessor(
        allow_bypass=config.ALLOW_PAYMENT_BYPASS,
        currency=config.DEFAULT_CURRENCY,
    )


def _liveness(name: str) -> dict:
    return {
        "message": f"{name} API is running",
        "environment": config.APP_ENV,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/payment-intents", response_model=PaymentIntentResponse)
def create_payment_intent_api(request: PaymentIntentRequest, db: Session = Depends(get_db)):
    intent = create_intent(
        request.amount,
        request.currency,
        [item.to_domain() for item in request.items],
        customer_hint=request.customer_info.model_dump() if request.customer_info else None,
    )

    save_intent(db, intent)

    return {
        "clientSecret": intent.client_secret,
        "paymentIntentId": intent.id,
        "amount": intent.amount,
        "currency": intent.currency,
        "status": intent.status,
    }


@router.get("/payment-intents")
def payment_intents_status():
    return _liveness("Payment Intent")


@router.post("/payment-confirmations", response_model=PaymentConfirmationResponse)
def confirm_payment_api(
    request: PaymentConfirmationRequest,
    db: Session = Depends(get_db),
    processor: ConfirmationProcessor = Depends(get_confirmation_processor),
):
    record = None
    intent = None
    if request.payment_intent_id:
        record = db.get(PaymentIntentRecord, request.payment_intent_id)
    if record is not None:
        intent = PaymentIntent(
            id=record.id,
            client_secret=record.client_secret,
            amount=record.amount,
            currency=record.currency,
            status=record.status,
        )

    order = processor.confirm(
        request.payment_intent_id,
        request.payment_method_type,
        request.customer_info.to_domain(),
        [item.to_domain() for item in request.items],
        request.amount,
        intent=intent,
    )
    save_order(db, order, intent_record=record)

    return {
        "orderId": order.order_id,
        "paymentIntentId": order.payment_intent_id,
        "status": order.status,
        "amount": float(order.amount),
        "currency": order.currency,
        "receiptUrl": f"{RECEIPT_BASE_URL}/{order.order_id}",
        "timestamp": order.created_at.isoformat(),
    }


@router.get("/payment-confirmations")
def payment_confirmations_status():
    return _liveness("Payment Confirmation")


@router.get("/orders")
def list_orders_api(limit: int = 10, dev: bool = False, db: Session = Depends(get_db)):
    rows = list_orders(db, limit=limit, dev_only=dev)
    return {
        "orders": [order_to_dict(row) for row in rows],
        "count": len(rows),
        "message": "Development orders only" if dev else "All orders",
    }


@router.post("/orders", status_code=201)
def create_order_api(request: ManualOrderRequest, db: Session = Depends(get_db), auth=Depends(verify_admin)):
    row = create_manual_order(db, request)
    return {"message": "Order created successfully", "order": order_to_dict(row)}


@router.get("/products")
def list_products_api(sort: str = None, db: Session = Depends(get_db)):
    products = [product_to_dict(p) for p in list_products(db, sort)]
    return {"data": products, "total": len(products)}


@router.get("/products/search")
def search_products_api(
    q: str = None,
    min_price: str = Query(None, alias="minPrice"),
    max_price: str = Query(None, alias="maxPrice"),
    sort: str = None,
    in_stock: str = Query(None, alias="inStock"),
    limit: str = None,
    offset: str = None,
    db: Session = Depends(get_db),
):
    params = search_params(q, min_price, max_price, sort, in_stock, limit, offset)
    page, total = search_products(db, params)
    return {"data": [product_to_dict(p) for p in page], "total": total, "query": params}


@router.get("/products/stats")
def product_stats_api(db: Session = Depends(get_db)):
    return {"data": catalog_stats(db)}


@router.get("/products/{slug}")
def get_product_api(slug: str, db: Session = Depends(get_db)):
    return {"data": product_to_dict(get_product(db, slug), with_reviews=True)}


@router.post("/products", status_code=201)
def create_product_api(request: ProductIn, db: Session = Depends(get_db), auth=Depends(verify_admin)):
    return product_to_dict(create_product(db, request))
