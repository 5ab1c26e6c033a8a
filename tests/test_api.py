import json
from decimal import Decimal

import pytest
from storefront.confirmation import ConfirmationProcessor
from storefront.main import app as fastapi_app
from storefront.models import Order, PaymentIntentRecord
from storefront.routes import get_confirmation_processor


def _confirm_payload(intent_id, customer, items, method="card", amount=29.99):
    return {
        "paymentIntentId": intent_id,
        "paymentMethodType": method,
        "customerInfo": customer,
        "items": items,
        "amount": amount,
    }


def test_create_payment_intent_success(client, session_factory, items):
    response = client.post(
        "/payment-intents",
        json={"amount": 29.99, "currency": "USD", "items": items, "customerInfo": {"name": "John Doe"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "requires_payment_method"
    assert body["amount"] == 2999
    assert body["currency"] == "usd"
    assert body["paymentIntentId"].startswith("pi_mock_")
    assert body["clientSecret"].startswith(body["paymentIntentId"] + "_secret_")

    # Intent is recorded
    db = session_factory()
    record = db.get(PaymentIntentRecord, body["paymentIntentId"])
    assert record is not None
    assert record.status == "requires_payment_method"
    db.close()


def test_create_payment_intent_negative_amount(client):
    response = client.post("/payment-intents", json={"amount": -10, "currency": "usd", "items": []})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid amount. Amount must be greater than 0."
    assert response.json()["code"] == "NON_POSITIVE_AMOUNT"


def test_create_payment_intent_missing_currency(client, items):
    response = client.post("/payment-intents", json={"amount": 29.99, "items": items})

    assert response.status_code == 400
    assert response.json()["error"] == "Currency is required."


def test_create_payment_intent_amount_mismatch(client, items):
    response = client.post("/payment-intents", json={"amount": 10, "currency": "usd", "items": items})

    assert response.status_code == 400
    assert response.json()["code"] == "AMOUNT_MISMATCH"


def test_malformed_item_is_a_400(client):
    response = client.post(
        "/payment-intents",
        json={"amount": 10, "currency": "usd", "items": [{"id": "x", "name": "X", "price": 10, "quantity": 0}]},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"
    assert response.json()["field"] == "items.0.quantity"


def test_payment_intents_liveness(client):
    response = client.get("/payment-intents")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Payment Intent API is running"
    assert set(body) == {"message", "environment", "timestamp"}


def test_confirm_payment_success(client, session_factory, items, customer):
    intent = client.post("/payment-intents", json={"amount": 29.99, "currency": "usd", "items": items}).json()

    response = client.post("/payment-confirmations", json=_confirm_payload(intent["paymentIntentId"], customer, items))

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "succeeded"
    assert body["amount"] == 29.99
    assert body["paymentIntentId"] == intent["paymentIntentId"]
    assert body["orderId"].startswith("order_")
    assert body["receiptUrl"].endswith(body["orderId"])

    db = session_factory()
    order = db.query(Order).filter_by(order_id=body["orderId"]).first()
    assert order.total_amount == Decimal("29.99")
    assert order.customer_name == "John Doe"
    assert len(order.items) == 1
    assert db.get(PaymentIntentRecord, intent["paymentIntentId"]).status == "succeeded"
    db.close()


def test_confirm_payment_short_name(client, session_factory, items, customer):
    customer["name"] = "J"

    response = client.post("/payment-confirmations", json=_confirm_payload("pi_mock_123", customer, items))

    assert response.status_code == 400
    assert response.json()["field"] == "name"
    assert response.json()["code"] == "TOO_SHORT"

    # Nothing persisted on failure
    db = session_factory()
    assert db.query(Order).count() == 0
    db.close()


def test_confirm_unknown_intent_is_trusted(client, items, customer):
    response = client.post("/payment-confirmations", json=_confirm_payload("pi_mock_external", customer, items))

    assert response.status_code == 200
    assert response.json()["currency"] == "usd"


def test_confirm_bypass_disabled(client, items, customer):
    fastapi_app.dependency_overrides[get_confirmation_processor] = lambda: ConfirmationProcessor(allow_bypass=False)

    response = client.post(
        "/payment-confirmations",
        json=_confirm_payload("pi_mock_123", customer, items, method="bypass"),
    )

    assert response.status_code == 403
    assert response.json()["code"] == "PAYMENT_METHOD_DISABLED"


def test_confirm_bypass_enabled(client, session_factory, items):
    fastapi_app.dependency_overrides[get_confirmation_processor] = lambda: ConfirmationProcessor(allow_bypass=True)

    response = client.post(
        "/payment-confirmations",
        json=_confirm_payload("pi_mock_123", {"name": "x"}, items, method="bypass"),
    )

    assert response.status_code == 200
    db = session_factory()
    order = db.query(Order).one()
    assert order.payment_method == "bypass"
    assert order.is_development_order is True
    db.close()


def test_confirm_declined_sentinel(client, items, customer):
    response = client.post("/payment-confirmations", json=_confirm_payload("pi_mock_fail", customer, items))

    assert response.status_code == 402
    assert response.json()["code"] == "card_declined"
    assert response.json()["paymentIntentId"] == "pi_mock_fail"


def test_confirm_missing_intent_id(client, items, customer):
    payload = _confirm_payload(None, customer, items)

    response = client.post("/payment-confirmations", json=payload)

    assert response.status_code == 400
    assert response.json()["field"] == "paymentIntentId"


def test_payment_confirmations_liveness(client):
    response = client.get("/payment-confirmations")

    assert response.status_code == 200
    assert response.json()["message"] == "Payment Confirmation API is running"


def _post_raw(client, url, body):
    # json.dumps writes NaN and Infinity literals, which json= would refuse
    return client.post(url, content=json.dumps(body), headers={"Content-Type": "application/json"})


@pytest.mark.parametrize("amount", [float("nan"), float("inf"), float("-inf")])
def test_create_payment_intent_non_finite_amount(client, session_factory, items, amount):
    response = _post_raw(client, "/payment-intents", {"amount": amount, "currency": "usd", "items": items})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"
    assert response.json()["field"] == "amount"
    db = session_factory()
    assert db.query(PaymentIntentRecord).count() == 0
    db.close()


def test_create_payment_intent_non_finite_item_price(client):
    items = [{"id": "x", "name": "X", "price": float("nan"), "quantity": 1}]
    response = _post_raw(client, "/payment-intents", {"amount": 10, "currency": "usd", "items": items})

    assert response.status_code == 400
    assert response.json()["field"] == "items.0.price"


@pytest.mark.parametrize("amount", [float("nan"), float("inf")])
def test_confirm_payment_non_finite_amount(client, session_factory, items, customer, amount):
    response = _post_raw(client, "/payment-confirmations", _confirm_payload("pi_mock_123", customer, items, amount=amount))

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"
    assert response.json()["field"] == "amount"
    db = session_factory()
    assert db.query(Order).count() == 0
    db.close()


def test_create_payment_intent_amount_too_large(client, session_factory):
    items = [{"id": "pallet", "name": "Pallet", "price": 1e20, "quantity": 1}]
    response = client.post("/payment-intents", json={"amount": 1e20, "currency": "usd", "items": items})

    assert response.status_code == 400
    assert response.json()["code"] == "AMOUNT_TOO_LARGE"
    db = session_factory()
    assert db.query(PaymentIntentRecord).count() == 0
    db.close()


def test_confirm_payment_amount_too_large(client, customer):
    items = [{"id": "pallet", "name": "Pallet", "price": 1e20, "quantity": 1}]
    response = client.post("/payment-confirmations", json=_confirm_payload("pi_mock_123", customer, items, amount=1e20))

    assert response.status_code == 400
    assert response.json()["code"] == "AMOUNT_TOO_LARGE"
