import hashlib
import hmac
from decimal import Decimal

import pytest
import requests

from lupora.config import settings
from lupora.models.order import Order
from lupora.services import payment_service

from tests.conftest import SHIPPING


class FakeGatewayResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


def sign(order_ref, payment_ref, secret="test_secret"):
    return hmac.new(secret.encode(), f"{order_ref}|{payment_ref}".encode(), hashlib.sha256).hexdigest()


@pytest.fixture
def gateway_order(user, db):
    order = Order(
        user_id=user["id"],
        total_amount=Decimal("4500"),
        shipping_address=SHIPPING,
        payment_method="gateway",
        payment_status="pending",
        gateway_order_id="order_ABC",
    )
    db.add(order)
    db.commit()
    return order.id


def test_create_order_calls_gateway_in_paise(client, user, monkeypatch):
    calls = []

    def fake_post(url, json=None, auth=None, timeout=None):
        calls.append({"url": url, "json": json, "auth": auth, "timeout": timeout})
        return FakeGatewayResponse({"id": "order_ABC", "amount": json["amount"], "currency": "INR"})

    monkeypatch.setattr(payment_service.requests, "post", fake_post)

    response = client.post("/api/payment/create-order", json={"amount": 4500}, headers=user["headers"])

    assert response.status_code == 200
    assert response.json() == {"orderId": "order_ABC", "amount": 450000, "currency": "INR"}
    assert calls[0]["url"] == "https://api.razorpay.com/v1/orders"
    assert calls[0]["json"]["amount"] == 450000
    assert calls[0]["auth"] == ("rzp_test_key", "test_secret")
    assert calls[0]["timeout"] == settings.PAYMENT_TIMEOUT_SECONDS


def test_create_order_requires_authentication(client):
    assert client.post("/api/payment/create-order", json={"amount": 4500}).status_code == 401


def test_create_order_rejects_non_positive_amount(client, user):
    for amount in (0, -10):
        response = client.post("/api/payment/create-order", json={"amount": amount}, headers=user["headers"])
        assert response.status_code == 400


def test_create_order_gateway_down(client, user, monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(payment_service.requests, "post", fake_post)

    response = client.post("/api/payment/create-order", json={"amount": 4500}, headers=user["headers"])

    assert response.status_code == 503
    assert response.json()["message"] == "Payment gateway unavailable"


def test_create_order_gateway_rejects(client, user, monkeypatch):
    monkeypatch.setattr(
        payment_service.requests, "post",
        lambda *args, **kwargs: FakeGatewayResponse({"error": {"code": "BAD_REQUEST_ERROR"}}, status_code=401),
    )

    response = client.post("/api/payment/create-order", json={"amount": 4500}, headers=user["headers"])

    assert response.status_code == 503


def test_create_order_without_credentials(client, user, monkeypatch):
    monkeypatch.setattr(settings, "RAZORPAY_KEY_ID", "")

    response = client.post("/api/payment/create-order", json={"amount": 4500}, headers=user["headers"])

    assert response.status_code == 503
    assert response.json()["message"] == "Payment gateway not configured"


def test_compute_signature_matches_gateway_scheme():
    assert payment_service.compute_signature("order_ABC", "pay_XYZ", "test_secret") == sign("order_ABC", "pay_XYZ")


def test_to_minor_units():
    assert payment_service.to_minor_units(4500) == 450000
    assert payment_service.to_minor_units(250.5) == 25050
    assert payment_service.to_minor_units(19.99) == 1999


def test_verify_valid_signature_marks_order_paid(client, user, gateway_order, db):
    response = client.post("/api/payment/verify", json={
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": sign("order_ABC", "pay_XYZ"),
    }, headers=user["headers"])

    assert response.status_code == 200
    assert response.json() == {"verified": True, "message": "Payment verified"}

    db.expire_all()
    order = db.get(Order, gateway_order)
    assert order.payment_status == "paid"
    assert order.gateway_payment_id == "pay_XYZ"


def test_verify_rejects_single_character_change(client, user, gateway_order, db):
    signature = sign("order_ABC", "pay_XYZ")
    tampered = signature[:-1] + ("0" if signature[-1] != "0" else "1")

    response = client.post("/api/payment/verify", json={
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
        "razorpay_signature": tampered,
    }, headers=user["headers"])

    assert response.status_code == 400
    assert response.json() == {"verified": False, "message": "Payment verification failed"}

    db.expire_all()
    order = db.get(Order, gateway_order)
    assert order.payment_status == "pending"
    assert order.gateway_payment_id is None


def test_verify_rejects_swapped_references(client, user):
    response = client.post("/api/payment/verify", json={
        "razorpay_order_id": "pay_XYZ",
        "razorpay_payment_id": "order_ABC",
        "razorpay_signature": sign("order_ABC", "pay_XYZ"),
    }, headers=user["headers"])

    assert response.status_code == 400


def test_verify_before_order_exists(client, user):
    response = client.post("/api/payment/verify", json={
        "razorpay_order_id": "order_NEW",
        "razorpay_payment_id": "pay_NEW",
        "razorpay_signature": sign("order_NEW", "pay_NEW"),
    }, headers=user["headers"])

    assert response.status_code == 200
    assert response.json()["verified"] is True


def test_verify_requires_all_fields(client, user):
    response = client.post("/api/payment/verify", json={
        "razorpay_order_id": "order_ABC",
        "razorpay_payment_id": "pay_XYZ",
    }, headers=user["headers"])

    assert response.status_code == 400
