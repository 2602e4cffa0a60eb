from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.core.dependencies import (
    get_checkout_service,
    get_order_service,
    get_session_manager,
)
from storefront.core.session import CartSessionManager
from storefront.main import app
from storefront.services.auth import create_access_token
from storefront.services.checkout import CheckoutGate, CheckoutService


@pytest.fixture
def client(storage, catalog, shipping_policy, promo_resolver, order_service):
    gate = CheckoutGate()
    manager = CartSessionManager(storage, catalog, shipping_policy, promo_resolver, gate=gate)
    checkout_service = CheckoutService(order_service, gate)

    app.dependency_overrides[get_session_manager] = lambda: manager
    app.dependency_overrides[get_order_service] = lambda: order_service
    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings):
    token = create_access_token("shopper@example.com", settings.jwt_secret_key, settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_empty_cart(client):
    body = client.get("/api/cart/s1").json()

    assert body["items"] == []
    assert body["totals"]["grand_total"] == "0.00"
    assert body["selected_shipping"] == "standard"


def test_cart_flow(client):
    response = client.post("/api/cart/s1/items", json={"product_id": "A", "quantity": 3})
    assert response.status_code == 200

    client.post("/api/cart/s1/promo", json={"code": "WELCOME20"})
    body = client.put("/api/cart/s1/shipping", json={"option_id": "free"}).json()

    totals = body["totals"]
    assert totals["subtotal"] == "60.00"
    assert totals["discount_amount"] == "12.00"
    assert totals["shipping_cost"] == "0.00"
    assert totals["tax"] == "4.20"
    assert totals["grand_total"] == "52.20"
    assert totals["items_count"] == 3
    assert body["promo"]["applied"] is True


def test_add_unknown_product(client):
    response = client.post("/api/cart/s1/items", json={"product_id": "nope"})

    assert response.status_code == 404


def test_add_clamps_to_stock(client):
    body = client.post("/api/cart/s1/items", json={"product_id": "B", "quantity": 9}).json()

    assert body["items"][0]["quantity"] == 3


def test_update_to_zero_removes(client):
    client.post("/api/cart/s1/items", json={"product_id": "A", "quantity": 2})

    body = client.put("/api/cart/s1/items/A", json={"quantity": 0}).json()

    assert body["items"] == []


def test_update_item_not_in_cart(client):
    response = client.put("/api/cart/s1/items/A", json={"quantity": 2})

    assert response.status_code == 404


def test_remove_and_clear(client):
    client.post("/api/cart/s1/items", json={"product_id": "A"})
    client.post("/api/cart/s1/items", json={"product_id": "B"})

    body = client.delete("/api/cart/s1/items/A").json()
    assert [i["product_id"] for i in body["items"]] == ["B"]

    body = client.delete("/api/cart/s1").json()
    assert body["items"] == []


def test_ineligible_shipping_conflict(client):
    client.post("/api/cart/s1/items", json={"product_id": "B"})

    assert client.put("/api/cart/s1/shipping", json={"option_id": "free"}).status_code == 409
    assert client.put("/api/cart/s1/shipping", json={"option_id": "boat"}).status_code == 400


def test_invalid_promo_reported(client):
    client.post("/api/cart/s1/items", json={"product_id": "A"})

    body = client.post("/api/cart/s1/promo", json={"code": "INVALID"}).json()

    assert body["promo"]["applied"] is False
    assert body["promo"]["message"] == "Invalid or expired promo code"
    assert body["totals"]["discount_amount"] == "0.00"


def test_remove_promo(client):
    client.post("/api/cart/s1/items", json={"product_id": "A"})
    client.post("/api/cart/s1/promo", json={"code": "DISCOUNT10"})

    body = client.delete("/api/cart/s1/promo").json()

    assert body["promo"]["applied"] is False
    assert body["discount_rule"] is None


def test_refresh(client, catalog):
    client.post("/api/cart/s1/items", json={"product_id": "A"})
    catalog.set_price("A", Decimal("25.00"))

    assert client.get("/api/cart/s1").json()["totals"]["subtotal"] == "20.00"
    assert client.post("/api/cart/s1/refresh").json()["totals"]["subtotal"] == "25.00"


def test_gate_requires_login(client, auth_headers):
    client.post("/api/cart/s1/items", json={"product_id": "A"})

    anonymous = client.get("/api/checkout/s1/gate").json()
    signed_in = client.get("/api/checkout/s1/gate", headers=auth_headers).json()

    assert anonymous["state"] == "blocked"
    assert anonymous["reason"] == "not_authenticated"
    assert anonymous["redirect"] == {"target": "/login", "resume_to": "/checkout"}
    assert signed_in["state"] == "allowed"


def test_gate_rejects_bad_token(client):
    client.post("/api/cart/s1/items", json={"product_id": "A"})

    body = client.get("/api/checkout/s1/gate", headers={"Authorization": "Bearer not-a-jwt"}).json()

    assert body["reason"] == "not_authenticated"


def test_gate_empty_cart(client, auth_headers):
    body = client.get("/api/checkout/s1/gate", headers=auth_headers).json()

    assert body["reason"] == "empty_cart"
    assert body["redirect"] is None


def test_checkout(client, auth_headers):
    client.post("/api/cart/s1/items", json={"product_id": "A", "quantity": 3})
    client.post("/api/cart/s1/promo", json={"code": "WELCOME20"})

    outcome = client.post("/api/checkout/s1", headers=auth_headers).json()

    assert outcome["success"] is True
    assert outcome["order"]["total"] == "52.20"
    assert client.get("/api/cart/s1").json()["items"] == []

    order = client.get(f"/api/checkout/orders/{outcome['order']['order_id']}")
    assert order.status_code == 200
    assert len(client.get("/api/checkout/orders").json()) == 1


def test_checkout_blocked_keeps_cart(client):
    client.post("/api/cart/s1/items", json={"product_id": "A"})

    outcome = client.post("/api/checkout/s1").json()

    assert outcome["success"] is False
    assert outcome["decision"]["reason"] == "not_authenticated"
    assert len(client.get("/api/cart/s1").json()["items"]) == 1


def test_unknown_order(client):
    assert client.get("/api/checkout/orders/ORD-MISSING").status_code == 404
