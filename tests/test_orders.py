import re
from datetime import datetime, timedelta, timezone

import pytest

import order_routes
from conftest import order_payload
from order_routes import make_order_id


@pytest.fixture
def order(client):
    resp = client.post("/api/orders", json=order_payload())
    assert resp.status_code == 201
    return resp.json()


def test_order_id_format():
    assert re.fullmatch(r"order_\d{13}_[0-9a-z]{9}", make_order_id())
    assert make_order_id() != make_order_id()


def test_create_order(order):
    assert order["id"].startswith("order_")
    assert order["userId"] == "user-1"
    assert order["status"] == "pending"
    assert order["totalAmount"] == 21600
    assert order["items"][0]["quantity"] == 2
    assert order["shippingAddress"]["city"] is None
    assert order["paymentInfo"] is None
    assert order["createdAt"] == order["updatedAt"]


def test_create_order_defaults_to_guest(client):
    resp = client.post("/api/orders", json=order_payload(userId=None))
    assert resp.status_code == 201
    assert resp.json()["userId"] == "guest"


def test_create_order_with_payment_info(client):
    payment = {"impUid": "imp_123", "merchantUid": "order_1_abc", "paidAmount": 21600, "status": "paid"}
    body = client.post("/api/orders", json=order_payload(paymentInfo=payment)).json()
    assert body["paymentInfo"]["impUid"] == "imp_123"
    assert body["paymentInfo"]["paidAmount"] == 21600


@pytest.mark.parametrize("overrides, message", [
    ({"items": []}, "Order items are required"),
    ({"shippingAddress": None}, "Shipping address is required"),
    ({"status": "lost"}, "Invalid order status"),
])
def test_create_order_rejects_bad_input(client, db, overrides, message):
    resp = client.post("/api/orders", json=order_payload(**overrides))
    assert resp.status_code == 400
    assert resp.json()["detail"] == message
    assert db["orders"].count_documents({}) == 0


def test_item_quantity_must_be_positive(client):
    items = [{"productId": "P1", "name": "Toner", "price": 100, "quantity": 0}]
    resp = client.post("/api/orders", json=order_payload(items=items))
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "Validation failed"


def test_listings_are_newest_first(client, db):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i, user in enumerate(["u1", "u2", "u1"]):
        db["orders"].insert_one({
            "_id": f"o{i}",
            "userId": user,
            "items": [],
            "status": "pending",
            "shippingAddress": {},
            "createdAt": base + timedelta(hours=i),
            "updatedAt": base + timedelta(hours=i),
        })

    assert [o["id"] for o in client.get("/api/orders").json()] == ["o2", "o1", "o0"]
    assert [o["id"] for o in client.get("/api/orders/user/u1").json()] == ["o2", "o0"]
    assert client.get("/api/orders/user/nobody").json() == []


def test_get_order_needs_user_id(client, order):
    assert client.get(f"/api/orders/{order['id']}").status_code == 400
    assert client.get(f"/api/orders/{order['id']}", params={"userId": "user-2"}).status_code == 404
    found = client.get(f"/api/orders/{order['id']}", params={"userId": "user-1"})
    assert found.status_code == 200
    assert found.json() == order


def test_update_status(client, order):
    resp = client.put(f"/api/orders/{order['id']}/status", json={"status": "shipped", "userId": "user-1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "shipped"
    assert body["items"] == order["items"]
    assert body["createdAt"] == order["createdAt"]


@pytest.mark.parametrize("payload, code", [
    ({"userId": "user-1"}, 400),
    ({"status": "shipped"}, 400),
    ({"status": "teleported", "userId": "user-1"}, 400),
    ({"status": "shipped", "userId": "user-2"}, 404),
])
def test_update_status_errors(client, order, payload, code):
    assert client.put(f"/api/orders/{order['id']}/status", json=payload).status_code == code


def test_update_order_merges_and_keeps_owner(client, order):
    resp = client.put(f"/api/orders/{order['id']}", json={
        "userId": "user-1",
        "shippingAddress": {"firstName": "Minji", "lastName": "Kim", "city": "Seoul"},
        "tax": None,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == order["id"]
    assert body["userId"] == "user-1"
    assert body["shippingAddress"]["city"] == "Seoul"
    assert body["tax"] == 1600
    assert body["totalAmount"] == 21600


def test_update_order_errors(client, order):
    assert client.put(f"/api/orders/{order['id']}", json={"status": "shipped"}).status_code == 400
    assert client.put(f"/api/orders/{order['id']}", json={"userId": "user-1", "items": []}).status_code == 400
    assert client.put(f"/api/orders/{order['id']}", json={"userId": "user-1", "status": "x"}).status_code == 400
    assert client.put("/api/orders/missing", json={"userId": "user-1"}).status_code == 404


def test_delete_order_returns_deleted_record(client, order):
    assert client.delete(f"/api/orders/{order['id']}").status_code == 400
    resp = client.delete(f"/api/orders/{order['id']}", params={"userId": "user-1"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Order deleted", "deletedOrder": order}
    assert client.get(f"/api/orders/{order['id']}", params={"userId": "user-1"}).status_code == 404


def test_order_id_collision_is_a_conflict(client, db, monkeypatch):
    monkeypatch.setattr(order_routes, "make_order_id", lambda: "order_1700000000000_aaaaaaaaa")
    assert client.post("/api/orders", json=order_payload()).status_code == 201

    resp = client.post("/api/orders", json=order_payload())
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Order id already exists"
    assert db["orders"].count_documents({}) == 1
