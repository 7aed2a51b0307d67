from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from api_client import StorefrontApi
from browser import LocalStorage, Window
from main import app

OLD = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def db():
    mock_db = mongomock.MongoClient().shop
    database.ensure_indexes(mock_db)
    return mock_db


@pytest.fixture
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api(client):
    return StorefrontApi(base_url="http://testserver/api", session=client)


@pytest.fixture
def storage():
    return LocalStorage()


@pytest.fixture
def window(storage):
    return Window(storage)


def product_payload(**overrides):
    payload = {
        "sku": "A1",
        "name": "Green Tea Toner",
        "price": 25000,
        "category": "skincare",
        "image": "https://cdn.example.com/toner.png",
        "description": "Hydrating toner",
        "stock": 10,
    }
    payload.update(overrides)
    return payload


def user_payload(**overrides):
    payload = {
        "email": "kim@example.com",
        "name": "Kim",
        "password": "s3cret-pass",
        "user_type": "customer",
        "address": "Seoul",
    }
    payload.update(overrides)
    return payload


def order_payload(**overrides):
    payload = {
        "userId": "user-1",
        "items": [
            {"productId": "P1", "name": "Green Tea Toner", "price": 10000, "quantity": 2, "category": "skincare"},
        ],
        "totalAmount": 21600,
        "tax": 1600,
        "shippingFee": 0,
        "shippingAddress": {
            "firstName": "Minji",
            "lastName": "Kim",
            "email": "minji@example.com",
            "phone": "010-1234-5678",
            "address": "1 Main St",
        },
    }
    payload.update(overrides)
    return payload


def insert_product(db, **overrides):
    """Store a product directly with old timestamps."""
    doc = {
        "_id": "p-old",
        "sku": "OLD-1",
        "name": "Old Cream",
        "price": 12000,
        "category": "skincare",
        "image": "https://cdn.example.com/cream.png",
        "description": "Rich cream",
        "stock": 3,
        "createdAt": OLD,
        "updatedAt": OLD,
    }
    doc.update(overrides)
    db["products"].insert_one(doc)
    return doc
