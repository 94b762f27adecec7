import os

os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-0123456789-test-secret-0123456789"

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
import database


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Every test gets a fresh in-memory MongoDB."""
    client = mongomock.MongoClient()
    monkeypatch.setattr(database, "client", client)
    return client


# carparts

@pytest.fixture
def carparts_db(mongo):
    return mongo[config.CARPARTS_DATABASE_NAME]


@pytest.fixture
def carparts_client():
    from carparts.main import app
    return TestClient(app)


@pytest.fixture
def carparts_headers(carparts_client):
    resp = carparts_client.post("/api/auth/register", json={
        "username": "alice", "email": "alice@carparts.io", "password": "secret123",
    })
    return {"Authorization": f"Bearer {resp.json()['token']}"}


# restaurant

@pytest.fixture
def restaurant_db(mongo):
    return mongo[config.RESTAURANT_DATABASE_NAME]


@pytest.fixture
def restaurant_client():
    from restaurant.main import app
    return TestClient(app)


@pytest.fixture
def make_user(restaurant_client):
    def _make(role, email=None, name=None):
        resp = restaurant_client.post("/api/auth/register", json={
            "name": name or role.title(),
            "email": email or f"{role}@restaurant.com",
            "password": "password123",
            "role": role,
        })
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["data"]["user"], {"Authorization": f"Bearer {body['token']}"}
    return _make


@pytest.fixture
def admin_headers(make_user):
    return make_user("admin")[1]


@pytest.fixture
def manager_headers(make_user):
    return make_user("manager")[1]


@pytest.fixture
def waiter(make_user):
    return make_user("waiter")


@pytest.fixture
def waiter_headers(waiter):
    return waiter[1]


@pytest.fixture
def menu_items(restaurant_db):
    pizza = database.create_document(restaurant_db, "menu_item", {
        "name": "Pizza", "description": "Margherita", "category": "Mains", "price": 12.0,
        "customizations": [{"name": "Size", "options": [
            {"name": "Regular", "price": 0}, {"name": "Large", "price": 2.0},
        ]}], "available": True, "preparation_time": 15,
    })
    soup = database.create_document(restaurant_db, "menu_item", {
        "name": "Soup", "description": "Tomato", "category": "Starters", "price": 6.0,
        "customizations": [], "available": True, "preparation_time": 5,
    })
    return {"pizza": pizza, "soup": soup}


@pytest.fixture
def tables(restaurant_db):
    ids = {}
    for number in (1, 2):
        ids[number] = database.create_document(restaurant_db, "table", {
            "table_number": number, "capacity": 4, "status": "available",
            "current_waiter": None, "current_order": None,
        })
    return ids
