import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from database import ensure_indexes, get_db  # noqa: E402
from main import app  # noqa: E402
from products import create_product  # noqa: E402
from schemas import ProductCreate  # noqa: E402


@pytest.fixture()
def db():
    client = mongomock.MongoClient()
    database = client["shop_test"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def product(db):
    return create_product(db, ProductCreate(name="Desk Lamp", price=12.5, stock=4))


@pytest.fixture()
def shipping_address():
    return {
        "street": "12 Lake Road",
        "city": "Dhaka",
        "state": "Dhaka",
        "postalCode": "1207",
        "country": "Bangladesh",
    }
