import pytest
from fastapi.testclient import TestClient

from database import JsonFileStore, get_store
from main import app
from schemas import DiscountCode, Product, Snapshot, User


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_snapshot() -> Snapshot:
    return Snapshot(
        products=[
            Product(product_id="P1", name="Mug", quantity=10, price=20.0),
            Product(product_id="P2", name="Tote", quantity=2, price=15.0),
        ],
        users=[
            User(user_id="U1", name="Ada", email="ada@example.com", password="pw1"),
            User(user_id="U2", name="Bob", email="bob@example.com", password="pw2"),
            User(user_id="ADMIN", name="Root", email="root@example.com", password="secret", role="admin"),
        ],
        discount_codes=[
            DiscountCode(code="SAVE10AB", discount=10, is_available=True),
            DiscountCode(code="USEDCODE", discount=10, is_available=False),
        ],
        discount_order=5,
    )


@pytest.fixture
def store(tmp_path):
    s = JsonFileStore(str(tmp_path / "db.json"))
    s._write_file(make_snapshot().model_dump(mode="json", by_alias=True))
    return s


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
