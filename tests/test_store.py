"""Tests for the snapshot stores."""
import json

import pytest
from pymongo.errors import ConnectionFailure

from database import JsonFileStore, MongoStore, Settings
from errors import PersistenceError, StoreUnavailable
from schemas import Product, Snapshot


@pytest.mark.anyio
async def test_missing_file_reads_default_snapshot(tmp_path):
    store = JsonFileStore(str(tmp_path / "absent.json"))
    snapshot = await store.read()
    assert snapshot.products == []
    assert snapshot.users == []
    assert snapshot.discount_codes == []
    assert snapshot.discount_order == 5


@pytest.mark.anyio
async def test_write_then_read(tmp_path):
    path = tmp_path / "db.json"
    store = JsonFileStore(str(path))
    await store.write(Snapshot(products=[Product(product_id="A", name="Alpha", quantity=3, price=1.5)]))

    # a fresh store sees what the first one wrote
    snapshot = await JsonFileStore(str(path)).read()
    assert snapshot.products[0].name == "Alpha"
    assert snapshot.products[0].quantity == 3


@pytest.mark.anyio
async def test_file_uses_camel_case_keys(tmp_path):
    path = tmp_path / "db.json"
    await JsonFileStore(str(path)).write(Snapshot(discount_order=7))
    data = json.loads(path.read_text())
    assert data["discountOrder"] == 7
    assert data["discountCodes"] == []
    assert not list(tmp_path.glob("*.tmp"))


@pytest.mark.anyio
async def test_reads_existing_camel_case_file(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({
        "products": [{"productId": "x1", "name": "Lamp", "quantity": 4, "price": 42.21}],
        "users": [],
        "discountCodes": [{"code": "ABCDEFGH", "discount": 10, "isAvailable": True}],
        "discountOrder": 3,
    }))
    snapshot = await JsonFileStore(str(path)).read()
    assert snapshot.products[0].product_id == "x1"
    assert snapshot.discount_codes[0].is_available is True
    assert snapshot.discount_order == 3


@pytest.mark.anyio
async def test_corrupt_file_is_unavailable(tmp_path):
    path = tmp_path / "db.json"
    path.write_text("{not json")
    with pytest.raises(StoreUnavailable):
        await JsonFileStore(str(path)).read()


@pytest.mark.anyio
async def test_invalid_utf8_file_is_unavailable(tmp_path):
    path = tmp_path / "db.json"
    path.write_bytes(b'{"products": [], "x": "\xff\xfe"}')
    with pytest.raises(StoreUnavailable):
        await JsonFileStore(str(path)).read()


@pytest.mark.anyio
async def test_null_cadence_reads(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"products": [], "users": [], "discountCodes": [], "discountOrder": None}))
    snapshot = await JsonFileStore(str(path)).read()
    assert snapshot.discount_order is None


@pytest.mark.anyio
async def test_unknown_role_is_rejected(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"users": [
        {"userId": "u", "name": "N", "email": "n@example.com", "password": "p", "role": "admn", "orders": []},
    ]}))
    with pytest.raises(StoreUnavailable):
        await JsonFileStore(str(path)).read()


@pytest.mark.anyio
async def test_failed_write_raises_persistence_error(tmp_path):
    store = JsonFileStore(str(tmp_path / "missing-dir" / "db.json"))
    with pytest.raises(PersistenceError):
        await store.write(Snapshot())


class FakeCollection:
    name = "storefront"

    def __init__(self, fail=False):
        self.docs = {}
        self.fail = fail

    async def find_one(self, query):
        if self.fail:
            raise ConnectionFailure("down")
        doc = self.docs.get(query["_id"])
        return dict(doc) if doc else None

    async def replace_one(self, query, doc, upsert=False):
        if self.fail:
            raise ConnectionFailure("down")
        self.docs[query["_id"]] = {"_id": query["_id"], **doc}


@pytest.mark.anyio
async def test_mongo_store_round_trip():
    collection = FakeCollection()
    store = MongoStore(collection)
    assert (await store.read()).products == []

    await store.write(Snapshot(products=[Product(product_id="A", name="Alpha", quantity=1, price=2.0)]))
    assert collection.docs["snapshot"]["products"][0]["productId"] == "A"
    assert (await store.read()).products[0].name == "Alpha"


@pytest.mark.anyio
async def test_mongo_store_errors():
    store = MongoStore(FakeCollection(fail=True))
    with pytest.raises(StoreUnavailable):
        await store.read()
    with pytest.raises(PersistenceError):
        await store.write(Snapshot())


def test_discount_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DEFAULT_DISCOUNT_ORDER", "7")
    monkeypatch.setenv("DISCOUNT_PERCENT", "15")
    monkeypatch.setenv("DISCOUNT_CODE_LENGTH", "10")
    configured = Settings()
    assert configured.DEFAULT_DISCOUNT_ORDER == 7
    assert configured.DISCOUNT_PERCENT == 15
    assert configured.DISCOUNT_CODE_LENGTH == 10
