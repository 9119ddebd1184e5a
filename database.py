from __future__ import annotations
import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pydantic import ValidationError as SchemaError
from pydantic_settings import BaseSettings
from pymongo.errors import PyMongoError

from errors import PersistenceError, StoreUnavailable
from schemas import Snapshot

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "json")
    DATA_FILE: str = os.getenv("DATA_FILE", "db.json")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "storefront")
    DEFAULT_DISCOUNT_ORDER: int = int(os.getenv("DEFAULT_DISCOUNT_ORDER", "5"))
    DISCOUNT_PERCENT: int = int(os.getenv("DISCOUNT_PERCENT", "10"))
    DISCOUNT_CODE_LENGTH: int = int(os.getenv("DISCOUNT_CODE_LENGTH", "8"))
    # "user" counts the requesting user's orders, "global" counts every order
    ELIGIBILITY_COUNTER: str = os.getenv("ELIGIBILITY_COUNTER", "user")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()


class DocumentStore:
    """Reads and writes the whole storefront snapshot at once.

    There are no partial writes: ``write`` replaces everything stored before.
    Hold ``lock`` around a read-modify-write span so two requests in this
    process can't overwrite each other's changes. Separate processes sharing
    one backing store are not coordinated.
    """

    def __init__(self):
        self.lock = asyncio.Lock()

    async def read(self) -> Snapshot:
        raise NotImplementedError

    async def write(self, snapshot: Snapshot) -> None:
        raise NotImplementedError


class JsonFileStore(DocumentStore):
    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def _read_file(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_file(self, data: dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    async def read(self) -> Snapshot:
        try:
            data = await asyncio.to_thread(self._read_file)
            return Snapshot.model_validate(data)
        except (OSError, ValueError) as e:
            logger.exception("Could not load %s", self.path)
            raise StoreUnavailable() from e

    async def write(self, snapshot: Snapshot) -> None:
        data = snapshot.model_dump(mode="json", by_alias=True)
        try:
            await asyncio.to_thread(self._write_file, data)
        except (OSError, TypeError) as e:
            logger.exception("Could not write %s", self.path)
            raise PersistenceError() from e


class MongoStore(DocumentStore):
    """Keeps the snapshot as a single document in one collection."""

    SNAPSHOT_ID = "snapshot"

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__()
        self.collection = collection

    async def read(self) -> Snapshot:
        try:
            doc = await self.collection.find_one({"_id": self.SNAPSHOT_ID})
            doc = dict(doc or {})
            doc.pop("_id", None)
            return Snapshot.model_validate(doc)
        except (PyMongoError, SchemaError) as e:
            logger.exception("Could not load snapshot from %s", self.collection.name)
            raise StoreUnavailable() from e

    async def write(self, snapshot: Snapshot) -> None:
        data = snapshot.model_dump(mode="json", by_alias=True)
        try:
            await self.collection.replace_one({"_id": self.SNAPSHOT_ID}, data, upsert=True)
        except PyMongoError as e:
            logger.exception("Could not write snapshot to %s", self.collection.name)
            raise PersistenceError() from e


_client: Optional[AsyncIOMotorClient] = None
_store: Optional[DocumentStore] = None

def get_store() -> DocumentStore:
    global _client, _store
    if _store is None:
        if settings.STORE_BACKEND == "mongo":
            _client = AsyncIOMotorClient(settings.DATABASE_URL)
            _store = MongoStore(_client[settings.DATABASE_NAME]["storefront"])
        else:
            _store = JsonFileStore(settings.DATA_FILE)
        logger.info("Using %s store", settings.STORE_BACKEND)
    return _store
