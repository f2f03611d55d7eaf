"""Shared fixtures: in-memory TinyDB, a fake key-value store and a seeded user."""

from datetime import date

import pytest
from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from dompet.db.repository import Repositories
from dompet.errors import KeyValueError
from dompet.models.schemas import User
from dompet.services.confirm import ConfirmationStore

TODAY = date(2026, 3, 10)


class FakeKeyValueStore:
    """Dict-backed store with a manual clock; set ``broken`` to simulate an outage."""

    def __init__(self):
        self.data: dict[str, tuple[str, float | None]] = {}
        self.now = 1_000_000.0
        self.broken = False

    def _check(self):
        if self.broken:
            raise KeyValueError("store unavailable")

    async def get(self, key):
        self._check()
        entry = self.data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.now >= expires_at:
            del self.data[key]
            return None
        return value

    async def put(self, key, value, *, ttl=None, expires_at=None):
        self._check()
        if expires_at is None and ttl is not None:
            expires_at = self.now + ttl
        self.data[key] = (value, expires_at)

    async def delete(self, key):
        self._check()
        self.data.pop(key, None)


@pytest.fixture
def db():
    database = TinyDB(storage=MemoryStorage)
    yield database
    database.close()


@pytest.fixture
def repos(db) -> Repositories:
    return Repositories(db)


@pytest.fixture
def user(repos) -> User:
    return repos.users.get_or_create("12345", "Budi")


@pytest.fixture
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture
def confirmations(kv) -> ConfirmationStore:
    return ConfirmationStore(kv, ttl=60)
