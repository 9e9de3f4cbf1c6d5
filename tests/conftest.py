from datetime import datetime, timedelta, timezone

import pytest

from assetfind.data.records import AssetRecord
from assetfind.data.store import InMemoryCatalogStore
from assetfind.retrieval.retriever import SearchService

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
LONG_AGO = NOW - timedelta(days=365)


class FailingStore:
    """Catalog store whose backend is down."""

    def __init__(self, fail_scan: bool = True, fail_find: bool = True):
        self.fail_scan = fail_scan
        self.fail_find = fail_find

    async def find(self, catalog_filter, cap):
        if self.fail_find:
            raise ConnectionError("connection refused")
        return []

    async def scan_all(self, fields):
        if self.fail_scan:
            raise ConnectionError("connection refused")
        return []


class CountingStore:
    """Wraps a store and counts `find` calls; `empty_find` makes every find miss."""

    def __init__(self, inner, empty_find: bool = False):
        self.inner = inner
        self.empty_find = empty_find
        self.find_calls = 0

    async def find(self, catalog_filter, cap):
        self.find_calls += 1
        if self.empty_find:
            return []
        return await self.inner.find(catalog_filter, cap)

    async def scan_all(self, fields):
        return await self.inner.scan_all(fields)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


def scenario_records():
    return [
        AssetRecord(id="A", title="Red Sports Car", created_at=LONG_AGO),
        AssetRecord(id="B", title="City Bus", created_at=LONG_AGO),
        AssetRecord(id="C", tags=("car", "vehicle"), created_at=LONG_AGO),
    ]


@pytest.fixture
def scenario_store():
    return InMemoryCatalogStore(scenario_records())


@pytest.fixture
def make_service():
    def _make(store, **kwargs):
        kwargs.setdefault("now", lambda: NOW)
        return SearchService(store, **kwargs)

    return _make


@pytest.fixture
def scenario_service(scenario_store, make_service):
    return make_service(scenario_store)


@pytest.fixture
def failing_store():
    return FailingStore


@pytest.fixture
def counting_store():
    return CountingStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def long_ago():
    return LONG_AGO
