"""
Shared fixtures: a seeded in-memory store, a shim with a fixed clock and a
client wired to it through the local transport.
"""

from datetime import date

import pytest

from backend.client import ApiClient
from backend.shim import Shim
from backend.transport import LocalTransport
from core.cache import DataCache
from data.store import MemoryStore, SAMPLE_DATA

FIXED_TODAY = date(2024, 6, 14)


@pytest.fixture
def store():
    return MemoryStore(SAMPLE_DATA)


@pytest.fixture
def shim(store):
    return Shim(store, clock=lambda: FIXED_TODAY)


@pytest.fixture
def client(shim):
    return ApiClient(LocalTransport(shim))


@pytest.fixture
def loaded_cache(client):
    cache = DataCache()
    assert cache.load(client)
    return cache


@pytest.fixture
def workbook_path(tmp_path):
    return tmp_path / "store" / "wifinet.xlsx"
