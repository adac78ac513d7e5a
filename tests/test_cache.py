from datetime import date

import pytest

from backend.client import ApiClient
from backend.errors import TransportError, ValidationError
from backend.shim import Shim
from backend.transport import LocalTransport
from core.cache import ERROR, IDLE, READY, DataCache
from core.models import Payment, PaymentMethod, Plan
from data.store import SAMPLE_DATA, WorkbookStore


class FlakyClient:
    """Fails the first `failures` fetches, then delegates."""

    def __init__(self, client, failures=1):
        self.client = client
        self.failures = failures

    def get_all_data(self):
        if self.failures:
            self.failures -= 1
            raise TransportError("Backend unreachable: timeout")
        return self.client.get_all_data()


def test_load_fills_collections(loaded_cache):
    assert loaded_cache.status == READY
    assert loaded_cache.error is None
    assert len(loaded_cache.users) == 4
    assert len(loaded_cache.products) == 3
    assert [p.id for p in loaded_cache.payments] == ["pay1", "pay2"]


def test_load_failure_then_retry(client):
    cache = DataCache()
    assert cache.status == IDLE

    flaky = FlakyClient(client)
    assert cache.load(flaky) is False
    assert cache.status == ERROR
    assert "unreachable" in cache.error
    assert cache.users == []

    assert cache.load(flaky) is True
    assert cache.status == READY
    assert cache.error is None


def test_failed_reload_keeps_previous_data(loaded_cache, client):
    before = list(loaded_cache.users)

    loaded_cache.load(FlakyClient(client))

    assert loaded_cache.status == ERROR
    assert loaded_cache.users == before


def test_add_payment_goes_first(loaded_cache, client):
    payment = loaded_cache.add_payment(client, {"userId": "u2", "amount": 1499, "method": "Cash"})

    assert loaded_cache.payments[0] == payment
    assert len(loaded_cache.payments) == 3


def test_add_subscriber_and_plan_go_last(loaded_cache, client):
    user = loaded_cache.add_subscriber(client, {
        "name": "Ana", "email": "ana@example.com", "status": "pending",
    })
    plan = loaded_cache.add_plan(client, {"name": "Max", "speed": 200, "price": 2499})

    assert loaded_cache.users[-1] == user
    assert loaded_cache.products[-1] == plan


def test_update_replaces_in_place(loaded_cache, client):
    plan = loaded_cache.get_plan("p2")
    plan.price = 1599

    loaded_cache.update_plan(client, plan)

    assert [p.id for p in loaded_cache.products] == ["p1", "p2", "p3"]
    assert loaded_cache.get_plan("p2").price == 1599


def test_delete_removes_by_id(loaded_cache, client):
    loaded_cache.delete_subscriber(client, "u3")
    assert loaded_cache.get_subscriber("u3") is None


def test_failed_mutation_leaves_cache_untouched(loaded_cache, client):
    before = list(loaded_cache.payments)

    with pytest.raises(ValidationError):
        loaded_cache.add_payment(client, {"userId": "u1", "amount": -1, "method": "Cash"})

    assert loaded_cache.payments == before


def test_deleted_plan_reads_as_no_plan(loaded_cache, client):
    loaded_cache.delete_plan(client, "p1")
    u1 = loaded_cache.get_subscriber("u1")

    assert u1.plan_id == "p1"
    assert loaded_cache.plan_for(u1) is None
    assert loaded_cache.plan_name(u1) == "N/A"


def test_payment_of_deleted_user_reads_unknown(loaded_cache, client):
    loaded_cache.delete_subscriber(client, "u1")
    pay1 = next(p for p in loaded_cache.payments if p.id == "pay1")

    assert loaded_cache.subscriber_for(pay1) is None
    assert loaded_cache.subscriber_name(pay1) == "Unknown User"


def test_apply_rejects_unknown_operation():
    cache = DataCache()
    with pytest.raises(ValueError):
        cache.apply("payments", "merge", None)
    with pytest.raises(ValueError):
        cache.apply("invoices", "add", None)


def test_apply_without_client():
    cache = DataCache()
    cache.apply("products", "add", Plan("p1", "Basic", 25, 999))
    cache.apply("payments", "add", Payment("a", "u1", 1, date(2024, 1, 1), PaymentMethod.CASH))
    cache.apply("payments", "add", Payment("b", "u1", 1, date(2024, 2, 1), PaymentMethod.CASH))

    assert [p.id for p in cache.payments] == ["b", "a"]
    assert cache.snapshot()["products"][0]["name"] == "Basic"


class CannedTransport:
    """Answers every request with the same envelope."""

    def __init__(self, envelope):
        self.envelope = envelope

    def send(self, action, payload=None):
        return self.envelope


def _fetch_all(users=(), products=(), payments=()):
    return CannedTransport({
        "status": "success",
        "data": {"users": list(users), "products": list(products), "payments": list(payments)},
    })


@pytest.mark.parametrize("data", [
    {"users": [{"id": "u1", "name": "A", "email": "a@x", "status": "", "joinDate": "2024-01-01"}]},
    {"users": [{"id": "u1", "name": "A", "email": "a@x", "status": "active", "joinDate": "soon"}]},
    {"payments": [{"id": "x", "userId": "u1", "amount": 1, "date": "2024-01-01", "method": "Card"}]},
    {"products": ["not a row"]},
])
def test_malformed_rows_become_a_retriable_error(data):
    cache = DataCache()

    assert cache.load(ApiClient(_fetch_all(**data))) is False
    assert cache.status == ERROR
    assert cache.error.startswith("Malformed record")


def test_malformed_mutation_reply_is_a_validation_error(loaded_cache):
    broken = ApiClient(CannedTransport({"status": "success", "data": {"id": "x", "amount": 5}}))
    before = list(loaded_cache.payments)

    with pytest.raises(ValidationError, match="Malformed record"):
        loaded_cache.add_payment(broken, {"userId": "u1", "amount": 5, "method": "Cash"})

    assert loaded_cache.payments == before


def _assert_payment_survives_reload(client):
    cache = DataCache()
    assert cache.load(client)

    payment = cache.add_payment(client, {"userId": "u1", "amount": 750, "method": "GCash"})
    assert cache.payments[0] == payment

    reloaded = DataCache()
    assert reloaded.load(client)

    assert reloaded.payments[0] == payment
    assert reloaded.payments == cache.payments
    assert reloaded.users == cache.users
    assert reloaded.products == cache.products


def test_added_payment_is_first_after_reload(client):
    _assert_payment_survives_reload(client)


def test_added_payment_is_first_after_reload_from_workbook(workbook_path):
    store = WorkbookStore(workbook_path)
    for table, rows in SAMPLE_DATA.items():
        for row in rows:
            store.append(table, row)

    client = ApiClient(LocalTransport(Shim(store, clock=lambda: date(2024, 6, 14))))
    _assert_payment_survives_reload(client)
