# backend/client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from backend.errors import ValidationError, error_from_message
from backend.shim import Action, Shim
from backend.transport import HttpTransport, LocalTransport
from core.models import Payment, Plan, Subscriber, sort_newest_first
from data.store import open_store

logger = logging.getLogger(__name__)


def _parse(model, record: Any):
    """
    Record from the backend -> model. A row the models reject (blank status,
    bad date, unknown method, not an object) is reported as a ValidationError
    so callers only ever see the ShimError family.
    """
    try:
        return model.from_record(record)
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning("Malformed %s record: %s", model.__name__, e)
        raise ValidationError(f"Malformed record: {e}") from e


class ApiClient:
    """
    Typed calls over a transport. Unwraps the response envelope: the
    success arm returns models, the error arm raises a ShimError subclass.
    """

    def __init__(self, transport):
        self.transport = transport

    def _call(self, action: Action, payload: Any = None) -> Any:
        envelope = self.transport.send(action.value, payload)

        if envelope.get("status") == "error":
            message = envelope.get("message") or "Unknown error"
            logger.warning("%s -> error: %s", action.value, message)
            raise error_from_message(message)

        return envelope.get("data")

    # -------------------------
    # FETCH
    # -------------------------
    def get_all_data(self) -> Dict[str, List]:
        data = self._call(Action.GET_ALL_DATA) or {}
        payments = [_parse(Payment, r) for r in data.get("payments") or []]
        return {
            "users": [_parse(Subscriber, r) for r in data.get("users") or []],
            "products": [_parse(Plan, r) for r in data.get("products") or []],
            "payments": sort_newest_first(payments),
        }

    # -------------------------
    # USERS
    # -------------------------
    def add_user(self, payload: Dict[str, Any]) -> Subscriber:
        """payload: name, email, status, optional address / planId."""
        return _parse(Subscriber, self._call(Action.ADD_USER, payload))

    def update_user(self, user: Subscriber) -> Subscriber:
        return _parse(Subscriber, self._call(Action.UPDATE_USER, user.to_record()))

    def delete_user(self, user_id: str) -> str:
        return self._call(Action.DELETE_USER, {"id": user_id})["id"]

    # -------------------------
    # PRODUCTS
    # -------------------------
    def add_product(self, payload: Dict[str, Any]) -> Plan:
        return _parse(Plan, self._call(Action.ADD_PRODUCT, payload))

    def update_product(self, plan: Plan) -> Plan:
        return _parse(Plan, self._call(Action.UPDATE_PRODUCT, plan.to_record()))

    def delete_product(self, plan_id: str) -> str:
        return self._call(Action.DELETE_PRODUCT, {"id": plan_id})["id"]

    # -------------------------
    # PAYMENTS
    # -------------------------
    def add_payment(self, payload: Dict[str, Any]) -> Payment:
        """payload: userId, amount, method. Id and date come from the backend."""
        return _parse(Payment, self._call(Action.ADD_PAYMENT, payload))


def create_client(settings) -> ApiClient:
    """
    http     -> remote endpoint (Apps Script over the sheet)
    workbook -> local shim over an .xlsx file
    memory   -> local shim over the mock store
    """
    if settings.backend == "http":
        logger.info("Using remote backend %s", settings.apps_script_url)
        return ApiClient(HttpTransport(settings.apps_script_url, timeout=settings.http_timeout))

    shim = Shim(open_store(settings), tz_name=settings.timezone)
    return ApiClient(LocalTransport(shim))
