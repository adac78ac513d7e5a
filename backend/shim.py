# backend/shim.py
"""
Request/response facade over the tabular store.

One entry point (Shim.handle) takes {"action": ..., "payload": ...} and
always answers with an envelope:

    {"status": "success", "data": ...}
    {"status": "error", "message": "..."}

The action set is closed (Action enum) and every action has exactly one
handler in HANDLERS; a missing handler fails at import time.
"""

import json
import logging
import math
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

import pytz

from backend.errors import NotFoundError, ShimError, ValidationError
from core.models import (
    Payment,
    PaymentMethod,
    Plan,
    Subscriber,
    SubscriberStatus,
    parse_date,
    sort_newest_first,
)
from data.store import PAYMENTS, PRODUCTS, USERS

logger = logging.getLogger(__name__)

DEFAULT_TZ = "Asia/Manila"


class Action(str, Enum):
    GET_ALL_DATA = "GET_ALL_DATA"

    ADD_USER = "ADD_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"

    ADD_PRODUCT = "ADD_PRODUCT"
    UPDATE_PRODUCT = "UPDATE_PRODUCT"
    DELETE_PRODUCT = "DELETE_PRODUCT"

    ADD_PAYMENT = "ADD_PAYMENT"


def success(data: Any) -> Dict[str, Any]:
    return {"status": "success", "data": data}


def failure(message: str) -> Dict[str, Any]:
    return {"status": "error", "message": message}


def local_today(tz_name: str = DEFAULT_TZ) -> date:
    return datetime.now(pytz.timezone(tz_name)).date()


def new_id() -> str:
    return uuid.uuid4().hex


# ======================================================
# VALIDATION
# ======================================================

def _payload_dict(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload: expected an object")
    return payload


def _required_text(payload: Dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if value is None or str(value).strip() == "":
        raise ValidationError(f"Field '{field}' is required")
    return str(value).strip()


def _optional_text(payload: Dict[str, Any], field: str) -> Optional[str]:
    value = payload.get(field)
    if value is None or str(value).strip() == "":
        return None
    return str(value).strip()


def _number(payload: Dict[str, Any], field: str) -> float:
    value = payload.get(field)
    if value is None or value == "":
        raise ValidationError(f"Field '{field}' is required")
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not math.isfinite(number):
        raise ValidationError(f"Invalid {field}: {value!r}")
    return number


def _status(payload: Dict[str, Any]) -> str:
    raw = _required_text(payload, "status")
    try:
        return SubscriberStatus(raw.lower()).value
    except ValueError:
        raise ValidationError(f"Invalid status: {raw!r}")


def _method(payload: Dict[str, Any]) -> str:
    raw = _required_text(payload, "method")
    for method in PaymentMethod:
        if method.value.lower() == raw.lower():
            return method.value
    raise ValidationError(f"Invalid payment method: {raw!r}")


def _user_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": _required_text(payload, "name"),
        "email": _required_text(payload, "email"),
        "address": _optional_text(payload, "address") or "",
        "planId": _optional_text(payload, "planId"),
        "status": _status(payload),
    }


def _product_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    speed = _number(payload, "speed")
    if speed <= 0 or speed != int(speed):
        raise ValidationError("Invalid speed: must be a positive whole number")

    price = _number(payload, "price")
    if price < 0:
        raise ValidationError("Invalid price: must be zero or more")

    return {
        "name": _required_text(payload, "name"),
        "speed": int(speed),
        "price": price,
        "description": _optional_text(payload, "description") or "",
    }


# ======================================================
# SHIM
# ======================================================

class Shim:

    def __init__(self, store, clock: Optional[Callable[[], date]] = None, tz_name: str = DEFAULT_TZ):
        self.store = store
        self.clock = clock or (lambda: local_today(tz_name))

    def handle(self, request: Any) -> Dict[str, Any]:
        """
        Single entry point. Never raises: every failure becomes the error arm.
        """
        try:
            if isinstance(request, (str, bytes)):
                request = json.loads(request)
            if not isinstance(request, dict):
                raise ValidationError("Invalid request: expected an object")

            name = request.get("action")
            try:
                action = Action(name)
            except ValueError:
                raise ShimError(f"Unknown action: {name}")

            logger.info("Shim action %s", action.value)
            data = HANDLERS[action](self, request.get("payload"))
            return success(data)

        except ShimError as e:
            logger.warning("Shim action failed: %s", e)
            return failure(str(e))

        except json.JSONDecodeError as e:
            logger.warning("Malformed request body: %s", e)
            return failure(f"Invalid request: {e}")

        except Exception as e:
            logger.exception("Unexpected shim failure")
            return failure(str(e) or e.__class__.__name__)

    # -------------------------
    # DATA RETRIEVAL
    # -------------------------
    def get_all_data(self, payload: Any = None) -> Dict[str, Any]:
        payments = [Payment.from_record(r) for r in self.store.read_all(PAYMENTS)]
        return {
            "users": [Subscriber.from_record(r).to_record() for r in self.store.read_all(USERS)],
            "products": [Plan.from_record(r).to_record() for r in self.store.read_all(PRODUCTS)],
            "payments": [p.to_record() for p in sort_newest_first(payments)],
        }

    # -------------------------
    # USERS
    # -------------------------
    def add_user(self, payload: Any) -> Dict[str, Any]:
        fields = _user_fields(_payload_dict(payload))
        new_user = {
            "id": new_id(),
            "joinDate": self.clock().isoformat(),
            **fields,
        }
        self.store.append(USERS, new_user)
        return new_user

    def update_user(self, payload: Any) -> Dict[str, Any]:
        payload = _payload_dict(payload)
        user_id = _required_text(payload, "id")
        fields = _user_fields(payload)

        current = self._find(USERS, user_id)
        # joinDate is set once at creation
        join_date = current.get("joinDate") or payload.get("joinDate")
        try:
            join_date = parse_date(join_date).isoformat()
        except ValueError:
            raise ValidationError(f"Invalid joinDate: {join_date!r}")

        user = {"id": user_id, "joinDate": join_date, **fields}
        self.store.update(USERS, user)
        return user

    def delete_user(self, payload: Any) -> Dict[str, str]:
        user_id = _required_text(_payload_dict(payload), "id")
        return self.store.delete(USERS, user_id)

    # -------------------------
    # PRODUCTS (plans)
    # -------------------------
    def add_product(self, payload: Any) -> Dict[str, Any]:
        fields = _product_fields(_payload_dict(payload))
        new_product = {"id": new_id(), **fields}
        self.store.append(PRODUCTS, new_product)
        return new_product

    def update_product(self, payload: Any) -> Dict[str, Any]:
        payload = _payload_dict(payload)
        product = {"id": _required_text(payload, "id"), **_product_fields(payload)}
        self.store.update(PRODUCTS, product)
        return product

    def delete_product(self, payload: Any) -> Dict[str, str]:
        product_id = _required_text(_payload_dict(payload), "id")
        return self.store.delete(PRODUCTS, product_id)

    # -------------------------
    # PAYMENTS
    # -------------------------
    def add_payment(self, payload: Any) -> Dict[str, Any]:
        payload = _payload_dict(payload)
        amount = _number(payload, "amount")
        if amount <= 0:
            raise ValidationError("Invalid amount: must be greater than zero")

        new_payment = {
            "id": new_id(),
            "userId": _required_text(payload, "userId"),
            "amount": amount,
            "date": self.clock().isoformat(),
            "method": _method(payload),
        }
        self.store.append(PAYMENTS, new_payment)
        return new_payment

    # -------------------------
    # HELPERS
    # -------------------------
    def _find(self, table: str, record_id: str) -> Dict[str, Any]:
        # full scan, same cost as the store's own update
        for row in self.store.read_all(table):
            if str(row.get("id")) == record_id:
                return row
        raise NotFoundError(f"Row with ID {record_id} not found.")


HANDLERS: Dict[Action, Callable[[Shim, Any], Any]] = {
    Action.GET_ALL_DATA: Shim.get_all_data,
    Action.ADD_USER: Shim.add_user,
    Action.UPDATE_USER: Shim.update_user,
    Action.DELETE_USER: Shim.delete_user,
    Action.ADD_PRODUCT: Shim.add_product,
    Action.UPDATE_PRODUCT: Shim.update_product,
    Action.DELETE_PRODUCT: Shim.delete_product,
    Action.ADD_PAYMENT: Shim.add_payment,
}

_missing = set(Action) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"Actions without handler: {sorted(a.value for a in _missing)}")
