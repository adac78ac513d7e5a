# core/models.py

from dataclasses import dataclass, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

import pytz


# =========================
# ENUMS
# =========================

class SubscriberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    GCASH = "GCash"          # electronic wallet


USER_FIELDS = ["id", "name", "email", "address", "planId", "status", "joinDate"]
PRODUCT_FIELDS = ["id", "name", "speed", "price", "description"]
PAYMENT_FIELDS = ["id", "userId", "amount", "date", "method"]

BUSINESS_TZ = "Asia/Manila"


# =========================
# HELPERS
# =========================

def parse_date(value: Any, tz_name: str = BUSINESS_TZ) -> date:
    """
    Normalizes a sheet/wire value to a calendar date.
    Accepts date, datetime, pandas Timestamp and ISO strings
    ("2024-06-15" or "2024-06-15T00:00:00.000Z").
    Timestamps with an offset are read in the business time zone: a sheet
    cell serialized as UTC keeps its local calendar day.
    """
    if value is None or value == "":
        raise ValueError("Missing date")

    # datetime (and pandas Timestamp) first: datetime is a subclass of date
    if isinstance(value, datetime):
        return _local_day(value, tz_name)

    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        if len(text) <= 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return _local_day(datetime.fromisoformat(text), tz_name)
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}")


def _local_day(value: datetime, tz_name: str) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(pytz.timezone(tz_name)).date()


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_status(value: Any) -> SubscriberStatus:
    try:
        return SubscriberStatus(_text(value).lower())
    except ValueError:
        raise ValueError(f"Invalid status: {value!r}")


def parse_method(value: Any) -> PaymentMethod:
    text = _text(value)
    for method in PaymentMethod:
        if method.value.lower() == text.lower():
            return method
    raise ValueError(f"Invalid payment method: {value!r}")


# =========================
# SUBSCRIBER (sheet: Users)
# =========================

@dataclass
class Subscriber:
    id: str
    name: str
    email: str
    plan_id: Optional[str]
    status: SubscriberStatus
    join_date: date
    address: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == SubscriberStatus.ACTIVE

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Subscriber":
        return cls(
            id=_text(record.get("id")),
            name=_text(record.get("name")),
            email=_text(record.get("email")),
            address=_text(record.get("address")),
            plan_id=_blank_to_none(record.get("planId")),
            status=parse_status(record.get("status")),
            join_date=parse_date(record.get("joinDate")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "address": self.address,
            "planId": self.plan_id,
            "status": self.status.value,
            "joinDate": self.join_date.isoformat(),
        }


# =========================
# PLAN (sheet: Products)
# =========================

@dataclass
class Plan:
    id: str
    name: str
    speed: int               # Mbps
    price: float
    description: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Plan":
        return cls(
            id=_text(record.get("id")),
            name=_text(record.get("name")),
            speed=int(float(record.get("speed") or 0)),
            price=float(record.get("price") or 0),
            description=_text(record.get("description")),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


# =========================
# PAYMENT (sheet: Payments)
# =========================

@dataclass
class Payment:
    id: str
    user_id: str
    amount: float
    date: date
    method: PaymentMethod

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Payment":
        return cls(
            id=_text(record.get("id")),
            user_id=_text(record.get("userId")),
            amount=float(record.get("amount") or 0),
            date=parse_date(record.get("date")),
            method=parse_method(record.get("method")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "method": self.method.value,
        }


def sort_newest_first(payments):
    # sorted() is stable: same-day payments keep their sheet order
    return sorted(payments, key=lambda p: p.date, reverse=True)
