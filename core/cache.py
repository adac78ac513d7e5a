# core/cache.py
"""
Client-side mirror of the three sheets.

Reads flow Store -> Shim -> cache; writes go to the shim first and only the
confirmed record is applied locally. There is no background refresh and no
cross-client sync: last writer wins.
"""

import logging
from typing import Any, Dict, List, Optional

from backend.errors import ShimError
from core.models import Payment, Plan, Subscriber, sort_newest_first

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
READY = "ready"
ERROR = "error"

USERS = "users"
PRODUCTS = "products"
PAYMENTS = "payments"

ADD = "add"
UPDATE = "update"
DELETE = "delete"


class DataCache:

    def __init__(self):
        self.users: List[Subscriber] = []
        self.products: List[Plan] = []
        self.payments: List[Payment] = []
        self.status = IDLE
        self.error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status == READY

    # =====================================================
    # LOAD (fetch-all)
    # =====================================================
    def load(self, client) -> bool:
        """
        Replaces all three collections from a fetch-all.
        On failure the previous collections stay as they were and the
        status becomes "error"; calling load() again is the retry.
        """
        self.status = LOADING
        self.error = None

        try:
            data = client.get_all_data()
        except ShimError as e:
            logger.error("Failed to fetch initial data: %s", e)
            self.status = ERROR
            self.error = str(e)
            return False

        users = list(data.get(USERS) or [])
        products = list(data.get(PRODUCTS) or [])
        payments = sort_newest_first(data.get(PAYMENTS) or [])

        self.users, self.products, self.payments = users, products, payments
        self.status = READY
        logger.info(
            "Cache loaded: %d users, %d plans, %d payments",
            len(users), len(products), len(payments),
        )
        return True

    # =====================================================
    # STATE TRANSITIONS
    # =====================================================
    def apply(self, kind: str, op: str, value: Any) -> None:
        """
        Applies one confirmed mutation. value is the returned record for
        add/update and the id for delete.
        """
        items = self._collection(kind)

        if op == ADD:
            # payments are listed newest first
            if kind == PAYMENTS:
                items = [value] + items
            else:
                items = items + [value]

        elif op == UPDATE:
            items = [value if x.id == value.id else x for x in items]

        elif op == DELETE:
            items = [x for x in items if x.id != value]

        else:
            raise ValueError(f"Unknown operation: {op}")

        setattr(self, kind, items)

    def _collection(self, kind: str) -> list:
        if kind not in (USERS, PRODUCTS, PAYMENTS):
            raise ValueError(f"Unknown collection: {kind}")
        return getattr(self, kind)

    # =====================================================
    # ROUND-TRIPS (remote first, then local)
    # =====================================================
    def add_subscriber(self, client, payload: Dict[str, Any]) -> Subscriber:
        user = client.add_user(payload)
        self.apply(USERS, ADD, user)
        return user

    def update_subscriber(self, client, user: Subscriber) -> Subscriber:
        saved = client.update_user(user)
        self.apply(USERS, UPDATE, saved)
        return saved

    def delete_subscriber(self, client, user_id: str) -> str:
        deleted = client.delete_user(user_id)
        self.apply(USERS, DELETE, deleted)
        return deleted

    def add_plan(self, client, payload: Dict[str, Any]) -> Plan:
        plan = client.add_product(payload)
        self.apply(PRODUCTS, ADD, plan)
        return plan

    def update_plan(self, client, plan: Plan) -> Plan:
        saved = client.update_product(plan)
        self.apply(PRODUCTS, UPDATE, saved)
        return saved

    def delete_plan(self, client, plan_id: str) -> str:
        deleted = client.delete_product(plan_id)
        self.apply(PRODUCTS, DELETE, deleted)
        return deleted

    def add_payment(self, client, payload: Dict[str, Any]) -> Payment:
        payment = client.add_payment(payload)
        self.apply(PAYMENTS, ADD, payment)
        return payment

    # =====================================================
    # LOOKUPS
    # =====================================================
    def get_subscriber(self, user_id: Optional[str]) -> Optional[Subscriber]:
        return next((u for u in self.users if u.id == user_id), None)

    def get_plan(self, plan_id: Optional[str]) -> Optional[Plan]:
        if not plan_id:
            return None
        return next((p for p in self.products if p.id == plan_id), None)

    def plan_for(self, user: Optional[Subscriber]) -> Optional[Plan]:
        # a deleted plan leaves a dangling planId: that reads as "no plan"
        if user is None:
            return None
        return self.get_plan(user.plan_id)

    def subscriber_for(self, payment: Payment) -> Optional[Subscriber]:
        return self.get_subscriber(payment.user_id)

    def plan_name(self, user: Optional[Subscriber]) -> str:
        plan = self.plan_for(user)
        return plan.name if plan else "N/A"

    def subscriber_name(self, payment: Payment) -> str:
        user = self.subscriber_for(payment)
        return user.name if user else "Unknown User"

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            USERS: [u.to_record() for u in self.users],
            PRODUCTS: [p.to_record() for p in self.products],
            PAYMENTS: [p.to_record() for p in self.payments],
        }
