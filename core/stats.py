# core/stats.py
from typing import Dict, List

import pandas as pd

from core.models import Payment, Plan, Subscriber


def dashboard_stats(users: List[Subscriber], plans: List[Plan], payments: List[Payment]) -> Dict[str, float]:
    return {
        "total_revenue": float(sum(p.amount for p in payments)),
        "active_subscribers": sum(1 for u in users if u.is_active),
        "available_plans": len(plans),
    }


def subscribers_per_plan(users: List[Subscriber], plans: List[Plan]) -> pd.DataFrame:
    """
    Active subscribers per plan, one row per plan in plan order.
    """
    rows = [
        {
            "plan": plan.name,
            "active_subscribers": sum(
                1 for u in users if u.plan_id == plan.id and u.is_active
            ),
        }
        for plan in plans
    ]
    return pd.DataFrame(rows, columns=["plan", "active_subscribers"])


def subscribers_table(cache) -> pd.DataFrame:
    rows = [
        {
            "Name": u.name,
            "Email": u.email,
            "Address": u.address,
            "Plan": cache.plan_name(u),
            "Status": u.status.value,
            "Join date": u.join_date,
        }
        for u in cache.users
    ]
    return pd.DataFrame(rows, columns=["Name", "Email", "Address", "Plan", "Status", "Join date"])


def payments_table(cache) -> pd.DataFrame:
    rows = [
        {
            "Date": p.date,
            "Subscriber": cache.subscriber_name(p),
            "Amount": p.amount,
            "Method": p.method.value,
            "id": p.id,
        }
        for p in cache.payments
    ]
    return pd.DataFrame(rows, columns=["Date", "Subscriber", "Amount", "Method", "id"])
