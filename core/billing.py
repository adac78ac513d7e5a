# core/billing.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional

import pytz

from core.models import Payment, Plan, Subscriber

REMINDER_WINDOW_DAYS = 3


@dataclass
class DueReminder:
    subscriber: Subscriber
    plan_name: str
    amount_due: float
    due_date: date
    day_diff: int


# =====================================================
# Reference date
# =====================================================
def today(tz_name: Optional[str] = None) -> date:
    """
    Current calendar date (midnight-normalized) in the business time zone.
    """
    if tz_name:
        return datetime.now(pytz.timezone(tz_name)).date()
    return date.today()


# =====================================================
# Due dates
# =====================================================
def due_day_in_month(year: int, month: int, day: int) -> date:
    """
    Billing day `day` inside year/month. Days past the end of the month
    clamp to the last day (a subscriber who joined on the 31st is due on
    the 30th in June and on the 28th/29th in February).
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _add_month(year: int, month: int):
    if month == 12:
        return year + 1, 1
    return year, month + 1


def next_due_date(join_date: date, reference: date) -> date:
    """
    Next billing date on or after `reference`, anchored on the day of month
    of `join_date`.
    """
    due_day = join_date.day
    candidate = due_day_in_month(reference.year, reference.month, due_day)

    if candidate < reference:
        year, month = _add_month(reference.year, reference.month)
        # clamp again from the original day, not from this month's clamped one
        candidate = due_day_in_month(year, month, due_day)

    return candidate


def has_paid_in_month(user_id: str, payments: Iterable[Payment], reference: date) -> bool:
    return any(
        p.user_id == user_id
        and p.date.year == reference.year
        and p.date.month == reference.month
        for p in payments
    )


# =====================================================
# Reminders
# =====================================================
def iter_due_reminders(
    users: Iterable[Subscriber],
    plans: Iterable[Plan],
    payments: Iterable[Payment],
    reference: date,
    window_days: int = REMINDER_WINDOW_DAYS,
) -> Iterator[DueReminder]:
    """
    Active subscribers whose next bill falls within `window_days` of
    `reference` and who have not paid in the reference calendar month,
    soonest first. Nothing is kept between calls.
    """
    plans_by_id = {p.id: p for p in plans}
    payments = list(payments)

    candidates: List[DueReminder] = []

    for user in users:
        if not (user.is_active and user.plan_id and user.join_date):
            continue

        plan = plans_by_id.get(user.plan_id)
        amount_due = plan.price if plan else 0
        if not amount_due or amount_due <= 0:
            continue

        due = next_due_date(user.join_date, reference)
        day_diff = (due - reference).days

        if not 0 <= day_diff <= window_days:
            continue

        if has_paid_in_month(user.id, payments, reference):
            continue

        candidates.append(
            DueReminder(
                subscriber=user,
                plan_name=plan.name,
                amount_due=amount_due,
                due_date=due,
                day_diff=day_diff,
            )
        )

    # sorted() is stable: ties keep cache order
    yield from sorted(candidates, key=lambda r: r.day_diff)


def due_reminders(users, plans, payments, reference: date,
                  window_days: int = REMINDER_WINDOW_DAYS) -> List[DueReminder]:
    return list(iter_due_reminders(users, plans, payments, reference, window_days))
