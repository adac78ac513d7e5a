from datetime import date

from core.billing import (
    due_day_in_month,
    due_reminders,
    has_paid_in_month,
    next_due_date,
)
from core.models import Payment, PaymentMethod, Plan, Subscriber, SubscriberStatus

PLANS = [Plan("p1", "Basic", 25, 999), Plan("free", "Trial", 5, 0)]


def _user(user_id="u1", join=date(2023, 1, 15), plan_id="p1", status=SubscriberStatus.ACTIVE):
    return Subscriber(user_id, user_id.upper(), f"{user_id}@example.com", plan_id, status, join)


def _paid(user_id, day):
    return Payment(f"pay-{user_id}-{day}", user_id, 999, day, PaymentMethod.CASH)


# =====================================================
# Due dates
# =====================================================
def test_next_due_date_same_month():
    assert next_due_date(date(2023, 1, 15), date(2024, 6, 10)) == date(2024, 6, 15)
    assert next_due_date(date(2023, 1, 15), date(2024, 6, 15)) == date(2024, 6, 15)


def test_next_due_date_rolls_to_next_month():
    assert next_due_date(date(2023, 1, 15), date(2024, 6, 16)) == date(2024, 7, 15)


def test_next_due_date_rolls_over_the_year():
    assert next_due_date(date(2023, 1, 15), date(2024, 12, 20)) == date(2025, 1, 15)


def test_short_months_clamp_to_last_day():
    assert due_day_in_month(2024, 6, 31) == date(2024, 6, 30)
    assert due_day_in_month(2024, 2, 31) == date(2024, 2, 29)
    assert due_day_in_month(2023, 2, 30) == date(2023, 2, 28)


def test_rollover_clamps_from_the_join_day():
    assert next_due_date(date(2024, 1, 30), date(2024, 1, 31)) == date(2024, 2, 29)
    assert next_due_date(date(2024, 1, 31), date(2024, 2, 1)) == date(2024, 2, 29)
    # February clamps, March is back on the 31st
    assert next_due_date(date(2024, 1, 31), date(2024, 3, 1)) == date(2024, 3, 31)
    assert next_due_date(date(2023, 3, 31), date(2024, 6, 30)) == date(2024, 6, 30)


def test_has_paid_in_month():
    payments = [_paid("u1", date(2024, 5, 30))]
    assert not has_paid_in_month("u1", payments, date(2024, 6, 14))
    assert has_paid_in_month("u1", payments, date(2024, 5, 1))
    assert not has_paid_in_month("u2", payments, date(2024, 5, 1))


# =====================================================
# Reminders
# =====================================================
def test_outside_window_is_not_flagged():
    assert due_reminders([_user()], PLANS, [], date(2024, 6, 10)) == []


def test_inside_window_is_flagged():
    (reminder,) = due_reminders([_user()], PLANS, [], date(2024, 6, 14))

    assert reminder.due_date == date(2024, 6, 15)
    assert reminder.day_diff == 1
    assert reminder.amount_due == 999
    assert reminder.plan_name == "Basic"


def test_due_today_is_flagged():
    (reminder,) = due_reminders([_user()], PLANS, [], date(2024, 6, 15))
    assert reminder.day_diff == 0


def test_paid_this_month_is_not_flagged():
    payments = [_paid("u1", date(2024, 6, 2))]
    assert due_reminders([_user()], PLANS, payments, date(2024, 6, 14)) == []


def test_paid_last_month_is_still_flagged():
    payments = [_paid("u1", date(2024, 5, 15))]
    assert len(due_reminders([_user()], PLANS, payments, date(2024, 6, 14))) == 1


def test_skips_inactive_planless_free_and_dangling():
    users = [
        _user("a", status=SubscriberStatus.INACTIVE),
        _user("b", status=SubscriberStatus.PENDING),
        _user("c", plan_id=None),
        _user("d", plan_id="free"),
        _user("e", plan_id="deleted-plan"),
    ]
    assert due_reminders(users, PLANS, [], date(2024, 6, 14)) == []


def test_sorted_by_days_left_with_stable_ties():
    users = [
        _user("late", join=date(2023, 1, 17)),
        _user("first", join=date(2023, 1, 15)),
        _user("second", join=date(2023, 2, 15)),
    ]

    reminders = due_reminders(users, PLANS, [], date(2024, 6, 14))

    assert [r.subscriber.id for r in reminders] == ["first", "second", "late"]
    assert [r.day_diff for r in reminders] == [1, 1, 3]


def test_window_is_configurable():
    assert due_reminders([_user()], PLANS, [], date(2024, 6, 10), window_days=5)
    assert not due_reminders([_user()], PLANS, [], date(2024, 6, 10), window_days=4)
