import streamlit as st
import streamlit.components.v1 as components
import pandas as pd

# ======================================================
# 1. CONFIG STREAMLIT (MUST COME FIRST)
# ======================================================
st.set_page_config(
    page_title="WiFiNet · Dashboard",
    page_icon="📶",
    layout="wide"
)

from auth.guard import logout, require_login
from auth.login import (
    DASHBOARD, DUE_DATES, PAYMENTS, PLANS, USERS, VIEW_TITLES,
    allowed_views, default_view, resolve_view,
)
from backend.client import create_client
from backend.errors import ShimError
from core.billing import due_reminders, today
from core.cache import ERROR, IDLE, LOADING, DataCache
from core.export import XLSX_MIME, export_filename, export_workbook
from core.logging_setup import setup_logging
from core.mailer import build_mailto, format_amount, send_reminder
from core.models import PaymentMethod, Plan, Subscriber, SubscriberStatus
from core.receipt import printable_receipt, render_receipt
from core.settings import load_settings
from core.stats import dashboard_stats, payments_table, subscribers_per_plan, subscribers_table

settings = load_settings()
setup_logging(settings.log_level)


# ======================================================
# 2. BACKEND (one per process) + CACHE (one per session)
# ======================================================
@st.cache_resource
def get_client():
    return create_client(settings)


def get_cache() -> DataCache:
    if "cache" not in st.session_state:
        st.session_state["cache"] = DataCache()
    return st.session_state["cache"]


def money(amount) -> str:
    return format_amount(amount, settings.currency)


# ======================================================
# 3. LOGIN
# ======================================================
role = require_login(settings)

client = get_client()
cache = get_cache()

if cache.status in (IDLE, LOADING):
    with st.spinner("Loading your data..."):
        cache.load(client)

# Whole view replaced by the error screen until a retry succeeds
if cache.status == ERROR:
    st.markdown("## ❌ Failed to Load Data")
    st.error(cache.error)
    if st.button("🔁 Retry"):
        cache.load(client)
        st.rerun()
    st.stop()

# ======================================================
# SIDEBAR
# ======================================================
st.sidebar.markdown(f"## 📶 **{settings.company_name}**")
st.sidebar.caption(f"Signed in as {role.value}")
st.sidebar.markdown("---")

views = allowed_views(role)
current = resolve_view(role, st.session_state.get("view", default_view(role)))

seccion = st.sidebar.radio(
    "Menu",
    views,
    index=views.index(current),
    format_func=lambda v: VIEW_TITLES[v],
)
st.session_state["view"] = seccion

st.sidebar.markdown("---")

st.sidebar.download_button(
    "⬇️ Export data (Excel)",
    data=export_workbook(cache.snapshot()),
    file_name=export_filename(today(settings.timezone)),
    mime=XLSX_MIME,
)

if st.sidebar.button("🚪 Logout"):
    logout()
    st.rerun()

st.markdown(f"## {VIEW_TITLES[seccion]}")
st.markdown("---")


# ======================================================
# SECTION 1 · DASHBOARD
# ======================================================
if seccion == DASHBOARD:

    stats = dashboard_stats(cache.users, cache.products, cache.payments)

    col1, col2, col3 = st.columns(3)
    col1.metric("💰 Total Revenue", money(stats["total_revenue"]))
    col2.metric("👥 Active Subscribers", stats["active_subscribers"])
    col3.metric("📶 Available Plans", stats["available_plans"])

    st.divider()

    st.markdown("### Subscribers per Plan")
    df_plans = subscribers_per_plan(cache.users, cache.products)
    if df_plans.empty:
        st.info("No plans yet.")
    else:
        st.bar_chart(df_plans, x="plan", y="active_subscribers")


# ======================================================
# SECTION 2 · SUBSCRIBERS
# ======================================================
elif seccion == USERS:

    st.dataframe(subscribers_table(cache), use_container_width=True, hide_index=True)

    plan_ids = [None] + [p.id for p in cache.products]
    plan_label = lambda pid: cache.get_plan(pid).name if pid else "No plan"
    statuses = [s.value for s in SubscriberStatus]

    # -----------------------------
    # NEW SUBSCRIBER
    # -----------------------------
    with st.expander("➕ Add subscriber"):
        with st.form("add_user_form"):
            name = st.text_input("Name")
            email = st.text_input("Email")
            address = st.text_input("Address")
            plan_id = st.selectbox("Plan", plan_ids, format_func=plan_label)
            status = st.selectbox("Status", statuses)
            submitted = st.form_submit_button("Save User")

        if submitted:
            if not name.strip() or not email.strip():
                st.error("Name and email are required.")
            else:
                try:
                    cache.add_subscriber(client, {
                        "name": name, "email": email, "address": address,
                        "planId": plan_id, "status": status,
                    })
                    st.success("User added.")
                    st.rerun()
                except ShimError as e:
                    st.error(f"❌ Could not add user: {e}")

    # -----------------------------
    # EDIT / DELETE
    # -----------------------------
    if cache.users:
        st.markdown("### ✏️ Edit subscriber")

        user_id = st.selectbox(
            "Select user",
            [u.id for u in cache.users],
            format_func=lambda uid: cache.get_subscriber(uid).name,
        )
        user = cache.get_subscriber(user_id)
        current_plan = user.plan_id if user.plan_id in plan_ids else None

        with st.form("edit_user_form"):
            e_name = st.text_input("Name", value=user.name)
            e_email = st.text_input("Email", value=user.email)
            e_address = st.text_input("Address", value=user.address)
            e_plan = st.selectbox(
                "Plan", plan_ids, index=plan_ids.index(current_plan), format_func=plan_label,
            )
            e_status = st.selectbox("Status", statuses, index=statuses.index(user.status.value))
            save = st.form_submit_button("Save User")

        if save:
            try:
                updated = Subscriber(
                    id=user.id,
                    name=e_name.strip(),
                    email=e_email.strip(),
                    address=e_address.strip(),
                    plan_id=e_plan,
                    status=SubscriberStatus(e_status),
                    join_date=user.join_date,
                )
                cache.update_subscriber(client, updated)
                st.success("User updated.")
                st.rerun()
            except ShimError as e:
                st.error(f"❌ Could not update user: {e}")

        if st.button("🗑 Delete user"):
            try:
                cache.delete_subscriber(client, user.id)
                st.warning("User deleted.")
                st.rerun()
            except ShimError as e:
                st.error(f"❌ Could not delete user: {e}")


# ======================================================
# SECTION 3 · PLANS
# ======================================================
elif seccion == PLANS:

    if not cache.products:
        st.info("No plans yet.")

    for plan in cache.products:
        with st.container(border=True):
            st.markdown(f"**{plan.name}** · {plan.speed} Mbps · {money(plan.price)}/month")
            if plan.description:
                st.caption(plan.description)

    with st.expander("➕ Add plan"):
        with st.form("add_plan_form"):
            p_name = st.text_input("Plan name")
            p_speed = st.number_input("Speed (Mbps)", min_value=1, value=25, step=1)
            p_price = st.number_input("Price (monthly)", min_value=0.0, value=0.0, step=50.0)
            p_desc = st.text_area("Description")
            submitted = st.form_submit_button("Save Plan")

        if submitted:
            if not p_name.strip():
                st.error("Plan name is required.")
            else:
                try:
                    cache.add_plan(client, {
                        "name": p_name, "speed": int(p_speed),
                        "price": float(p_price), "description": p_desc,
                    })
                    st.success("Plan added.")
                    st.rerun()
                except ShimError as e:
                    st.error(f"❌ Could not add plan: {e}")

    if cache.products:
        st.markdown("### ✏️ Edit plan")

        plan_id = st.selectbox(
            "Select plan",
            [p.id for p in cache.products],
            format_func=lambda pid: cache.get_plan(pid).name,
        )
        plan = cache.get_plan(plan_id)

        with st.form("edit_plan_form"):
            e_name = st.text_input("Plan name", value=plan.name)
            e_speed = st.number_input("Speed (Mbps)", min_value=1, value=max(1, plan.speed), step=1)
            e_price = st.number_input("Price (monthly)", min_value=0.0, value=float(plan.price), step=50.0)
            e_desc = st.text_area("Description", value=plan.description)
            save = st.form_submit_button("Save Plan")

        if save:
            try:
                updated = Plan(
                    id=plan.id, name=e_name.strip(), speed=int(e_speed),
                    price=float(e_price), description=e_desc,
                )
                cache.update_plan(client, updated)
                st.success("Plan updated.")
                st.rerun()
            except ShimError as e:
                st.error(f"❌ Could not update plan: {e}")

        if st.button("🗑 Delete plan"):
            try:
                cache.delete_plan(client, plan.id)
                st.warning("Plan deleted. Subscribers on it now show no plan.")
                st.rerun()
            except ShimError as e:
                st.error(f"❌ Could not delete plan: {e}")


# ======================================================
# SECTION 4 · PAYMENTS
# ======================================================
elif seccion == PAYMENTS:

    active_users = [u for u in cache.users if u.is_active]

    with st.expander("➕ New Payment", expanded=False):
        if not active_users:
            st.info("There are no active users to charge.")
        else:
            pay_user_id = st.selectbox(
                "User",
                [u.id for u in active_users],
                format_func=lambda uid: cache.get_subscriber(uid).name,
            )
            pay_plan = cache.plan_for(cache.get_subscriber(pay_user_id))
            st.caption(f"Plan: {pay_plan.name if pay_plan else 'N/A'}")

            with st.form("payment_form"):
                amount = st.number_input(
                    "Amount",
                    min_value=0.0,
                    value=float(pay_plan.price) if pay_plan else 0.0,
                    step=50.0,
                )
                method = st.selectbox("Method", [m.value for m in PaymentMethod])
                gcash_ok = st.checkbox("GCash transfer received (required for GCash)")
                submitted = st.form_submit_button("Process Payment")

            if submitted:
                if amount <= 0:
                    st.error("Please select a user and enter a valid amount.")
                elif method == PaymentMethod.GCASH.value and not gcash_ok:
                    st.warning("Confirm the GCash transfer before processing.")
                else:
                    try:
                        payment = cache.add_payment(client, {
                            "userId": pay_user_id, "amount": float(amount), "method": method,
                        })
                        st.session_state["receipt_id"] = payment.id
                        st.success("Payment recorded.")
                        st.rerun()
                    except ShimError as e:
                        st.error(f"❌ Could not save payment: {e}")

    df_pay = payments_table(cache)
    if df_pay.empty:
        st.info("No payments yet.")
    else:
        st.dataframe(df_pay.drop(columns=["id"]), use_container_width=True, hide_index=True)

        # -----------------------------
        # RECEIPT
        # -----------------------------
        st.markdown("### 🧾 Receipt")
        ids = [p.id for p in cache.payments]
        default_id = st.session_state.get("receipt_id")
        receipt_id = st.selectbox(
            "Payment",
            ids,
            index=ids.index(default_id) if default_id in ids else 0,
            format_func=lambda pid: next(
                f"{p.date.isoformat()} · {cache.subscriber_name(p)} · {money(p.amount)}"
                for p in cache.payments if p.id == pid
            ),
        )
        payment = next(p for p in cache.payments if p.id == receipt_id)
        payer = cache.subscriber_for(payment)
        payer_plan = cache.plan_for(payer)

        components.html(
            render_receipt(payment, payer, payer_plan, settings.company_name, settings.currency),
            height=520,
            scrolling=True,
        )

        if st.button("🖨 Print Receipt"):
            components.html(
                printable_receipt(payment, payer, payer_plan, settings.company_name, settings.currency),
                height=0,
            )


# ======================================================
# SECTION 5 · DUE DATES
# ======================================================
elif seccion == DUE_DATES:

    reminders = due_reminders(
        cache.users, cache.products, cache.payments,
        today(settings.timezone),
        window_days=settings.reminder_window_days,
    )

    if not reminders:
        st.markdown("### ✅ No Due Dates Upcoming")
        st.caption(
            f"All upcoming payments for the next {settings.reminder_window_days} days have been settled."
        )
    else:
        st.dataframe(
            pd.DataFrame([
                {
                    "User": r.subscriber.name,
                    "Email": r.subscriber.email,
                    "Plan": r.plan_name,
                    "Amount Due": money(r.amount_due),
                    "Due Date": r.due_date,
                    "Days left": r.day_diff,
                }
                for r in reminders
            ]),
            use_container_width=True,
            hide_index=True,
        )

        st.markdown("### ✉️ Reminders")
        smtp_ready = bool(settings.smtp_user and settings.smtp_password)

        for r in reminders:
            c1, c2, c3 = st.columns([3, 1, 1])
            c1.markdown(f"**{r.subscriber.name}** · {money(r.amount_due)} due {r.due_date.isoformat()}")
            c2.link_button(
                "Send Reminder",
                build_mailto(r, settings.company_name, settings.currency),
            )
            if smtp_ready and c3.button("Send by email", key=f"smtp_{r.subscriber.id}"):
                try:
                    send_reminder(
                        r, settings.smtp_user, settings.smtp_password,
                        settings.company_name, settings.currency,
                    )
                    st.success(f"Reminder sent to {r.subscriber.email}.")
                except Exception as e:
                    st.error("❌ Error sending the reminder.")
                    st.exception(e)

# ======================================================
# FOOTER
# ======================================================
st.markdown("---")
st.markdown(
    f"<small>© {today(settings.timezone).year} <b>{settings.company_name}</b> · Internet Service Provider</small>",
    unsafe_allow_html=True
)
