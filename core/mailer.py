import smtplib
from email.message import EmailMessage
from typing import Optional, Tuple
from urllib.parse import quote

from core.billing import DueReminder

SMTP_SERVER = "smtp.gmail.com"
SMTP_PORT = 465


def format_amount(amount: float, currency: str = "₱") -> str:
    # 1499.0 -> ₱1,499 ; 1499.5 -> ₱1,499.50
    if float(amount).is_integer():
        return f"{currency}{int(amount):,}"
    return f"{currency}{amount:,.2f}"


def reminder_message(
    reminder: DueReminder,
    company: str = "WiFiNet",
    currency: str = "₱",
) -> Tuple[str, str]:
    """
    Subject and body of the due-soon reminder.
    """
    subject = f"Your {company} Bill is Due Soon"
    body = (
        f"Hello {reminder.subscriber.name},\n\n"
        f"This is a friendly reminder from {company} that your monthly payment of "
        f"{format_amount(reminder.amount_due, currency)} is due on "
        f"{reminder.due_date.isoformat()}.\n\n"
        f"Please make your payment on or before the due date to avoid service interruption.\n\n"
        f"Thank you,\n"
        f"The {company} Team"
    )
    return subject, body


def build_mailto(
    reminder: DueReminder,
    company: str = "WiFiNet",
    currency: str = "₱",
) -> str:
    """
    mailto: link handed to the user's mail client. No delivery confirmation.
    """
    subject, body = reminder_message(reminder, company, currency)
    return (
        f"mailto:{reminder.subscriber.email}"
        f"?subject={quote(subject, safe='')}"
        f"&body={quote(body, safe='')}"
    )


def send_reminder(
    reminder: DueReminder,
    smtp_user: Optional[str],
    smtp_password: Optional[str],
    company: str = "WiFiNet",
    currency: str = "₱",
) -> None:
    """
    Sends the same reminder through SMTP instead of the mail client.
    Single attempt, no retry.
    """
    if not smtp_user or not smtp_password:
        raise RuntimeError("Missing SMTP_USER / SMTP_APP_PASSWORD")

    if not reminder.subscriber.email:
        raise ValueError(f"Subscriber {reminder.subscriber.name} has no email")

    subject, body = reminder_message(reminder, company, currency)

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = smtp_user
    msg["To"] = reminder.subscriber.email
    msg.set_content(body)

    with smtplib.SMTP_SSL(SMTP_SERVER, SMTP_PORT) as smtp:
        smtp.login(smtp_user, smtp_password)
        smtp.send_message(msg)
