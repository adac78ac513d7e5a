# core/receipt.py
from html import escape
from typing import Optional

from core.mailer import format_amount
from core.models import Payment, Plan, Subscriber

RECEIPT_STYLE = """
body { font-family: sans-serif; color: #1e293b; margin: 24px; }
.receipt { max-width: 480px; margin: 0 auto; }
.header { display: flex; justify-content: space-between; border-bottom: 1px solid #cbd5e1; padding-bottom: 12px; }
.brand { font-size: 22px; font-weight: bold; color: #4f46e5; }
.muted { color: #64748b; font-size: 12px; }
table { width: 100%; border-collapse: collapse; margin-top: 16px; }
th, td { text-align: left; padding: 6px 0; border-bottom: 1px solid #e2e8f0; }
td.num, th.num { text-align: right; }
.totals div { display: flex; justify-content: space-between; padding: 4px 0; }
.total { font-weight: bold; }
.footer { text-align: center; margin-top: 24px; font-size: 12px; color: #64748b; }
"""


def render_receipt(
    payment: Payment,
    subscriber: Optional[Subscriber],
    plan: Optional[Plan],
    company: str = "WiFiNet",
    currency: str = "₱",
    auto_print: bool = False,
) -> str:
    """
    Standalone HTML receipt: biller, billed-to, line item, totals, method.
    With auto_print the page opens the print dialog once loaded.
    """
    amount = escape(format_amount(payment.amount, currency))
    customer = escape(subscriber.name) if subscriber else "Unknown User"
    email = escape(subscriber.email) if subscriber else ""
    item = escape(plan.name) if plan else "Internet Service"
    speed = f"{plan.speed} Mbps" if plan else ""
    onload = ' onload="window.focus(); window.print()"' if auto_print else ""

    return f"""<html>
<head><title>Print Receipt</title><style>{RECEIPT_STYLE}</style></head>
<body{onload}>
<div class="receipt">
  <div class="header">
    <div>
      <div class="brand">{escape(company)}</div>
      <div class="muted">Internet Service Provider</div>
    </div>
    <div>
      <div><b>Receipt</b></div>
      <div class="muted">#{escape(payment.id)}</div>
      <div class="muted">{payment.date.isoformat()}</div>
    </div>
  </div>

  <div style="margin-top: 12px;">
    <div class="muted">Billed to</div>
    <p>{customer}</p>
    <p class="muted">{email}</p>
  </div>

  <table>
    <thead><tr><th>Description</th><th class="num">Amount</th></tr></thead>
    <tbody>
      <tr><td>{item} <span class="muted">{speed}</span></td><td class="num">{amount}</td></tr>
    </tbody>
  </table>

  <div class="totals">
    <div><span>Subtotal:</span><span>{amount}</span></div>
    <div class="total"><span>Total Paid:</span><span>{amount}</span></div>
    <div><span>Payment Method:</span><span>{escape(payment.method.value)}</span></div>
  </div>

  <div class="footer"><p>Thank you for your business!</p></div>
</div>
</body>
</html>"""


def printable_receipt(payment, subscriber, plan, company="WiFiNet", currency="₱") -> str:
    return render_receipt(payment, subscriber, plan, company, currency, auto_print=True)
