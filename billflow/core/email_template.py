import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from billflow.schemas.email import (
    BillSummary,
    RenderedEmail,
    DEFAULT_ACCENT_COLOR,
    DEFAULT_FROM_NAME,
    PAY_VENMO,
    PAY_ZELLE,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

ZELLE_QR_URL = "https://enroll.zellepay.com/qr-codes?data={data}"
VENMO_CHARGE_URL = "https://venmo.com/{handle}?txn=charge&amount={amount}&note={note}"

# Characters encodeURIComponent leaves alone, which deep-link consumers expect
URI_COMPONENT_SAFE = "-_.!~*'()"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

@dataclass
class PaymentAction:
    method: str
    label: str
    url: Optional[str] = None
    caption: Optional[str] = None
    instruction: str = "Please send your share when you get a chance."

def money(value: float) -> str:
    return f"{float(value):.2f}"

env.filters["money"] = money

def venmo_handle(pay_id: str) -> str:
    return pay_id.lstrip("@")

def resolve_payment_action(summary: BillSummary, total: float) -> PaymentAction:
    """Pick the Zelle link, the Venmo charge link, or a static total display."""
    amount = money(total)
    method = (summary.pay_method or "").lower()
    pay_id = summary.pay_id

    if method == PAY_ZELLE and pay_id:
        payload = json.dumps(
            {"name": summary.person_name, "token": pay_id, "amount": amount},
            separators=(",", ":"),
            ensure_ascii=False,
        )
        return PaymentAction(
            method=PAY_ZELLE,
            label=f"Pay via Zelle - ${amount}",
            url=ZELLE_QR_URL.format(data=quote(payload, safe=URI_COMPONENT_SAFE)),
            caption=f"Zelle to {pay_id}",
            instruction=f"Please pay via Zelle to {pay_id}.",
        )

    if method == PAY_VENMO and pay_id:
        handle = venmo_handle(pay_id)
        note = quote(f"Bills {summary.month_label}", safe=URI_COMPONENT_SAFE)
        return PaymentAction(
            method=PAY_VENMO,
            label=f"Pay via Venmo - ${amount}",
            url=VENMO_CHARGE_URL.format(handle=quote(handle, safe=URI_COMPONENT_SAFE), amount=amount, note=note),
            caption=f"Venmo @{handle}",
            instruction=f"Please pay via Venmo @{handle}.",
        )

    return PaymentAction(method=method or "none", label=f"Total Due: ${amount}")

def resolve_total(summary: BillSummary) -> float:
    items_total = round(sum(b.amount for b in summary.bills), 2)
    if summary.total is None:
        return items_total
    if abs(summary.total - items_total) >= 0.005:
        logger.debug(f"Caller total {summary.total:.2f} differs from item sum {items_total:.2f}; using caller total")
    return summary.total

def render_text(summary: BillSummary, greeting: str, total: float,
                payment: PaymentAction, from_name: str) -> str:
    lines = [
        greeting,
        "",
        f"Here's your share of the bills for {summary.month_label}:",
        "",
    ]
    for bill in summary.bills:
        lines.append(f"  {bill.name:<24} {'$' + money(bill.amount):>10}")
    lines += [
        "",
        "  " + "─" * 35,
        f"  {'Total you owe:':<24} {'$' + money(total):>10}",
        "",
        payment.instruction,
        "",
        f"Thanks, {from_name}",
    ]
    return "\n".join(lines)

def build_email(summary: BillSummary) -> RenderedEmail:
    """
    Render a bill summary as an HTML document and a plain-text fallback.

    Both bodies are produced from the same resolved greeting, total and
    payment action so they never disagree.
    """
    greeting = summary.greeting or f"Hi {summary.person_name},"
    accent = summary.accent_color or DEFAULT_ACCENT_COLOR
    from_name = summary.from_name or DEFAULT_FROM_NAME
    total = resolve_total(summary)
    payment = resolve_payment_action(summary, total)

    html = env.get_template("email/bill_summary.html").render(
        greeting=greeting,
        accent=accent,
        month_label=summary.month_label,
        bills=summary.bills,
        total=total,
        payment=payment,
        from_name=from_name,
    )
    text = render_text(summary, greeting, total, payment, from_name)
    return RenderedEmail(html=html, text=text)
