from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from core.config import settings
from helpers import as_date, round2
from schemas.invoice import INVOICE_STATUSES, SummaryOut
from schemas.voucher import VOUCHER_TYPES, VoucherSummaryOut


def is_paid(inv) -> bool:
    return inv.payment_date is not None


def is_overdue(inv, now: date | datetime) -> bool:
    """Unpaid and due strictly before today (due date counts until end of day)."""
    return not is_paid(inv) and inv.due_date < as_date(now)


def is_due_soon(inv, now: date | datetime, days: int | None = None) -> bool:
    """Unpaid and due between today and today + N days, both inclusive."""
    if is_paid(inv):
        return False
    days = settings.DUE_SOON_DAYS if days is None else days
    today = as_date(now)
    return today <= inv.due_date <= today + timedelta(days=days)


def summarize(invoices: Iterable, now: date | datetime) -> SummaryOut:
    """
    Statistics over an invoice collection at instant `now`.
    Pure: recomputed on every call, nothing cached.
    """
    invoices = list(invoices)

    by_status = {status: 0 for status in INVOICE_STATUSES}
    amount_ht = 0.0
    amount_ttc = 0.0
    paid = 0
    overdue = 0
    due_soon = 0

    for inv in invoices:
        by_status[inv.status] += 1
        amount_ht += float(inv.amount_ht or 0)
        amount_ttc += float(inv.amount_ttc or 0)

        if is_paid(inv):
            paid += 1
        elif is_overdue(inv, now):
            overdue += 1
        elif is_due_soon(inv, now):
            due_soon += 1

    return SummaryOut(
        total=len(invoices),
        amount_ht=round2(amount_ht),
        amount_ttc=round2(amount_ttc),
        by_status=by_status,
        paid_count=paid,
        unpaid_count=len(invoices) - paid,
        overdue_count=overdue,
        due_soon_count=due_soon,
    )


def summarize_vouchers(vouchers: Iterable) -> VoucherSummaryOut:
    vouchers = list(vouchers)

    by_type = {vtype: 0 for vtype in VOUCHER_TYPES}
    by_status = {status: 0 for status in INVOICE_STATUSES}
    invoiced = 0

    for v in vouchers:
        by_type[v.type] = by_type.get(v.type, 0) + 1
        by_status[v.status] = by_status.get(v.status, 0) + 1
        if v.invoice_id:
            invoiced += 1

    return VoucherSummaryOut(
        total=len(vouchers),
        total_amount=round2(sum(v.amount for v in vouchers)),
        by_type=by_type,
        by_status=by_status,
        invoiced_count=invoiced,
        available_count=len(vouchers) - invoiced,
    )


def sort_invoices(invoices: Iterable, fields: str | Sequence[str], descending: bool = False) -> list:
    """
    Stable multi-field sort over any invoice attribute.

    Missing values (None) go last when ascending. Python's sort is stable in both
    directions, so equal keys keep their original relative order.
    """
    if isinstance(fields, str):
        fields = [fields]

    def key(inv):
        parts = []
        for field in fields:
            value = getattr(inv, field)
            parts.append((value is None, value if value is not None else 0))
        return tuple(parts)

    return sorted(invoices, key=key, reverse=descending)
