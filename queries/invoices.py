from datetime import date

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from models.invoice import Invoice, VoucherInvoiceLink
from schemas.invoice import InvoiceFilters


def get_invoice(db: Session, invoice_id: str) -> Invoice | None:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.links), selectinload(Invoice.documents))
        .filter(Invoice.id == invoice_id)
        .first()
    )


def list_invoices(
    db: Session,
    project_id: str,
    filters: InvoiceFilters | None = None,
    today: date | None = None,
    limit: int | None = 500,
) -> list[Invoice]:
    """
    All filters run in SQL, before the limit.
    `is_overdue` is evaluated against `today` (date-only, due date counts until end of day).
    """
    filters = filters or InvoiceFilters()

    query = (
        db.query(Invoice)
        .options(selectinload(Invoice.links), selectinload(Invoice.documents))
        .filter(Invoice.project_id == project_id)
    )

    if filters.start_date:
        query = query.filter(Invoice.date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Invoice.date <= filters.end_date)
    if filters.status:
        query = query.filter(Invoice.status == filters.status)
    if filters.supplier:
        query = query.filter(Invoice.supplier.ilike(f"%{filters.supplier}%"))
    if filters.search:
        term = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(
                Invoice.number.ilike(term),
                Invoice.supplier.ilike(term),
                Invoice.reference.ilike(term),
            )
        )
    if filters.is_paid is not None:
        if filters.is_paid:
            query = query.filter(Invoice.payment_date.isnot(None))
        else:
            query = query.filter(Invoice.payment_date.is_(None))
    if filters.is_overdue is not None:
        today = today or date.today()
        overdue = and_(Invoice.payment_date.is_(None), Invoice.due_date < today)
        query = query.filter(overdue if filters.is_overdue else ~overdue)

    query = query.order_by(Invoice.date.desc(), Invoice.number.asc())
    if limit:
        query = query.limit(limit)
    return query.all()


def find_duplicate_number(db: Session, project_id: str, number: str, exclude_id: str | None = None) -> Invoice | None:
    query = db.query(Invoice).filter(Invoice.project_id == project_id, Invoice.number == number)
    if exclude_id:
        query = query.filter(Invoice.id != exclude_id)
    return query.first()


def find_foreign_links(db: Session, voucher_ids: list[str], invoice_id: str | None) -> list[VoucherInvoiceLink]:
    """Persisted links on these vouchers held by any invoice other than `invoice_id`."""
    if not voucher_ids:
        return []
    query = db.query(VoucherInvoiceLink).filter(VoucherInvoiceLink.voucher_id.in_(voucher_ids))
    if invoice_id:
        query = query.filter(VoucherInvoiceLink.invoice_id != invoice_id)
    return query.all()


def linked_invoice_ids(db: Session, voucher_ids: list[str]) -> dict[str, str]:
    """voucher_id -> invoice_id for every voucher holding an active link."""
    if not voucher_ids:
        return {}
    rows = (
        db.query(VoucherInvoiceLink.voucher_id, VoucherInvoiceLink.invoice_id)
        .filter(VoucherInvoiceLink.voucher_id.in_(voucher_ids))
        .all()
    )
    return {voucher_id: invoice_id for voucher_id, invoice_id in rows}
