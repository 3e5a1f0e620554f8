from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from core.exceptions import (
    DuplicateNumber,
    InvoiceEngineError,
    LinkConflict,
    NotFound,
    ValidationError,
)
from db.session import get_db
from schemas.invoice import InvoiceFilters, InvoiceStatus
from schemas.responses import ErrorDetail
from schemas.voucher import VoucherFilters, VoucherType
from services.document_storage import get_document_storage
from services.invoice_store import InvoiceStore
from services.voucher_ledger import VoucherLedger
from services.voucher_source import get_voucher_source


def get_storage():
    return get_document_storage()


def get_voucher_ledger(db: Session = Depends(get_db)) -> VoucherLedger:
    return VoucherLedger(db, get_voucher_source(db))


def get_invoice_store(
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    ledger: VoucherLedger = Depends(get_voucher_ledger),
) -> InvoiceStore:
    return InvoiceStore(db, storage, ledger)


def get_actor_id(x_actor_id: Optional[str] = Header(None)) -> Optional[str]:
    """Actor for audit fields (createdBy / validatedBy); resolved by the auth proxy upstream."""
    return x_actor_id or None


def get_now(at: Optional[date] = Query(None, description="Reference date for overdue / due-soon (default: today)")) -> date:
    return at or date.today()


def invoice_filters(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status: Optional[InvoiceStatus] = Query(None),
    supplier: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Number, supplier or reference contains (case-insensitive)"),
    is_paid: Optional[bool] = Query(None),
    is_overdue: Optional[bool] = Query(None),
) -> InvoiceFilters:
    return InvoiceFilters(
        start_date=start_date,
        end_date=end_date,
        status=status,
        supplier=supplier,
        search=search or None,
        is_paid=is_paid,
        is_overdue=is_overdue,
    )


def voucher_filters(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    type: Optional[VoucherType] = Query(None),
    status: Optional[str] = Query(None),
    supplier: Optional[str] = Query(None),
) -> VoucherFilters:
    return VoucherFilters(
        start_date=start_date,
        end_date=end_date,
        type=type,
        status=status,
        supplier=supplier,
    )


def to_http_error(e: InvoiceEngineError) -> HTTPException:
    """Map engine errors to HTTP; every detail carries message + failing step."""
    detail = ErrorDetail(message=e.message, step=e.step)
    status_code = 502  # StorageError and anything else raised by an external collaborator

    if isinstance(e, ValidationError):
        detail.errors = e.errors
        status_code = 422
    elif isinstance(e, DuplicateNumber):
        detail.number = e.number
        status_code = 409
    elif isinstance(e, LinkConflict):
        detail.voucher_ids = e.voucher_ids
        status_code = 409
    elif isinstance(e, NotFound):
        status_code = 404

    return HTTPException(status_code=status_code, detail=detail.model_dump(exclude_unset=True))
