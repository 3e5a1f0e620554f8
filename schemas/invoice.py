import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


InvoiceStatus = Literal["draft", "pending", "validated", "rejected"]
INVOICE_STATUSES = ("draft", "pending", "validated", "rejected")


class VoucherLinkIn(BaseModel):
    """
    Draft link. `amount` is the snapshot taken when the voucher was attached
    (quantity x unit price); left empty, the store resolves it on save.
    """
    voucher_id: str
    amount: Optional[float] = Field(None, ge=0)


class DocumentIn(BaseModel):
    """
    Existing document: only `id` is needed (kept as-is).
    New document: `name` + `content_base64` (uploaded on save).
    """
    id: Optional[str] = None
    name: Optional[str] = None
    media_type: Optional[str] = None
    content_base64: Optional[str] = None


class InvoiceDraft(BaseModel):
    id: Optional[str] = None

    number: Optional[str] = None
    reference: Optional[str] = None
    supplier: Optional[str] = None
    date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None

    amount_ht: Optional[float] = None
    vat_rate: Optional[float] = None

    status: str = "draft"
    payment_date: Optional[dt.date] = None
    payment_reference: Optional[str] = None

    # None = leave the persisted collection untouched, [] = clear it
    links: Optional[List[VoucherLinkIn]] = None
    documents: Optional[List[DocumentIn]] = None


class InvoiceFilters(BaseModel):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    status: Optional[InvoiceStatus] = None
    supplier: Optional[str] = None
    search: Optional[str] = None  # number, supplier or reference contains
    is_paid: Optional[bool] = None
    is_overdue: Optional[bool] = None


class VoucherLinkOut(BaseModel):
    voucher_id: str
    amount: float


class DocumentOut(BaseModel):
    id: str
    name: str
    media_type: Optional[str] = None
    url: Optional[str] = None
    uploaded_at: Optional[dt.datetime] = None


class InvoiceOut(BaseModel):
    id: str
    project_id: str
    number: str
    reference: Optional[str] = None
    supplier: str
    date: dt.date
    due_date: dt.date

    amount_ht: float
    vat_rate: float
    amount_ttc: float

    status: InvoiceStatus
    payment_date: Optional[dt.date] = None
    payment_reference: Optional[str] = None

    validated_by: Optional[str] = None
    validated_at: Optional[dt.datetime] = None
    created_by: Optional[str] = None

    # evaluated against "now" at read time, never stored
    is_paid: bool = False
    is_overdue: bool = False
    is_due_soon: bool = False

    links_total: float = 0.0
    links: List[VoucherLinkOut] = []
    documents: List[DocumentOut] = []


class SummaryOut(BaseModel):
    total: int
    amount_ht: float
    amount_ttc: float
    by_status: dict[str, int]
    paid_count: int
    unpaid_count: int
    overdue_count: int
    due_soon_count: int


class SelectionIn(BaseModel):
    invoice_id: Optional[str] = None
    links: List[VoucherLinkIn] = []
    attach: List[str] = []
    detach: List[str] = []


class SelectionOut(BaseModel):
    links: List[VoucherLinkIn]
    total: float
    ignored: List[str] = []
