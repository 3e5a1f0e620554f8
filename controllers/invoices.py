from datetime import date
from typing import Literal, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from controllers.deps import (
    get_actor_id,
    get_invoice_store,
    get_now,
    invoice_filters,
    to_http_error,
)
from core.config import settings
from core.exceptions import InvoiceEngineError
from models.invoice import Invoice
from schemas.invoice import (
    DocumentOut,
    InvoiceDraft,
    InvoiceFilters,
    InvoiceOut,
    SummaryOut,
    VoucherLinkOut,
)
from schemas.responses import ApiResponse
from services.aggregation import is_due_soon, is_overdue, sort_invoices, summarize
from services.csv_export import export_invoices_csv
from services.invoice_store import InvoiceStore
from services.link_resolver import total_of

router = APIRouter(tags=["invoices"])

SORTABLE_FIELDS = (
    "number",
    "reference",
    "supplier",
    "date",
    "due_date",
    "amount_ht",
    "amount_ttc",
    "vat_rate",
    "status",
    "payment_date",
)


def invoice_out(inv: Invoice, now: date) -> InvoiceOut:
    return InvoiceOut(
        id=inv.id,
        project_id=inv.project_id,
        number=inv.number,
        reference=inv.reference,
        supplier=inv.supplier,
        date=inv.date,
        due_date=inv.due_date,
        amount_ht=inv.amount_ht,
        vat_rate=inv.vat_rate,
        amount_ttc=inv.amount_ttc,
        status=inv.status,
        payment_date=inv.payment_date,
        payment_reference=inv.payment_reference,
        validated_by=inv.validated_by,
        validated_at=inv.validated_at,
        created_by=inv.created_by,
        is_paid=inv.payment_date is not None,
        is_overdue=is_overdue(inv, now),
        is_due_soon=is_due_soon(inv, now),
        links_total=total_of(inv.links or []),
        links=[VoucherLinkOut(voucher_id=link.voucher_id, amount=link.amount) for link in (inv.links or [])],
        documents=[
            DocumentOut(
                id=doc.id,
                name=doc.name,
                media_type=doc.media_type,
                url=doc.url,
                uploaded_at=doc.uploaded_at,
            )
            for doc in (inv.documents or [])
        ],
    )


def _sorted_view(
    store: InvoiceStore,
    project_id: str,
    filters: InvoiceFilters,
    now: date,
    sort: Optional[str],
    direction: str,
    limit: Optional[int],
) -> list[Invoice]:
    rows = store.list_invoices(project_id, filters, now=now, limit=limit)
    if not sort:
        return rows

    fields = [f.strip() for f in sort.split(",") if f.strip()]
    unknown = [f for f in fields if f not in SORTABLE_FIELDS]
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown sort field(s): {', '.join(unknown)}")

    return sort_invoices(rows, fields, descending=(direction == "desc"))


@router.get("/projects/{project_id}/invoices", response_model=ApiResponse[list[InvoiceOut]])
def get_invoices(
    project_id: str,
    filters: InvoiceFilters = Depends(invoice_filters),
    sort: Optional[str] = Query(None, description="Comma separated invoice fields"),
    direction: Literal["asc", "desc"] = Query("asc"),
    limit: int = Query(settings.INVOICE_LIST_LIMIT, ge=1, le=2000),
    now: date = Depends(get_now),
    store: InvoiceStore = Depends(get_invoice_store),
):
    """
    Invoices of a project, filtered.
    is_overdue is evaluated against `at` (default today), never stored.
    """
    rows = _sorted_view(store, project_id, filters, now, sort, direction, limit)
    return ApiResponse(data=[invoice_out(inv, now) for inv in rows])


@router.post("/projects/{project_id}/invoices", response_model=ApiResponse[InvoiceOut])
def save_invoice(
    project_id: str,
    draft: InvoiceDraft,
    now: date = Depends(get_now),
    actor_id: Optional[str] = Depends(get_actor_id),
    store: InvoiceStore = Depends(get_invoice_store),
):
    """
    Create or update (by id) an invoice with its voucher links and documents.
    Idempotent by invoice id: on failure the caller can resend the same draft.
    """
    try:
        inv = store.upsert(project_id, draft, actor_id=actor_id)
    except InvoiceEngineError as e:
        raise to_http_error(e)
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"Voucher source unavailable: {e}")

    return ApiResponse(data=invoice_out(inv, now))


@router.get("/projects/{project_id}/invoices/summary", response_model=ApiResponse[SummaryOut])
def invoices_summary(
    project_id: str,
    filters: InvoiceFilters = Depends(invoice_filters),
    limit: Optional[int] = Query(None, ge=1, description="Default: the whole filtered view"),
    now: date = Depends(get_now),
    store: InvoiceStore = Depends(get_invoice_store),
):
    """
    Totals, status breakdown, paid / overdue / due-soon counts of the filtered view.
    Recomputed on every call.
    """
    rows = store.list_invoices(project_id, filters, now=now, limit=limit)
    return ApiResponse(data=summarize(rows, now))


@router.get("/projects/{project_id}/invoices/export.csv")
def export_invoices(
    project_id: str,
    filters: InvoiceFilters = Depends(invoice_filters),
    sort: Optional[str] = Query(None),
    direction: Literal["asc", "desc"] = Query("asc"),
    limit: Optional[int] = Query(None, ge=1, description="Default: the whole filtered view"),
    now: date = Depends(get_now),
    store: InvoiceStore = Depends(get_invoice_store),
):
    rows = _sorted_view(store, project_id, filters, now, sort, direction, limit)
    content = export_invoices_csv(rows)

    filename = f"factures_{now.isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/invoices/{invoice_id}", response_model=ApiResponse[InvoiceOut])
def get_invoice(
    invoice_id: str,
    now: date = Depends(get_now),
    store: InvoiceStore = Depends(get_invoice_store),
):
    try:
        inv = store.get(invoice_id)
    except InvoiceEngineError as e:
        raise to_http_error(e)

    return ApiResponse(data=invoice_out(inv, now))


@router.delete("/invoices/{invoice_id}", response_model=ApiResponse[dict])
def delete_invoice(
    invoice_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
):
    """
    Deletes the invoice, its links (vouchers become available again) and its documents.
    """
    try:
        store.remove(invoice_id)
    except InvoiceEngineError as e:
        raise to_http_error(e)

    return ApiResponse(data={"deleted": invoice_id})
