import httpx
from fastapi import APIRouter, Depends, HTTPException

from controllers.deps import get_voucher_ledger, to_http_error, voucher_filters
from core.exceptions import InvoiceEngineError
from schemas.invoice import SelectionIn, SelectionOut
from schemas.responses import ApiResponse
from schemas.voucher import VoucherFilters, VoucherOut, VoucherSummaryOut
from services.aggregation import summarize_vouchers
from services.link_resolver import apply_selection, total_of
from services.voucher_ledger import VoucherLedger

router = APIRouter(tags=["vouchers"])


def _source_unavailable(e: httpx.HTTPError) -> HTTPException:
    return HTTPException(status_code=502, detail=f"Voucher source unavailable: {e}")


@router.get("/projects/{project_id}/vouchers", response_model=ApiResponse[list[VoucherOut]])
def get_vouchers(
    project_id: str,
    filters: VoucherFilters = Depends(voucher_filters),
    ledger: VoucherLedger = Depends(get_voucher_ledger),
):
    """All vouchers of the project, with the invoice currently holding each one (if any)."""
    try:
        return ApiResponse(data=ledger.list_vouchers(project_id, filters))
    except httpx.HTTPError as e:
        raise _source_unavailable(e)


@router.get("/projects/{project_id}/vouchers/available", response_model=ApiResponse[list[VoucherOut]])
def get_available_vouchers(
    project_id: str,
    filters: VoucherFilters = Depends(voucher_filters),
    ledger: VoucherLedger = Depends(get_voucher_ledger),
):
    """Vouchers not attached to any invoice yet (candidates for a new link)."""
    try:
        return ApiResponse(data=ledger.list_available_vouchers(project_id, filters))
    except httpx.HTTPError as e:
        raise _source_unavailable(e)


@router.get("/projects/{project_id}/vouchers/summary", response_model=ApiResponse[VoucherSummaryOut])
def vouchers_summary(
    project_id: str,
    filters: VoucherFilters = Depends(voucher_filters),
    ledger: VoucherLedger = Depends(get_voucher_ledger),
):
    try:
        vouchers = ledger.list_vouchers(project_id, filters)
    except httpx.HTTPError as e:
        raise _source_unavailable(e)

    return ApiResponse(data=summarize_vouchers(vouchers))


@router.post("/projects/{project_id}/vouchers/selection", response_model=ApiResponse[SelectionOut])
def edit_selection(
    project_id: str,
    body: SelectionIn,
    ledger: VoucherLedger = Depends(get_voucher_ledger),
):
    """
    Draft-level attach / detach on an invoice's voucher links (nothing is persisted).
    `total` is the amount HT candidate for the invoice.
    Vouchers held by another invoice or belonging to another project come back in `ignored`.
    """
    try:
        candidates = [ledger.get_voucher(voucher_id) for voucher_id in body.attach]
    except InvoiceEngineError as e:
        raise to_http_error(e)
    except httpx.HTTPError as e:
        raise _source_unavailable(e)

    foreign = [v.id for v in candidates if v.project_id and v.project_id != project_id]
    candidates = [v for v in candidates if v.id not in foreign]

    links, ignored = apply_selection(body.links, candidates, body.detach, invoice_id=body.invoice_id)

    return ApiResponse(data=SelectionOut(links=links, total=total_of(links), ignored=foreign + ignored))


@router.get("/vouchers/{voucher_id}", response_model=ApiResponse[VoucherOut])
def get_voucher(
    voucher_id: str,
    ledger: VoucherLedger = Depends(get_voucher_ledger),
):
    try:
        return ApiResponse(data=ledger.get_voucher(voucher_id))
    except InvoiceEngineError as e:
        raise to_http_error(e)
    except httpx.HTTPError as e:
        raise _source_unavailable(e)
