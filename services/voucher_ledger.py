from sqlalchemy.orm import Session

from core.exceptions import NotFound
from queries.invoices import linked_invoice_ids
from schemas.voucher import VoucherFilters, VoucherOut


def _matches(v: VoucherOut, filters: VoucherFilters) -> bool:
    """
    Each present filter narrows the result (exact match, dates inclusive range).
    Sources may already filter server-side; re-checking keeps the contract
    identical whichever source is configured.
    """
    if filters.start_date and (v.date is None or v.date < filters.start_date):
        return False
    if filters.end_date and (v.date is None or v.date > filters.end_date):
        return False
    if filters.type and v.type != filters.type:
        return False
    if filters.status and v.status != filters.status:
        return False
    if filters.supplier and v.supplier != filters.supplier:
        return False
    return True


class VoucherLedger:
    """
    Read-only view over vouchers extracted from daily site reports.
    Link state comes from the persisted voucher_invoice_links, never from the source.
    """

    def __init__(self, db: Session, source) -> None:
        self.db = db
        self.source = source

    def list_vouchers(self, project_id: str, filters: VoucherFilters | None = None) -> list[VoucherOut]:
        filters = filters or VoucherFilters()

        rows = self.source.fetch_vouchers(project_id, filters)
        vouchers = [VoucherOut.from_row(r) for r in (rows or [])]
        vouchers = [v for v in vouchers if _matches(v, filters)]

        links = linked_invoice_ids(self.db, [v.id for v in vouchers])
        for v in vouchers:
            v.invoice_id = links.get(v.id)

        return vouchers

    def list_available_vouchers(self, project_id: str, filters: VoucherFilters | None = None) -> list[VoucherOut]:
        return [v for v in self.list_vouchers(project_id, filters) if v.invoice_id is None]

    def get_voucher(self, voucher_id: str) -> VoucherOut:
        row = self.source.fetch_voucher(voucher_id)
        if not row:
            raise NotFound("Voucher", voucher_id)

        voucher = VoucherOut.from_row(row)
        voucher.invoice_id = linked_invoice_ids(self.db, [voucher.id]).get(voucher.id)
        return voucher
