from sqlalchemy.orm import Session

from models.voucher import Voucher
from schemas.voucher import VoucherFilters


_COLUMNS = (
    "id",
    "project_id",
    "type",
    "number",
    "supplier",
    "date",
    "quantity",
    "unit",
    "unit_price",
    "status",
    "materials",
    "loading_location",
    "unloading_location",
    "truck_type",
)


def _as_row(v: Voucher) -> dict:
    return {col: getattr(v, col) for col in _COLUMNS}


def list_vouchers(db: Session, project_id: str, filters: VoucherFilters | None = None) -> list[dict]:
    filters = filters or VoucherFilters()

    query = db.query(Voucher).filter(Voucher.project_id == project_id)

    if filters.start_date:
        query = query.filter(Voucher.date >= filters.start_date)
    if filters.end_date:
        query = query.filter(Voucher.date <= filters.end_date)
    if filters.type:
        query = query.filter(Voucher.type == filters.type)
    if filters.status:
        query = query.filter(Voucher.status == filters.status)
    if filters.supplier:
        query = query.filter(Voucher.supplier == filters.supplier)

    return [_as_row(v) for v in query.order_by(Voucher.date.desc(), Voucher.id.asc()).all()]


def get_voucher(db: Session, voucher_id: str) -> dict | None:
    row = db.query(Voucher).filter(Voucher.id == voucher_id).first()
    return _as_row(row) if row else None
