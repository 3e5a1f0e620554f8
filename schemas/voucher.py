import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, computed_field

from helpers import round2


VoucherType = Literal["delivery", "evacuation", "concrete", "materials"]
VOUCHER_TYPES = ("delivery", "evacuation", "concrete", "materials")


class VoucherOut(BaseModel):
    id: str
    project_id: Optional[str] = None
    type: VoucherType
    number: Optional[str] = None
    supplier: Optional[str] = None
    date: Optional[dt.date] = None

    quantity: float = 0.0
    unit: Optional[str] = None
    unit_price: Optional[float] = None
    status: str = "draft"

    # type-specific descriptor
    materials: Optional[str] = None           # delivery / evacuation / materials
    concrete_type: Optional[str] = None       # concrete
    loading_location: Optional[str] = None    # delivery / evacuation
    unloading_location: Optional[str] = None  # delivery / evacuation
    truck_type: Optional[str] = None

    # invoice currently holding an active link on this voucher
    invoice_id: Optional[str] = None

    @computed_field
    @property
    def amount(self) -> float:
        return round2(float(self.quantity or 0) * float(self.unit_price or 0))

    @classmethod
    def from_row(cls, row: dict) -> "VoucherOut":
        """
        Build a voucher from a reporting row (DB mirror or HTTP payload).
        Concrete vouchers carry their grade in the generic `materials` column.
        """
        vtype = row.get("type")
        data = {
            "id": str(row.get("id")),
            "project_id": row.get("project_id"),
            "type": vtype,
            "number": row.get("number"),
            "supplier": row.get("supplier"),
            "date": row.get("date"),
            "quantity": float(row.get("quantity") or 0),
            "unit": row.get("unit"),
            "unit_price": row.get("unit_price") if row.get("unit_price") is not None else None,
            "status": row.get("status") or "draft",
            "truck_type": row.get("truck_type"),
            "invoice_id": row.get("invoice_id"),
        }

        if vtype in ("delivery", "evacuation"):
            data["materials"] = row.get("materials")
            data["loading_location"] = row.get("loading_location")
            data["unloading_location"] = row.get("unloading_location")
        elif vtype == "concrete":
            data["concrete_type"] = row.get("concrete_type") or row.get("materials")
        elif vtype == "materials":
            data["materials"] = row.get("materials")

        return cls(**data)


class VoucherFilters(BaseModel):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    type: Optional[VoucherType] = None
    status: Optional[str] = None
    supplier: Optional[str] = None


class VoucherSummaryOut(BaseModel):
    total: int
    total_amount: float
    by_type: dict[str, int]
    by_status: dict[str, int]
    invoiced_count: int
    available_count: int
