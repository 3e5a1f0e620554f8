from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

# ---------------------------
# Money
# ---------------------------
_CENT = Decimal("0.01")


def round2(value: float | int | Decimal | None) -> float:
    """
    Round a monetary value to 2 decimals (half-up, like a cashier would).
    Goes through str() so 1.005 rounds to 1.01 and not to 1.0 (binary float noise).
    """
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def compute_amount_ttc(amount_ht: float, vat_rate: float) -> float:
    return round2(Decimal(str(amount_ht)) * (1 + Decimal(str(vat_rate)) / 100))


def format_amount(value: float | None) -> str:
    return f"{round2(value):.2f}"


# ---------------------------
# Dates
# ---------------------------
def as_date(value: date | datetime) -> date:
    """
    Date-only view of an instant (a due date is treated as end-of-day,
    so comparisons never depend on time-of-day).
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def format_date_fr(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")
