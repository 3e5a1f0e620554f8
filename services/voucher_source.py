import httpx
from sqlalchemy.orm import Session

from core.config import settings
from queries import vouchers as voucher_queries
from schemas.voucher import VoucherFilters


class DbVoucherSource:
    """Reads the `vouchers` table mirrored from the daily reports."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def fetch_vouchers(self, project_id: str, filters: VoucherFilters | None = None) -> list[dict]:
        return voucher_queries.list_vouchers(self.db, project_id, filters)

    def fetch_voucher(self, voucher_id: str) -> dict | None:
        return voucher_queries.get_voucher(self.db, voucher_id)


class HttpVoucherSource:
    """
    Reporting service client.
    Works with: GET /projects/{id}/vouchers and GET /vouchers/{id}, both returning {"data": ...}
    """

    def __init__(self) -> None:
        self.base = (settings.REPORTING_BASE_URL or "").rstrip("/")
        self.headers = {"Accept": "application/json"}
        if settings.REPORTING_API_TOKEN:
            self.headers["Authorization"] = f"Bearer {settings.REPORTING_API_TOKEN}"
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    def fetch_vouchers(self, project_id: str, filters: VoucherFilters | None = None) -> list[dict]:
        url = f"{self.base}/projects/{project_id}/vouchers"
        params = {}
        if filters:
            params = {
                k: (v.isoformat() if hasattr(v, "isoformat") else v)
                for k, v in filters.model_dump().items()
                if v is not None
            }
        with httpx.Client(timeout=self.timeout) as client:
            r = client.get(url, headers=self.headers, params=params)
            r.raise_for_status()
            return (r.json().get("data") or [])

    def fetch_voucher(self, voucher_id: str) -> dict | None:
        url = f"{self.base}/vouchers/{voucher_id}"
        with httpx.Client(timeout=self.timeout) as client:
            r = client.get(url, headers=self.headers)
            if r.status_code == 404:
                return None
            r.raise_for_status()
            return (r.json().get("data") or None)


def get_voucher_source(db: Session):
    if settings.VOUCHER_SOURCE == "http":
        return HttpVoucherSource()
    return DbVoucherSource(db)
