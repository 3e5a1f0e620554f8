import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv


def _set_if_missing(key: str, value: str) -> None:
    """Only fill a setting the developer did not set explicitly."""
    if os.getenv(key) is None or os.getenv(key) == "":
        os.environ[key] = value


# ---------------------------------------------------------
# Load .env from project root (same folder as app.py)
# ---------------------------------------------------------
ROOT = Path(__file__).resolve().parents[1]  # project root
load_dotenv(ROOT / ".env", override=False)

# ---------------------------------------------------------
# Keep tests away from the developer database / storage.
# Must run before `app` is imported (it creates the tables on import).
# ---------------------------------------------------------
_TMP_DIR = tempfile.mkdtemp(prefix="site-invoices-tests-")

_set_if_missing("DATABASE_URL", f"sqlite:///{_TMP_DIR}/app.db")
_set_if_missing("STORAGE_DIR", f"{_TMP_DIR}/storage")

# Remote collaborators are always faked in tests
os.environ["VOUCHER_SOURCE"] = "db"
os.environ["STORAGE_BACKEND"] = "local"
