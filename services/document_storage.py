import logging
import uuid
from pathlib import Path

import httpx
from pydantic import BaseModel

from core.config import settings
from core.exceptions import StorageError

log = logging.getLogger("storage")


class StoredDocument(BaseModel):
    url: str
    locator: str


def _unique_name(name_hint: str) -> str:
    ext = Path(name_hint or "").suffix
    return f"{uuid.uuid4()}{ext}"


class LocalDocumentStorage:
    """Stores invoice documents as files under settings.STORAGE_DIR."""

    def __init__(self, root: str | None = None) -> None:
        self.root = Path(root or settings.STORAGE_DIR)

    def put_document(self, content: bytes, name_hint: str) -> StoredDocument:
        locator = _unique_name(name_hint)
        path = self.root / locator
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to store document {name_hint!r}: {e}") from e

        return StoredDocument(url=path.resolve().as_uri(), locator=locator)

    def delete_document(self, locator: str) -> None:
        try:
            (self.root / locator).unlink()
        except FileNotFoundError:
            log.info("document %s already gone", locator)
        except OSError as e:
            raise StorageError(f"Failed to delete document {locator!r}: {e}") from e


class HttpDocumentStorage:
    """
    Object storage behind a plain HTTP API:
    PUT {base}/{locator} with raw bytes, DELETE {base}/{locator}.
    """

    def __init__(self) -> None:
        self.base = (settings.STORAGE_BASE_URL or "").rstrip("/")
        self.headers = {}
        if settings.STORAGE_API_TOKEN:
            self.headers["Authorization"] = f"Bearer {settings.STORAGE_API_TOKEN}"
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    def put_document(self, content: bytes, name_hint: str) -> StoredDocument:
        locator = _unique_name(name_hint)
        url = f"{self.base}/{locator}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.put(url, headers=self.headers, content=content)
                r.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to upload document {name_hint!r}: {e}") from e

        return StoredDocument(url=url, locator=locator)

    def delete_document(self, locator: str) -> None:
        url = f"{self.base}/{locator}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                r = client.delete(url, headers=self.headers)
                if r.status_code == 404:
                    return
                r.raise_for_status()
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to delete document {locator!r}: {e}") from e


def get_document_storage():
    if settings.STORAGE_BACKEND == "http":
        return HttpDocumentStorage()
    return LocalDocumentStorage()
