import base64
import binascii
from datetime import date, datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import (
    DuplicateNumber,
    InvoiceEngineError,
    LinkConflict,
    NotFound,
    StorageError,
    ValidationError,
)
from core.logger import log
from helpers import as_date, compute_amount_ttc
from models.invoice import Invoice, InvoiceDocument, VoucherInvoiceLink, gen_id
from queries import invoices as invoice_queries
from schemas.invoice import INVOICE_STATUSES, InvoiceDraft, InvoiceFilters
from services.link_resolver import ensure_exclusive, resolve_snapshots


def validate_draft(draft: InvoiceDraft) -> dict[str, str]:
    """Field-level errors for a draft; empty dict means valid."""
    errors: dict[str, str] = {}

    if not (draft.number or "").strip():
        errors["number"] = "required"
    if not (draft.supplier or "").strip():
        errors["supplier"] = "required"

    if draft.date is None:
        errors["date"] = "required"
    if draft.due_date is None:
        errors["due_date"] = "required"
    elif draft.date is not None and draft.due_date < draft.date:
        errors["due_date"] = "must be on or after the invoice date"

    if draft.amount_ht is None:
        errors["amount_ht"] = "required"
    elif draft.amount_ht < 0:
        errors["amount_ht"] = "must be >= 0"

    if draft.vat_rate is None:
        errors["vat_rate"] = "required"
    elif draft.vat_rate < 0:
        errors["vat_rate"] = "must be >= 0"

    if draft.status not in INVOICE_STATUSES:
        errors["status"] = "must be one of: " + ", ".join(INVOICE_STATUSES)

    for i, doc in enumerate(draft.documents or []):
        if doc.id:
            continue
        if not (doc.name or "").strip() or not doc.content_base64:
            errors[f"documents[{i}]"] = "new documents need a name and content"

    return errors


class InvoiceStore:
    """
    Owns invoices and their link / document sub-collections.

    A save is one database transaction: invoice row -> link rows -> document rows.
    Either everything lands or nothing does; the raised error carries the step that failed.
    """

    def __init__(self, db: Session, storage, ledger) -> None:
        self.db = db
        self.storage = storage
        self.ledger = ledger

    # -------------------------
    # Reads
    # -------------------------

    def get(self, invoice_id: str) -> Invoice:
        inv = invoice_queries.get_invoice(self.db, invoice_id)
        if not inv:
            raise NotFound("Invoice", invoice_id)
        return inv

    def list_invoices(
        self,
        project_id: str,
        filters: InvoiceFilters | None = None,
        now: date | datetime | None = None,
        limit: int | None = 500,
    ) -> list[Invoice]:
        """
        Filtered invoices of a project, newest first. `limit=None` returns the whole view.
        Overdue depends on "now": evaluated at query time, never stored.
        """
        today = as_date(now) if now else date.today()
        return invoice_queries.list_invoices(self.db, project_id, filters or InvoiceFilters(), today=today, limit=limit)

    # -------------------------
    # Writes
    # -------------------------

    def upsert(self, project_id: str, draft: InvoiceDraft, actor_id: str | None = None) -> Invoice:
        errors = validate_draft(draft)
        if errors:
            raise ValidationError(errors)

        number = draft.number.strip()
        existing = invoice_queries.get_invoice(self.db, draft.id) if draft.id else None

        if existing and existing.project_id != project_id:
            raise ValidationError({"project_id": "invoice belongs to another project"})

        if invoice_queries.find_duplicate_number(self.db, project_id, number, exclude_id=draft.id):
            raise DuplicateNumber(number)

        links = None
        if draft.links is not None:
            voucher_ids = list(dict.fromkeys(link.voucher_id for link in draft.links))
            ensure_exclusive(self.db, draft.id, voucher_ids)

            persisted = {link.voucher_id: link.amount for link in existing.links} if existing else {}
            links = resolve_snapshots(draft.links, persisted, self.ledger, project_id)

        contents = self._decode_documents(draft, existing)

        uploaded: list[str] = []
        removed_locators: list[str] = []
        step = "invoice"
        try:
            inv = existing
            if inv is None:
                inv = Invoice(id=draft.id or gen_id(), project_id=project_id, created_by=actor_id)
                self.db.add(inv)

            self._apply_fields(inv, draft, number, actor_id)
            self.db.flush()

            step = "links"
            if links is not None:
                inv.links.clear()
                self.db.flush()  # DELETEs before INSERTs (voucher_id is unique)

                for pos, link in enumerate(links):
                    inv.links.append(
                        VoucherInvoiceLink(
                            voucher_id=link.voucher_id,
                            amount=link.amount,
                            position=pos,
                            created_by=actor_id,
                        )
                    )
                self.db.flush()

            step = "documents"
            if draft.documents is not None:
                removed_locators = self._reconcile_documents(inv, draft, contents, actor_id, uploaded)
                self.db.flush()

            step = "commit"
            self.db.commit()

        except IntegrityError as e:
            self.db.rollback()
            self._discard(uploaded)
            log.warning("invoice %s save rejected at step %s: %s", number, step, e.orig)
            raise self._translate_integrity_error(e, number, draft, step) from e

        except InvoiceEngineError as e:
            self.db.rollback()
            self._discard(uploaded)
            if e.step is None:
                e.step = step
            log.warning("invoice %s save failed at step %s: %s", number, step, e)
            raise

        except SQLAlchemyError as e:
            self.db.rollback()
            self._discard(uploaded)
            log.exception("invoice %s save failed at step %s: %s", number, step, e)
            raise StorageError(f"Database write failed at step {step}", step=step) from e

        # blobs of removed documents go only once their rows are gone for good
        self._discard(removed_locators)

        log.info(
            "invoice saved project=%s number=%s links=%s documents=%s",
            project_id,
            number,
            len(inv.links),
            len(inv.documents),
        )
        self.db.refresh(inv)
        return inv

    def remove(self, invoice_id: str) -> None:
        inv = self.get(invoice_id)
        locators = [doc.locator for doc in inv.documents if doc.locator]

        try:
            # cascades to invoice_documents and voucher_invoice_links
            self.db.delete(inv)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.exception("failed deleting invoice %s: %s", invoice_id, e)
            raise StorageError(f"Database delete failed for invoice {invoice_id}") from e

        # best-effort: a storage failure never resurrects the metadata
        self._discard(locators)
        log.info("invoice deleted id=%s documents=%s", invoice_id, len(locators))

    # -------------------------
    # Helpers
    # -------------------------

    def _apply_fields(self, inv: Invoice, draft: InvoiceDraft, number: str, actor_id: str | None) -> None:
        inv.number = number
        inv.reference = (draft.reference or "").strip() or None
        inv.supplier = draft.supplier.strip()
        inv.date = draft.date
        inv.due_date = draft.due_date

        inv.amount_ht = float(draft.amount_ht)
        inv.vat_rate = float(draft.vat_rate)
        inv.amount_ttc = compute_amount_ttc(draft.amount_ht, draft.vat_rate)

        # any transition is allowed; only the validation stamp follows the status
        previous = inv.status
        inv.status = draft.status
        if draft.status == "validated":
            if previous != "validated":
                inv.validated_by = actor_id
                inv.validated_at = datetime.now(timezone.utc)
        else:
            inv.validated_by = None
            inv.validated_at = None

        inv.payment_date = draft.payment_date
        inv.payment_reference = (draft.payment_reference or "").strip() or None

    def _decode_documents(self, draft: InvoiceDraft, existing: Invoice | None) -> dict[int, bytes]:
        if draft.documents is None:
            return {}

        known = {doc.id for doc in existing.documents} if existing else set()
        contents: dict[int, bytes] = {}
        errors: dict[str, str] = {}

        for i, doc in enumerate(draft.documents):
            if doc.id:
                if doc.id not in known:
                    errors[f"documents[{i}]"] = f"unknown document {doc.id}"
                continue
            try:
                contents[i] = base64.b64decode(doc.content_base64, validate=True)
            except (binascii.Error, ValueError):
                errors[f"documents[{i}]"] = "content_base64 is not valid base64"

        if errors:
            raise ValidationError(errors)
        return contents

    def _reconcile_documents(
        self,
        inv: Invoice,
        draft: InvoiceDraft,
        contents: dict[int, bytes],
        actor_id: str | None,
        uploaded: list[str],
    ) -> list[str]:
        """
        Kept documents stay, missing ones leave the set, new ones are uploaded.
        Returns the storage locators of the removed documents.
        """
        by_id = {doc.id: doc for doc in inv.documents}
        keep_ids = {d.id for d in draft.documents if d.id}

        removed = [doc for doc in inv.documents if doc.id not in keep_ids]
        for doc in removed:
            inv.documents.remove(doc)

        for pos, d in enumerate(draft.documents):
            if d.id:
                by_id[d.id].position = pos
                continue

            # StorageError here fails the whole save
            stored = self.storage.put_document(contents[pos], d.name)
            uploaded.append(stored.locator)

            inv.documents.append(
                InvoiceDocument(
                    name=d.name.strip(),
                    media_type=d.media_type,
                    url=stored.url,
                    locator=stored.locator,
                    position=pos,
                    created_by=actor_id,
                )
            )

        return [doc.locator for doc in removed if doc.locator]

    def _discard(self, locators: list[str]) -> None:
        for locator in locators:
            try:
                self.storage.delete_document(locator)
            except StorageError as e:
                log.warning("could not delete stored document %s: %s", locator, e)

    def _translate_integrity_error(
        self,
        e: IntegrityError,
        number: str,
        draft: InvoiceDraft,
        step: str,
    ) -> InvoiceEngineError:
        """
        A concurrent session won the race on one of the storage-level unique constraints.
        """
        msg = str(e.orig)

        if "voucher_id" in msg or "voucher_invoice_links" in msg:
            voucher_ids = [link.voucher_id for link in (draft.links or [])]
            taken = invoice_queries.find_foreign_links(self.db, voucher_ids, draft.id)
            return LinkConflict(sorted(link.voucher_id for link in taken) or voucher_ids, step=step)

        if "number" in msg:
            return DuplicateNumber(number, step=step)

        return StorageError(f"Database constraint violated at step {step}", step=step)
