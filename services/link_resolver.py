from sqlalchemy.orm import Session

from core.exceptions import LinkConflict, NotFound, ValidationError
from helpers import round2
from queries.invoices import find_foreign_links
from schemas.invoice import VoucherLinkIn
from schemas.voucher import VoucherOut


def snapshot_amount(voucher: VoucherOut) -> float:
    return round2(float(voucher.quantity or 0) * float(voucher.unit_price or 0))


def attach(links: list[VoucherLinkIn], voucher: VoucherOut) -> list[VoucherLinkIn]:
    """
    Returns a new link set with `voucher` appended.
    Already present -> unchanged copy (no-op, not an error).
    """
    if any(link.voucher_id == voucher.id for link in links):
        return list(links)
    return [*links, VoucherLinkIn(voucher_id=voucher.id, amount=snapshot_amount(voucher))]


def detach(links: list[VoucherLinkIn], voucher_id: str) -> list[VoucherLinkIn]:
    return [link for link in links if link.voucher_id != voucher_id]


def total_of(links) -> float:
    return round2(sum(float(link.amount or 0) for link in links))


def ensure_exclusive(db: Session, invoice_id: str | None, voucher_ids: list[str]) -> None:
    """
    Check against the persisted state that no candidate voucher is held by another invoice.
    """
    taken = find_foreign_links(db, voucher_ids, invoice_id)
    if taken:
        raise LinkConflict(sorted(link.voucher_id for link in taken))


def resolve_snapshots(
    draft_links: list[VoucherLinkIn],
    persisted: dict[str, float],
    ledger,
    project_id: str,
) -> list[VoucherLinkIn]:
    """
    Final link set for a save, duplicates dropped (first occurrence wins).

    A link already persisted on this invoice keeps its snapshot, whatever the voucher
    costs now. Any other link must point at an existing voucher of `project_id`;
    its snapshot is that voucher's quantity x unit price.
    A draft amount that disagrees with the snapshot is rejected, never stored.
    """
    resolved: list[VoucherLinkIn] = []
    errors: dict[str, str] = {}
    seen: set[str] = set()

    for i, link in enumerate(draft_links):
        if link.voucher_id in seen:
            continue
        seen.add(link.voucher_id)
        field = f"links[{i}]"

        if link.voucher_id in persisted:
            amount = round2(persisted[link.voucher_id])
        else:
            try:
                voucher = ledger.get_voucher(link.voucher_id)
            except NotFound:
                errors[field] = f"unknown voucher {link.voucher_id}"
                continue
            if voucher.project_id and voucher.project_id != project_id:
                errors[field] = f"voucher {link.voucher_id} belongs to another project"
                continue
            amount = snapshot_amount(voucher)

        if link.amount is not None and round2(link.amount) != amount:
            errors[field] = f"amount {round2(link.amount):.2f} does not match the voucher snapshot {amount:.2f}"
            continue

        resolved.append(VoucherLinkIn(voucher_id=link.voucher_id, amount=amount))

    if errors:
        raise ValidationError(errors)
    return resolved


def apply_selection(
    links: list[VoucherLinkIn],
    to_attach: list[VoucherOut],
    to_detach: list[str],
    invoice_id: str | None = None,
) -> tuple[list[VoucherLinkIn], list[str]]:
    """
    Draft-level edit: detach first, then attach.
    Returns the new links and the ids of vouchers that could not be attached
    because another invoice (not `invoice_id`) already holds them.
    """
    result = list(links)
    for voucher_id in to_detach:
        result = detach(result, voucher_id)

    ignored: list[str] = []
    for voucher in to_attach:
        if voucher.invoice_id not in (None, invoice_id):
            ignored.append(voucher.id)
            continue
        result = attach(result, voucher)

    return result, ignored
