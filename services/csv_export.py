import csv
import io
from typing import Iterable

from helpers import format_amount, format_date_fr


HEADERS = [
    "Numéro",
    "Référence",
    "Fournisseur",
    "Date",
    "Échéance",
    "Montant HT",
    "Montant TTC",
    "TVA",
    "Statut",
    "Date de paiement",
]

STATUS_LABELS = {
    "draft": "Brouillon",
    "pending": "En attente",
    "validated": "Validée",
    "rejected": "Rejetée",
}


def _vat_label(rate: float) -> str:
    return f"{float(rate or 0):g}%"


def invoice_row(inv) -> list[str]:
    return [
        inv.number,
        inv.reference or "",
        inv.supplier,
        format_date_fr(inv.date),
        format_date_fr(inv.due_date),
        format_amount(inv.amount_ht),
        format_amount(inv.amount_ttc),
        _vat_label(inv.vat_rate),
        STATUS_LABELS.get(inv.status, inv.status),
        format_date_fr(inv.payment_date),
    ]


def export_invoices_csv(invoices: Iterable) -> str:
    """
    CSV of the current view, in the order given (callers sort/filter first).
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADERS)
    for inv in invoices:
        writer.writerow(invoice_row(inv))
    return buf.getvalue()
