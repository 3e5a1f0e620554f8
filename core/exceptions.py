class InvoiceEngineError(Exception):
    """
    Base error for the reconciliation engine.

    `step` names the write step that failed during a save
    ("invoice" | "links" | "documents" | "commit"), None otherwise.
    """

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.step = step


class ValidationError(InvoiceEngineError):
    def __init__(self, errors: dict[str, str]) -> None:
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid invoice fields: {fields}")
        self.errors = errors


class DuplicateNumber(InvoiceEngineError):
    def __init__(self, number: str, step: str | None = None) -> None:
        super().__init__(f"An invoice with number {number!r} already exists for this project", step=step)
        self.number = number


class LinkConflict(InvoiceEngineError):
    def __init__(self, voucher_ids: list[str], step: str | None = None) -> None:
        super().__init__(
            "Vouchers already attached to another invoice: " + ", ".join(voucher_ids),
            step=step,
        )
        self.voucher_ids = voucher_ids


class StorageError(InvoiceEngineError):
    pass


class NotFound(InvoiceEngineError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
