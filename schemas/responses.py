from pydantic import BaseModel
from typing import Generic, List, TypeVar, Optional

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    data: Optional[T] = None
    error: Optional[str] = None


class ErrorDetail(BaseModel):
    """
    `detail` body of every engine error.
    `step` is the failing write step of a save (None outside a save).
    """
    message: str
    step: Optional[str] = None

    errors: Optional[dict[str, str]] = None     # ValidationError
    number: Optional[str] = None                # DuplicateNumber
    voucher_ids: Optional[List[str]] = None     # LinkConflict
