from pydantic import BaseModel
from typing import Optional, Any, List

class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class ImportResult(BaseModel):
    """
    Outcome of a CSV import.
    """
    imported: int = 0
    skipped: int = 0
    errors: List[str] = []
