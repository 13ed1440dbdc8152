"""
app/schemas/response.py

Purpose: Error envelope shared by every failing response
"""

from pydantic import BaseModel
from typing import Optional, Any


class ErrorResponse(BaseModel):
    """
    Standard error response structure.

    code is a stable machine-readable identifier (e.g. INVALID_OR_EXPIRED_CODE);
    details carries field-level validation problems when present.
    """
    error: str
    code: str
    details: Optional[Any] = None
