"""
schemas/common.py

- Shared error response schemas (Pydantic v2)
- Route handlers use ErrorDetail via utils.responses.fail();
  the global exception handler returns ErrorResponse.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, Field, ConfigDict


class ErrorDetail(BaseModel):
    code: Union[int, str] = Field(..., description="HTTP status or error code (e.g. 404, INTERNAL_ERROR)")
    message: str = Field(..., description="Human readable message")

class ErrorResponse(BaseModel):
    """Body returned by the global exception handler."""
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(extra="ignore")
