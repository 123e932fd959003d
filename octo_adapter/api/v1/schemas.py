from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OperationRequest(BaseModel):
    """Body of every supplier operation: connection credentials plus the operation payload."""

    token: dict = Field(default_factory=dict)
    payload: Optional[dict] = None


class ValidateResponse(BaseModel):
    valid: bool


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_code: str
    details: dict = Field(default_factory=dict)
