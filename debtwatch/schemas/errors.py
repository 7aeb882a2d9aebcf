"""
schemas/errors.py — Structured error response model

Shared by the DebtWatchError, HTTPException and RequestValidationError
handlers in main.py.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    status_code: int
    request_id: str = ""
    detail: list | None = None
