"""
Canonical error envelope shared by every non-2xx response:

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from fastapi import Request
from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Stable machine-readable error code.")
    message: str = Field(..., description="Human-readable error message.")
    request_id: str = Field(..., description="Id of the request, echoed in X-Request-ID.")
    details: Optional[Any] = Field(default=None, description="Optional structured context.")


class ErrorResponse(BaseModel):
    error: ErrorDetail


def make_error(
    *,
    code: str,
    message: str,
    request_id: str,
    details: Optional[Any] = None,
) -> ErrorResponse:
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, request_id=request_id, details=details)
    )


def get_request_id(request: Request) -> str:
    """Request id set by the middleware, or a fresh one if it never ran."""
    return getattr(request.state, "request_id", None) or uuid.uuid4().hex


def error_example(code: str, message: str) -> dict:
    """OpenAPI example payload for an error response."""
    return {
        "error": {
            "code": code,
            "message": message,
            "request_id": "5f2b8c0e9a4d4c1b8e7f6a5b4c3d2e1f",
            "details": None,
        }
    }
