"""
Response shaping shared by the MCP tools.

Every tool returns ``{"content": [...], "data": {...}}``. Failures add
``"isError": True`` and an ``"error"`` block whose ``status`` is the
HTTP-equivalent code: 404/409/403 for business-rule errors, 400 for invalid
input and 500 for anything unexpected.
"""

from typing import Any

from pydantic import ValidationError

from ..errors import LendingError


def text_content(text: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": text}]


def success_response(message: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"content": text_content(message), "data": data}


def error_response(error: LendingError) -> dict[str, Any]:
    """Map a business-rule error to a tool failure."""
    return {
        "isError": True,
        "content": text_content(error.description),
        "error": {
            "kind": error.kind.value,
            "code": error.code,
            "description": error.description,
            "status": error.status,
        },
    }


def validation_error_response(exc: ValidationError, what: str) -> dict[str, Any]:
    """Map rejected tool input to a 400 failure."""
    details = "; ".join(
        f"{'.'.join(str(loc) for loc in err['loc']) or 'input'}: {err['msg']}"
        for err in exc.errors()
    )
    description = f"Invalid {what} parameters: {details}"
    return {
        "isError": True,
        "content": text_content(description),
        "error": {
            "kind": "validation",
            "code": "Validation.Failed",
            "description": description,
            "status": 400,
        },
    }


def unexpected_error_response() -> dict[str, Any]:
    description = "An unexpected error occurred"
    return {
        "isError": True,
        "content": text_content(description),
        "error": {
            "kind": "unexpected",
            "code": "Server.Unexpected",
            "description": description,
            "status": 500,
        },
    }
