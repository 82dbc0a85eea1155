"""Response utilities."""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def error_response(
    message: str,
    *,
    status_code: int,
    detail: Optional[str] = None,
    error_type: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error envelope."""
    payload: Dict[str, Any] = {"ok": False, "error": message}
    if error_type:
        payload["error_type"] = error_type
    if detail:
        payload["detail"] = detail
    return JSONResponse(payload, status_code=status_code)
