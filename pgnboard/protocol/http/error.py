from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, cast

from fastapi import Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse
from starlette import status
from fastapi.exceptions import RequestValidationError

from ...engine.errors import AmbiguousMove, ChessError


logger = logging.getLogger(__name__)


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: Optional[List[Dict[str, str]]] = None,
    candidates: Optional[List[str]] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    if candidates:
        payload["error"]["candidates"] = candidates
    return payload


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    http_exc = cast(FastAPIHTTPException, exc)
    payload = error_envelope(
        code=_status_to_code(http_exc.status_code),
        message=http_exc.detail if isinstance(http_exc.detail, str) else str(http_exc.detail),
        err_type="client_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=http_exc.status_code, content=payload)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    # Map Pydantic/FastAPI validation errors to our structured envelope with 422
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        msg = e.get("msg", "invalid value")
        typ = e.get("type", "value_error")
        errors.append({"field": loc, "code": typ, "message": msg})
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=request_id,
        field_errors=errors or None,
    )
    return JSONResponse(status_code=422, content=payload)


def _status_to_code(status_code: int) -> str:
    # Unknown game ids are the only HTTPException the routes raise
    if status_code == status.HTTP_404_NOT_FOUND:
        return "not_found"
    return "error"


async def chess_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render rejected setup strings, tokens and undos as 400 with a specific code."""
    request_id = getattr(request.state, "request_id", "")
    err = cast(ChessError, exc)
    candidates = None
    if isinstance(err, AmbiguousMove):
        candidates = sorted(m.to_uci() for m in err.candidates)
    logger.info(
        "rejected input",
        extra={"request_id": request_id, "code": err.code, "reason": str(err)},
    )
    payload = error_envelope(
        code=err.code,
        message=str(err),
        err_type="client_error",
        request_id=request_id,
        candidates=candidates,
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)
