"""FastAPI exception handlers mapping error kinds to HTTP responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrail.core.errors import TaskTrailError
from tasktrail.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI
    from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"
logger = get_logger(__name__)


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    header_value = request.headers.get(REQUEST_ID_HEADER, "").strip()
    request_id = header_value or uuid4().hex
    request.state.request_id = request_id
    return request_id


def _error_payload(
    *,
    detail: Any,
    request_id: str,
    code: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail, "request_id": request_id}
    if code is not None:
        payload["code"] = code
    return payload


def _json_error(
    request: Request,
    *,
    status_code: int,
    detail: Any,
    code: str | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(_error_payload(detail=detail, request_id=request_id, code=code)),
        headers={REQUEST_ID_HEADER: request_id},
    )


async def _task_trail_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, TaskTrailError):
        raise exc
    if exc.status_code >= 500:
        logger.warning(
            "http.error.%s path=%s detail=%s",
            exc.code,
            request.url.path,
            exc.message,
        )
    return _json_error(request, status_code=exc.status_code, detail=exc.message, code=exc.code)


async def _http_exception_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        raise exc
    return _json_error(request, status_code=exc.status_code, detail=exc.detail)


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        raise exc
    return _json_error(request, status_code=422, detail=exc.errors(), code="validation_error")


async def _request_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    request_id = _get_request_id(request)
    response = await call_next(request)
    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def install_error_handling(app: FastAPI) -> None:
    """Register request-id propagation and the error kind to status mapping."""
    app.middleware("http")(_request_id_middleware)
    app.add_exception_handler(TaskTrailError, _task_trail_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
