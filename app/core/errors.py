# Error types + FastAPI exception handlers

from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class ServiceError(Exception):
    """Base class for errors raised by the service layer"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_detail(self) -> Any:
        if self.field:
            return [{"field": self.field, "message": self.message}]
        return self.message


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class NotFoundError(ServiceError):
    """Raised both for missing rows and rows owned by someone else"""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidInputError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into field/message pairs"""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the "body"/"query"/"path" prefix FastAPI adds
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        formatted.append({"field": ".".join(loc) or "__root__", "message": err.get("msg", "")})
    return formatted


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or uuid4().hex
        request.state.request_id = request_id
    return request_id


def _error_payload(request: Request, detail: Any, code: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"detail": detail, "request_id": _get_request_id(request)}
    if code:
        payload["code"] = code
    return payload


def _json_error(request: Request, status_code: int, detail: Any, code: Optional[str] = None, headers=None):
    response = JSONResponse(status_code=status_code, content=_error_payload(request, detail, code), headers=headers)
    response.headers[REQUEST_ID_HEADER] = _get_request_id(request)
    return response


async def _service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("Service error on %s %s: %s", request.method, request.url.path, exc.message)
        return _json_error(request, exc.status_code, "Internal Server Error", exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return _json_error(request, exc.status_code, exc.to_detail(), exc.code, headers)


async def _request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return _json_error(
        request,
        status.HTTP_400_BAD_REQUEST,
        format_validation_errors(exc.errors()),
        "validation_error",
    )


async def _http_exception_handler(request: Request, exc: HTTPException):
    return _json_error(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _json_error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def install_error_handling(app: FastAPI) -> None:
    """Register JSON error handlers and request-id propagation on the app"""

    @app.middleware("http")
    async def _request_id_middleware(request: Request, call_next):
        request_id = _get_request_id(request)
        response = await call_next(request)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        return response

    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
