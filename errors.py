"""Error taxonomy and the handlers that turn it into JSON responses.

Every error body carries a ``message``; validation failures add an
``errors`` list of ``{field, message}`` pairs and unexpected failures add
the underlying ``error`` text.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class ApiError(HTTPException):
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.error = error
        self.errors = errors

    def body(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"message": self.message}
        if self.error is not None:
            content["error"] = self.error
        if self.errors is not None:
            content["errors"] = self.errors
        return content


class ValidationError(ApiError):
    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: str = "Validation error"):
        super().__init__(message, errors=errors)


class ConflictError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401


class NotFoundError(ApiError):
    status_code = 404


class ServiceError(ApiError):
    """Persistence or otherwise unexpected failure; surfaces the cause."""

    status_code = 500

    def __init__(self, message: str, cause: BaseException):
        super().__init__(message, error=str(cause))


def field_errors(raw_errors) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""
    result = []
    for err in raw_errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        result.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return result


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request.failed", method=request.method, path=request.url.path, message=exc.message, error=exc.error)
    return JSONResponse(status_code=exc.status_code, content=exc.body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "errors": field_errors(exc.errors())},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
