"""Domain error taxonomy and the HTTP mapping for it.

Services and repositories raise these; only the handlers registered here
translate them into responses.
"""
from typing import Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


log = structlog.get_logger(__name__)


class AppError(Exception):
    """Base exception for the application"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(AppError):
    """Malformed or missing payload fields"""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Invalid data", fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class AuthenticationError(AppError):
    """Bad credentials, or missing/expired session"""

    status_code = 401
    code = "UNAUTHORIZED"


class AuthorizationError(AppError):
    """Authenticated but not allowed in this tenant"""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    """No such id, or unknown tenant slug"""

    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    """Unique constraint violation"""

    status_code = 409
    code = "CONFLICT"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"


def _field_name(loc) -> str:
    # Drop the leading "body"/"query"/"path" segment FastAPI puts in front
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path", "header", "cookie"):
        parts = parts[1:]
    return ".".join(parts)


def validation_fields(errors) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for err in errors:
        name = _field_name(err.get("loc", ())) or "__root__"
        fields.setdefault(name, err.get("msg", "Invalid value"))
    return fields


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, InternalError):
            log.error("internal_error", error=exc.message, path=request.url.path)
            return JSONResponse(status_code=500, content={"message": "Internal server error"})
        log.info("request_rejected", code=exc.code, status=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = validation_fields(exc.errors())
        return JSONResponse(status_code=400, content={"message": "Invalid data", "fields": fields})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        log.exception("unhandled_error", path=request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})
