"""
Domain exceptions and the FastAPI handlers that render them.

Every error response follows one JSON envelope::

    {
        "error": true,
        "message": "<human-readable description>",
        "details": {...}          # optional, e.g. {"field": ..., "constraint": ...}
    }

Services raise the exceptions below without importing FastAPI, so the same
failures surface unchanged through the REST API, the MCP endpoints and the CLI.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────
# Domain exceptions
# ────────────────────────────────────────────────────────────────────────────


class AppException(Exception):
    """Base exception for all application-level errors."""

    def __init__(self, status_code: int, message: str, details: Any = None):
        self.status_code = status_code
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationException(AppException):
    """Malformed input that passed schema parsing but not a domain check (422)."""

    def __init__(self, field: str, constraint: str, value: Any = None):
        self.field = field
        self.constraint = constraint
        details = {"field": field, "constraint": constraint}
        if value is not None:
            details["value"] = str(value)
        super().__init__(
            status_code=422,
            message=f"Invalid {field}: {constraint}",
            details=details,
        )


class InvalidDateError(ValidationException):
    def __init__(self, field: str, value: Any = None, constraint: str = "must be a valid date"):
        super().__init__(field, constraint, value)


class InvalidCurrencyError(ValidationException):
    def __init__(self, value: Any):
        super().__init__(
            "currency", "must be a supported ISO-4217 currency code", value
        )


class InvalidCompanyIdError(ValidationException):
    def __init__(self, value: Any):
        super().__init__("company_id", "must be a valid UUID", value)


class NotFoundException(AppException):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            status_code=404,
            message=f"{resource} with id '{identifier}' not found",
            details={"resource": resource, "id": str(identifier)},
        )


class CompanyNotFoundError(NotFoundException):
    def __init__(self, identifier: Any):
        super().__init__("Company", identifier)


class ResponseNotFoundError(NotFoundException):
    """The LP has no response row for the call (e.g. joined after the call was made)."""

    def __init__(self, capital_call_id: Any, lp_id: Any):
        super().__init__("CapitalCallResponse", f"{capital_call_id}/{lp_id}")
        self.message = (
            f"Limited partner '{lp_id}' has no response for capital call "
            f"'{capital_call_id}'"
        )


class ConflictException(AppException):
    """Resource already exists / unique-constraint violation (409)."""

    def __init__(self, message: str):
        super().__init__(status_code=409, message=message)


class BusinessRuleViolation(AppException):
    """Business rule was violated (422)."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(status_code=422, message=message, details=details)


class NoCommitmentsError(BusinessRuleViolation):
    """A call percentage cannot be derived because the fund has no commitments."""

    def __init__(self, fund_id: Any):
        super().__init__(
            f"Cannot derive call percentage: fund '{fund_id}' has no LP commitments",
            details={"fund_id": str(fund_id)},
        )


class ArithmeticAmbiguityError(BusinessRuleViolation):
    """Two inputs imply different amounts and neither can be preferred."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, details=details)


class AuthenticationError(AppException):
    """No caller identity could be established (401)."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(status_code=401, message=message)


class PermissionDeniedError(AppException):
    """Caller lacks the role or ownership for the action (403)."""

    def __init__(self, action: str, resource: Optional[str] = None):
        message = f"You do not have permission to {action}"
        if resource:
            message = f"{message} for {resource}"
        super().__init__(status_code=403, message=message, details={"action": action})


# ────────────────────────────────────────────────────────────────────────────
# FastAPI exception handler registration
# ────────────────────────────────────────────────────────────────────────────


def _envelope(message: str, details: Any = None) -> dict:
    body: dict = {"error": True, "message": message}
    if details is not None:
        body["details"] = details
    return body


def add_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI application instance."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info(
                "%s %s rejected (%d): %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(exc.message, exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope(str(exc.detail)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Return a 422 listing each invalid field so forms can highlight it."""
        errors = []
        for err in exc.errors():
            loc = " -> ".join(str(part) for part in err["loc"])
            errors.append({"field": loc, "message": err["msg"]})
        return JSONResponse(
            status_code=422,
            content=_envelope("Validation failed", errors),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_envelope("Internal Server Error. Please contact support."),
        )
