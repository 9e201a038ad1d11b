"""
Error response formatting for the marketplace API.

Every handler returns a JSONResponse whose body is
`{message, code, timestamp, request_id, details?}`. Database and unexpected
errors are logged with their traceback but answered with a generic message.
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from marketplace.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

# Echoed back in validation details; containers and bodies are not.
_PLAIN_INPUT_TYPES = (str, int, float, bool, type(None))


class ErrorHandlerService:
    """Builds error bodies and logs failures by severity."""

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Shape an error body.

        Args:
            error_code: Machine readable code, e.g. `NOT_FOUND`
            message: Message shown to API clients
            details: Per-field problems, omitted when empty
            request_id: Id assigned by the validation middleware

        Returns:
            Error body dictionary
        """
        body = {
            "message": message,
            "code": error_code,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "request_id": request_id,
        }
        if details:
            body["details"] = details
        return body

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Respond to one of our own APIException subclasses, keeping its headers."""
        request_id = ErrorHandlerService._get_request_id(request)
        code = exception.error_code or "API_ERROR"

        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"{code} [{request_id}]: {exception.detail}",
            extra=ErrorHandlerService._context(request, request_id, status_code=exception.status_code)
        )

        details = None
        if isinstance(exception, ValidationError):
            details = exception.field_errors

        return ErrorHandlerService._respond(
            exception.status_code,
            code,
            exception.detail,
            request_id,
            details=details,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        errors: Sequence[Dict[str, Any]],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Turn pydantic error entries into a 400 response.

        The message names the first failing field; `details` lists them all.
        """
        request_id = ErrorHandlerService._get_request_id(request)

        details = []
        for error in errors:
            entry = {
                "field": " -> ".join(str(part) for part in error.get("loc", ())),
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type"),
            }
            if isinstance(error.get("input"), _PLAIN_INPUT_TYPES):
                entry["input"] = error.get("input")
            details.append(entry)

        logger.warning(
            f"VALIDATION_ERROR [{request_id}]: {len(details)} invalid field(s)",
            extra=ErrorHandlerService._context(request, request_id, validation_errors=details)
        )

        message = "Request validation failed"
        if details:
            message = f"{message}: {details[0]['field']}: {details[0]['message']}"

        return ErrorHandlerService._respond(400, "VALIDATION_ERROR", message, request_id, details=details)

    @staticmethod
    def handle_database_error(
        exception: SQLAlchemyError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Constraint violations are the caller's fault (400); anything else is a 500."""
        request_id = ErrorHandlerService._get_request_id(request)

        if isinstance(exception, IntegrityError):
            status_code, code, message = 400, "INTEGRITY_ERROR", "Data integrity constraint violation"
        else:
            status_code, code, message = 500, "DATABASE_ERROR", "Database operation failed"

        logger.error(
            f"{code} [{request_id}]: {exception}",
            extra=ErrorHandlerService._context(request, request_id, exception_type=type(exception).__name__),
            exc_info=True
        )
        return ErrorHandlerService._respond(status_code, code, message, request_id)

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """Framework errors such as unknown routes or disallowed methods."""
        request_id = ErrorHandlerService._get_request_id(request)
        code = f"HTTP_{exception.status_code}"

        logger.warning(
            f"{code} [{request_id}]: {exception.detail}",
            extra=ErrorHandlerService._context(request, request_id, status_code=exception.status_code)
        )
        return ErrorHandlerService._respond(
            exception.status_code,
            code,
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        request_id = ErrorHandlerService._get_request_id(request)

        logger.error(
            f"INTERNAL_SERVER_ERROR [{request_id}]: {type(exception).__name__}: {exception}",
            extra=ErrorHandlerService._context(request, request_id, exception_type=type(exception).__name__),
            exc_info=exception
        )
        return ErrorHandlerService._respond(500, "INTERNAL_SERVER_ERROR", "Server error", request_id)

    @staticmethod
    def _respond(
        status_code: int,
        code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        body = ErrorHandlerService.format_error_response(code, message, details, request_id)
        return JSONResponse(status_code=status_code, content=body, headers=headers)

    @staticmethod
    def _context(request: Optional[Request], request_id: str, **fields) -> Dict[str, Any]:
        """Structured `extra` for log records."""
        return {
            "request_id": request_id,
            "path": request.url.path if request else None,
            **fields
        }

    @staticmethod
    def _get_request_id(request: Optional[Request]) -> str:
        """Request id assigned by the middleware, or a fresh one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]
