"""
Request validation middleware.
Assigns request ids, enforces the request size limit and logs each request.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from marketplace.services.error_handler import ErrorHandlerService
from marketplace.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class ValidationMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request validation and preprocessing.
    Handles request ids, size limits, content types and request logging.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 10 * 1024 * 1024,  # 10MB
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request through validation middleware.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)
            self._validate_content_type(request)
        except BadRequestError as exc:
            return ErrorHandlerService.handle_api_exception(exc, request)

        if self.enable_request_logging:
            self._log_request(request, request_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            return ErrorHandlerService.handle_unexpected_error(exc, request)

        if self.enable_request_logging:
            self._log_response(request, response, request_id, time.time() - start_time)

        response.headers["X-Request-ID"] = request_id
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Validate request content length.

        Raises:
            BadRequestError: If request size exceeds limit
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise BadRequestError(
                f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
            )

    def _validate_content_type(self, request: Request) -> None:
        """
        Bodies sent to the API must be JSON or multipart form data.

        Raises:
            BadRequestError: If the content type is not supported
        """
        if request.method not in ("POST", "PUT", "PATCH"):
            return

        content_type = request.headers.get("content-type", "")
        if not content_type or not request.url.path.startswith("/api/"):
            return

        if content_type.startswith(("application/json", "multipart/form-data")):
            return

        raise BadRequestError(
            f"Unsupported content type '{content_type}'. Expected 'application/json'"
        )

    def _get_client_ip(self, request: Request) -> str:
        """Client address, preferring proxy headers."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"

    def _log_request(self, request: Request, request_id: str) -> None:
        logger.info(
            f"Request [{request_id}]: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "query_params": str(request.query_params),
                "client_ip": self._get_client_ip(request),
                "user_agent": request.headers.get("user-agent", "unknown")
            }
        )

    def _log_response(
        self,
        request: Request,
        response: Response,
        request_id: str,
        processing_time: float
    ) -> None:
        logger.info(
            f"Response [{request_id}]: {response.status_code} - {processing_time:.3f}s",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "processing_time": processing_time,
                "path": request.url.path,
                "method": request.method
            }
        )
