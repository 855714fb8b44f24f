"""
Custom exceptions and handlers for consistent API error responses.

Every kitchen workflow operation either returns a success payload or raises
exactly one of the typed errors below.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base API error with consistent structure"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return str(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error_code": self.error_code}


class NotFoundError(APIError):
    """Resource not found error"""

    def __init__(
        self, detail: str = "Resource not found", error_code: str = "NOT_FOUND"
    ):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND, detail=detail, error_code=error_code
        )


class ValidationError(APIError):
    """Validation error"""

    def __init__(
        self, detail: str = "Validation failed", error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
        )


class RefundWindowExceededError(ValidationError):
    """Refund requested after the configured refund window"""

    def __init__(self, order_id: int, window_days: int, days_elapsed: float):
        super().__init__(
            detail=(
                f"Refund not allowed for order {order_id}: "
                f"{days_elapsed:.1f} days elapsed, window is {window_days} days"
            ),
            error_code="REFUND_WINDOW_EXCEEDED",
        )
        self.order_id = order_id
        self.window_days = window_days
        self.days_elapsed = days_elapsed


class InvalidTransitionError(APIError):
    """Order state machine precondition violated"""

    def __init__(
        self,
        order_id: int,
        current_state: str,
        attempted: str,
        target_state: Optional[str] = None,
    ):
        target = f" -> {target_state}" if target_state else ""
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Cannot {attempted} order {order_id} in state "
                f"'{current_state}'{target}"
            ),
            error_code="INVALID_TRANSITION",
        )
        self.order_id = order_id
        self.current_state = current_state
        self.attempted = attempted
        self.target_state = target_state

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "current_state": self.current_state,
                "attempted": self.attempted,
                "target_state": self.target_state,
            }
        )
        return data


class UpstreamUnavailableError(APIError):
    """A collaborator (order store, catalog, seating) failed"""

    def __init__(self, operation: str, order_id: Optional[int] = None,
                 reason: Optional[str] = None):
        subject = f" for order {order_id}" if order_id is not None else ""
        detail = f"{operation} failed{subject}: upstream unavailable"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="UPSTREAM_UNAVAILABLE",
        )
        self.operation = operation
        self.order_id = order_id


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} at {request.url.path}: {exc.detail}")
    content = exc.to_dict()
    content["path"] = str(request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
    )


async def handle_value_error(request: Request, exc: ValueError) -> JSONResponse:
    """Convert ValueError to consistent API response"""
    logger.warning(f"ValueError at {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": str(exc),
            "error_code": "VALIDATION_ERROR",
            "path": str(request.url.path),
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(APIError, handle_api_error)
