# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Following the principle: "Errors should tell HOW to fix, not just WHAT failed."
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from lib.utils import ApplicationError


class KanbanException(Exception):
    """
    Base exception for the Kanban API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "KANBAN_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Not Found Exceptions
# =============================================================================

class BoardNotFoundError(KanbanException):
    """Raised when a board ID doesn't exist."""

    def __init__(self, board_id: str):
        super().__init__(
            message=f"Board not found: {board_id}",
            code="BOARD_NOT_FOUND",
            status_code=404,
            suggestion="Check that the board_id is correct",
            details={"board_id": board_id}
        )


class ColumnNotFoundError(KanbanException):
    """Raised when a column ID doesn't exist."""

    def __init__(self, column_id: str):
        super().__init__(
            message=f"Column not found: {column_id}",
            code="COLUMN_NOT_FOUND",
            status_code=404,
            suggestion="Check that the column_id is correct and the column wasn't deleted",
            details={"column_id": column_id}
        )


class TaskNotFoundError(KanbanException):
    """Raised when a task ID doesn't exist."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            status_code=404,
            suggestion="Check that the task_id is correct and the task wasn't deleted",
            details={"task_id": task_id}
        )


# =============================================================================
# Concurrency Exceptions
# =============================================================================

class VersionConflictError(KanbanException):
    """Raised when an update carries a stale version number."""

    def __init__(self, item_id: str, expected: int, actual: int):
        super().__init__(
            message=f"Version conflict on {item_id}: expected {expected}, found {actual}",
            code="VERSION_CONFLICT",
            status_code=409,
            suggestion="Re-fetch the current order and recompute the position before retrying",
            details={"item_id": item_id, "expected_version": expected, "actual_version": actual}
        )


class DuplicatePositionError(KanbanException):
    """Raised when an explicit position is already held by a sibling."""

    def __init__(self, position: str, holder_id: str):
        super().__init__(
            message=f"Position {position!r} is already used by {holder_id}",
            code="DUPLICATE_POSITION",
            status_code=409,
            suggestion="Omit the position to append, or mint a key between the intended neighbours",
            details={"position": position, "item_id": holder_id}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

# HTTP status for ordering errors raised below the API layer
APPLICATION_ERROR_STATUS: dict[str, int] = {
    "INVALID_RANGE": 400,
    "INVALID_ORDER_KEY": 400,
    "INVALID_INDEX": 400,
    "ITEM_NOT_FOUND": 404,
    "CAPACITY_EXCEEDED": 422,
}


async def kanban_exception_handler(
    request: Request,
    exc: KanbanException
) -> JSONResponse:
    """
    Convert KanbanException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def application_error_handler(
    request: Request,
    exc: ApplicationError
) -> JSONResponse:
    """
    Convert ordering errors (InvalidRangeError, CapacityError, ...) to JSON.

    Uses the same response shape as KanbanException.
    """
    content: dict[str, Any] = {
        "detail": exc.message,
        "code": exc.code,
    }
    if exc.suggestion:
        content["suggestion"] = exc.suggestion
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(
        status_code=APPLICATION_ERROR_STATUS.get(exc.code, 400),
        content=content
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
