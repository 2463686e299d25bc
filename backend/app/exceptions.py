"""
Structured exceptions and error responses for Linchpin.

Every error raised by the dependency engine derives from LinchpinException
and carries a machine-readable code, an HTTP status and a human-readable
message. The FastAPI handler below renders them as:

    {"error": "<code>", "message": "<text>", "details": [...] | null}
"""

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorDetail(BaseModel):
    """Detail of a single error."""
    loc: Optional[List[str]] = None
    msg: str
    type: str
    circular_path: Optional[List[str]] = None


class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "cycle_detected")
    message: str
    details: Optional[List[ErrorDetail]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class LinchpinException(Exception):
    """Base exception for all Linchpin errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(LinchpinException):
    """Resource not found (or not visible to the calling owner)."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class SelfDependencyError(LinchpinException):
    """Task cannot depend on itself."""

    def __init__(self, task_id: str):
        super().__init__(
            message="A task cannot depend on itself",
            error_code="self_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body", "depends_on_task_id"],
                "msg": f"Task {task_id} cannot depend on itself",
                "type": "self_dependency",
            }],
        )
        self.task_id = task_id


class CycleDetectedError(LinchpinException):
    """Adding a dependency would create a cycle."""

    def __init__(self, task_id: str, depends_on_task_id: str, circular_path: List[str]):
        super().__init__(
            message="This dependency would create a circular dependency",
            error_code="cycle_detected",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body"],
                "msg": f"Task {task_id} depending on {depends_on_task_id} would create a cycle: "
                       + " -> ".join(circular_path),
                "type": "cycle_error",
                "circular_path": circular_path,
            }],
        )
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        self.circular_path = circular_path


class DuplicateDependencyError(LinchpinException):
    """Dependency between the same pair of tasks already exists."""

    def __init__(self, task_id: str, depends_on_task_id: str):
        super().__init__(
            message="This dependency already exists",
            error_code="duplicate_dependency",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id


class ValidationError(LinchpinException):
    """Request validation error."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=422,
            details=details,
        )


class ScheduleCycleError(LinchpinException):
    """Stored dependencies of a project contain a cycle, so no schedule exists."""

    def __init__(self, project_id: str, task_ids: List[str]):
        super().__init__(
            message=f"Dependencies in project {project_id} contain a cycle",
            error_code="schedule_cycle",
            status_code=status.HTTP_409_CONFLICT,
            details=[{
                "loc": ["path", "project_id"],
                "msg": "Tasks left unscheduled: " + ", ".join(task_ids),
                "type": "cycle_error",
            }],
        )
        self.project_id = project_id
        self.task_ids = task_ids


# =============================================================================
# Exception Handlers
# =============================================================================

async def linchpin_exception_handler(request: Request, exc: LinchpinException) -> JSONResponse:
    """Handle LinchpinException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LinchpinException, linchpin_exception_handler)
