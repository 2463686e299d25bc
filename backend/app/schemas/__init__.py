from app.schemas.dependency import (
    DependencyCreate,
    DependencyUpdate,
    DependencyRead,
    DependencyValidationRequest,
    DependencyValidationRead,
    DeletedDependencies,
)
from app.schemas.schedule import CriticalPathNodeRead, ProjectScheduleRead
from app.schemas.task import TaskCompletionCheck

__all__ = [
    "DependencyCreate",
    "DependencyUpdate",
    "DependencyRead",
    "DependencyValidationRequest",
    "DependencyValidationRead",
    "DeletedDependencies",
    "CriticalPathNodeRead",
    "ProjectScheduleRead",
    "TaskCompletionCheck",
]
