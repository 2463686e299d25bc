from app.models.dependency import TaskDependency, DependencyType, COMPLETION_GATING_TYPES
from app.models.task import Task

__all__ = [
    "TaskDependency",
    "DependencyType",
    "COMPLETION_GATING_TYPES",
    "Task",
]
