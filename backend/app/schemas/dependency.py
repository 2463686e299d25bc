import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from app.models import DependencyType


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    task_id: str = Field(min_length=1)             # The dependent (blocked) task
    depends_on_task_id: str = Field(min_length=1)  # The blocker task
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag: int | None = None
    notes: str | None = Field(default=None, max_length=1000)


class DependencyUpdate(BaseModel):
    """
    Schema for updating a dependency.

    Endpoints are not updatable; delete and recreate the dependency instead.
    """
    dependency_type: DependencyType | None = None
    lag: int | None = None
    notes: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(extra="forbid")


class DependencyRead(BaseModel):
    """Schema for reading a dependency."""
    id: uuid.UUID
    owner_id: str
    task_id: str
    depends_on_task_id: str
    dependency_type: DependencyType
    lag: int | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DependencyValidationRequest(BaseModel):
    """Schema for a dry-run validation of a proposed dependency."""
    task_id: str = Field(min_length=1)
    depends_on_task_id: str = Field(min_length=1)


class DependencyValidationRead(BaseModel):
    """Outcome of validating a proposed dependency."""
    is_valid: bool
    error: str | None = None
    error_code: str | None = None
    circular_path: list[str] | None = None

    model_config = {"from_attributes": True}


class DeletedDependencies(BaseModel):
    """Result of removing every dependency that touches a task."""
    task_id: str
    deleted: int
