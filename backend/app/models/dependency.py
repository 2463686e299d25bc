import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, Index
from sqlmodel import SQLModel, Field


class DependencyType(str, Enum):
    """Standard precedence relationships between two tasks."""

    FINISH_TO_START = "finish-to-start"    # Dependent can't start until blocker finishes
    START_TO_START = "start-to-start"      # Dependent can't start until blocker starts
    FINISH_TO_FINISH = "finish-to-finish"  # Dependent can't finish until blocker finishes
    START_TO_FINISH = "start-to-finish"    # Dependent can't finish until blocker starts


# Types whose blocker must be finished before the dependent may be completed
COMPLETION_GATING_TYPES = frozenset({
    DependencyType.FINISH_TO_START,
    DependencyType.FINISH_TO_FINISH,
})


class TaskDependency(SQLModel, table=True):
    """
    A directed edge in an owner's task graph.

    task_id depends on depends_on_task_id, i.e.:
    - depends_on_task_id is the blocker
    - task_id is the dependent (blocked) task

    Endpoints are immutable once created; only dependency_type, lag and
    notes may change.
    """

    __tablename__ = "task_dependencies"
    __table_args__ = (
        Index("ix_task_dependencies_owner_task", "owner_id", "task_id"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: str = Field(index=True, max_length=255)
    task_id: str = Field(index=True, max_length=255)
    depends_on_task_id: str = Field(index=True, max_length=255)
    dependency_type: DependencyType = Field(
        default=DependencyType.FINISH_TO_START,
        sa_column=Column(
            SAEnum(
                DependencyType,
                name="dependency_type",
                native_enum=False,
                length=32,
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        ),
    )
    lag: int | None = Field(default=None)  # Negative = lead time
    notes: str | None = Field(default=None, max_length=1000)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
