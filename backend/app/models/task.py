from datetime import date, datetime, timezone
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class Task(SQLModel, table=True):
    """
    Read-only view of a task owned by the task service.

    The dependency engine only reads:
    - estimated_duration: scheduling weight (None = unestimated)
    - completed: used by the completion gate
    It never writes to this table.
    """

    __tablename__ = "tasks"

    id: str = Field(primary_key=True, max_length=255)
    owner_id: str = Field(index=True, max_length=255)
    project_id: str | None = Field(default=None, index=True, max_length=255)
    title: str = Field(default="")
    estimated_duration: int | None = Field(default=None)
    completed: bool = Field(default=False)
    start_date: date | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
