"""
Read-only access to tasks owned by the task service.

The dependency engine needs only a task's duration estimate and completion
flag; every lookup is filtered by owner.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models import Task
from app.exceptions import NotFoundError


async def get_task(session: AsyncSession, task_id: str, owner_id: str) -> Task:
    """Fetch one task, raising NotFoundError if the owner has no such task."""
    result = await session.execute(
        select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
    )
    task = result.scalars().first()
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


async def list_project_tasks(
    session: AsyncSession,
    project_id: str,
    owner_id: str,
) -> list[Task]:
    """All of the owner's tasks in a project, in creation order."""
    result = await session.execute(
        select(Task)
        .where(Task.project_id == project_id, Task.owner_id == owner_id)
        .order_by(Task.created_at, Task.id)
    )
    return list(result.scalars().all())
