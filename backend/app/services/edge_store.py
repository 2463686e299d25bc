"""
Owner-scoped persistence for dependency edges.

An EdgeStore is bound to one owner at construction time and adds the owner
filter to every statement it issues, so callers cannot read or modify another
owner's edges through it.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models import TaskDependency, DependencyType
from app.exceptions import NotFoundError
from app.logging_config import get_logger

logger = get_logger(__name__)

MUTABLE_FIELDS = frozenset({"dependency_type", "lag", "notes"})


class EdgeStore:
    """CRUD over the task_dependencies table for a single owner."""

    def __init__(self, session: AsyncSession, owner_id: str):
        if not owner_id:
            raise ValueError("owner_id is required")
        self.session = session
        self.owner_id = owner_id

    def _select(self):
        return (
            select(TaskDependency)
            .where(TaskDependency.owner_id == self.owner_id)
            .order_by(TaskDependency.created_at, TaskDependency.id)
        )

    async def _all(self, query) -> list[TaskDependency]:
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create(
        self,
        task_id: str,
        depends_on_task_id: str,
        dependency_type: DependencyType = DependencyType.FINISH_TO_START,
        lag: int | None = None,
        notes: str | None = None,
    ) -> TaskDependency:
        dependency = TaskDependency(
            owner_id=self.owner_id,
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
            dependency_type=dependency_type,
            lag=lag,
            notes=notes,
        )
        self.session.add(dependency)
        await self.session.flush()
        await self.session.refresh(dependency)
        return dependency

    async def get(self, dependency_id: uuid.UUID) -> TaskDependency:
        result = await self.session.execute(
            select(TaskDependency).where(
                TaskDependency.id == dependency_id,
                TaskDependency.owner_id == self.owner_id,
            )
        )
        dependency = result.scalars().first()
        if dependency is None:
            raise NotFoundError("Dependency", str(dependency_id))
        return dependency

    async def list_all(self) -> list[TaskDependency]:
        return await self._all(self._select())

    async def list_by_task(self, task_id: str) -> list[TaskDependency]:
        """Edges where task_id is the dependent."""
        return await self._all(self._select().where(TaskDependency.task_id == task_id))

    async def list_by_depends_on(self, task_id: str) -> list[TaskDependency]:
        """Edges where task_id is the blocker."""
        return await self._all(self._select().where(TaskDependency.depends_on_task_id == task_id))

    async def find_pair(self, task_id: str, depends_on_task_id: str) -> TaskDependency | None:
        result = await self.session.execute(
            self._select().where(
                TaskDependency.task_id == task_id,
                TaskDependency.depends_on_task_id == depends_on_task_id,
            )
        )
        return result.scalars().first()

    async def update(self, dependency_id: uuid.UUID, values: dict[str, Any]) -> TaskDependency:
        unknown = set(values) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields are not updatable: {sorted(unknown)}")

        dependency = await self.get(dependency_id)
        for field, value in values.items():
            setattr(dependency, field, value)
        dependency.updated_at = datetime.now(timezone.utc)

        await self.session.flush()
        await self.session.refresh(dependency)
        return dependency

    async def delete(self, dependency_id: uuid.UUID) -> None:
        dependency = await self.get(dependency_id)
        await self.session.delete(dependency)
        await self.session.flush()

    async def delete_by_task(self, task_id: str) -> int:
        """Delete every edge that has task_id as either endpoint."""
        result = await self.session.execute(
            delete(TaskDependency).where(
                TaskDependency.owner_id == self.owner_id,
                or_(
                    TaskDependency.task_id == task_id,
                    TaskDependency.depends_on_task_id == task_id,
                ),
            )
        )
        await self.session.flush()
        return result.rowcount or 0

    async def commit(self) -> None:
        await self.session.commit()
