"""
Dependency manager.

Creates, reads, updates and deletes dependency edges for one owner at a
time. Every new edge goes through cycle validation before it is written.
"""

import uuid
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import TaskDependency, DependencyType
from app.schemas import DependencyCreate
from app.services.edge_store import EdgeStore, MUTABLE_FIELDS
from app.services.graph import validate_dependency
from app.services.locking import owner_locks
from app.services.tasks import get_task
from app.exceptions import (
    CycleDetectedError,
    DuplicateDependencyError,
    SelfDependencyError,
    ValidationError,
)
from app.logging_config import get_logger

logger = get_logger(__name__)


async def create_dependency(
    session: AsyncSession,
    data: DependencyCreate,
    owner_id: str,
) -> TaskDependency:
    """
    Create "data.task_id depends on data.depends_on_task_id".

    Validation, the duplicate check and the insert run under the owner's
    lock and are committed before the lock is released, so a concurrent
    creation for the same owner always validates against this edge.

    Raises:
        SelfDependencyError: task_id == depends_on_task_id
        CycleDetectedError: the edge would close a cycle
        NotFoundError: either task does not exist for this owner
        DuplicateDependencyError: the pair is already linked
    """
    logger.info(f"Creating dependency: {data.task_id} depends on {data.depends_on_task_id}")
    store = EdgeStore(session, owner_id)

    async with owner_locks.hold(owner_id):
        validation = await validate_dependency(
            session, data.task_id, data.depends_on_task_id, owner_id
        )
        if not validation.is_valid:
            if validation.error_code == "self_dependency":
                logger.warning(f"Self-dependency rejected: {data.task_id}")
                raise SelfDependencyError(data.task_id)
            logger.warning(
                f"Cycle detected: {data.task_id} -> {data.depends_on_task_id} "
                f"(path: {' -> '.join(validation.circular_path)})"
            )
            raise CycleDetectedError(
                data.task_id,
                data.depends_on_task_id,
                validation.circular_path,
            )

        await get_task(session, data.task_id, owner_id)
        await get_task(session, data.depends_on_task_id, owner_id)

        if await store.find_pair(data.task_id, data.depends_on_task_id) is not None:
            logger.warning(
                f"Duplicate dependency rejected: {data.task_id} -> {data.depends_on_task_id}"
            )
            raise DuplicateDependencyError(data.task_id, data.depends_on_task_id)

        dependency = await store.create(
            task_id=data.task_id,
            depends_on_task_id=data.depends_on_task_id,
            dependency_type=data.dependency_type or DependencyType.FINISH_TO_START,
            lag=data.lag,
            notes=data.notes,
        )
        await store.commit()

    logger.info(
        f"Created dependency {dependency.id}: {dependency.task_id} depends on "
        f"{dependency.depends_on_task_id}"
    )
    return dependency


async def get_task_dependencies(
    session: AsyncSession,
    task_id: str,
    owner_id: str,
) -> list[TaskDependency]:
    """Edges where task_id is the dependent (what blocks this task)."""
    dependencies = await EdgeStore(session, owner_id).list_by_task(task_id)
    logger.debug(f"Task {task_id} has {len(dependencies)} dependencies")
    return dependencies


async def get_dependent_tasks(
    session: AsyncSession,
    task_id: str,
    owner_id: str,
) -> list[TaskDependency]:
    """Edges where task_id is the blocker (what this task blocks)."""
    dependencies = await EdgeStore(session, owner_id).list_by_depends_on(task_id)
    logger.debug(f"Task {task_id} blocks {len(dependencies)} tasks")
    return dependencies


async def get_all_dependencies(session: AsyncSession, owner_id: str) -> list[TaskDependency]:
    return await EdgeStore(session, owner_id).list_all()


def _update_values(data: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        values = data.model_dump(exclude_unset=True)
    else:
        values = dict(data)

    not_updatable = sorted(set(values) - MUTABLE_FIELDS)
    if not_updatable:
        raise ValidationError(
            "Only dependency_type, lag and notes can be updated; "
            "delete and recreate the dependency to change its tasks",
            details=[
                {"loc": ["body", field], "msg": "Field is not updatable", "type": "immutable_field"}
                for field in not_updatable
            ],
        )

    if "dependency_type" in values:
        try:
            values["dependency_type"] = DependencyType(values["dependency_type"])
        except ValueError:
            raise ValidationError(
                f"Unknown dependency type: {values['dependency_type']!r}",
                details=[{
                    "loc": ["body", "dependency_type"],
                    "msg": "Must be one of: " + ", ".join(t.value for t in DependencyType),
                    "type": "enum",
                }],
            )

    return values


async def update_dependency(
    session: AsyncSession,
    dependency_id: uuid.UUID,
    data: BaseModel | dict[str, Any],
    owner_id: str,
) -> TaskDependency:
    """
    Update dependency_type, lag and/or notes of an existing edge.

    Endpoints never change here, so no re-validation is needed.
    """
    values = _update_values(data)
    logger.info(f"Updating dependency {dependency_id}: {values}")
    return await EdgeStore(session, owner_id).update(dependency_id, values)


async def delete_dependency(
    session: AsyncSession,
    dependency_id: uuid.UUID,
    owner_id: str,
) -> None:
    logger.info(f"Deleting dependency {dependency_id}")
    await EdgeStore(session, owner_id).delete(dependency_id)


async def delete_task_dependencies(
    session: AsyncSession,
    task_id: str,
    owner_id: str,
) -> int:
    """
    Remove every edge where task_id is either endpoint.

    Called by the task service when a task is deleted; returns the number
    of edges removed.
    """
    deleted = await EdgeStore(session, owner_id).delete_by_task(task_id)
    logger.info(f"Deleted {deleted} dependencies of task {task_id}")
    return deleted
