"""
Dependency routes for the Linchpin API.

The owner of every edge is the authenticated user; it is never read from
the request body.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_session
from app.models import TaskDependency
from app.schemas import (
    DependencyCreate,
    DependencyUpdate,
    DependencyRead,
    DependencyValidationRequest,
    DependencyValidationRead,
    DeletedDependencies,
)
from app.services import dependencies as manager
from app.services.graph import validate_dependency, get_affected_tasks, DependencyValidationResult
from app.exceptions import ErrorResponse
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/",
    response_model=DependencyRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Self or circular dependency"},
        404: {"model": ErrorResponse, "description": "Task not found"},
        409: {"model": ErrorResponse, "description": "Dependency already exists"},
    },
)
async def create_dependency(
    dep_in: DependencyCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TaskDependency:
    """
    Create a new dependency (task_id depends on depends_on_task_id).

    Performs cycle detection before creating the dependency.
    If adding this edge would create a cycle, returns 400 Bad Request
    with the circular path in the error details.
    """
    return await manager.create_dependency(session, dep_in, user.uid)


@router.post("/validate", response_model=DependencyValidationRead)
async def validate_proposed_dependency(
    proposal: DependencyValidationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DependencyValidationResult:
    """Check whether a dependency could be created, without creating it."""
    return await validate_dependency(
        session, proposal.task_id, proposal.depends_on_task_id, user.uid
    )


@router.get("/", response_model=list[DependencyRead])
async def list_dependencies(
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[TaskDependency]:
    """List every dependency owned by the current user."""
    dependencies = await manager.get_all_dependencies(session, user.uid)
    logger.debug(f"Listed {len(dependencies)} dependencies")
    return dependencies


@router.get("/task/{task_id}", response_model=list[DependencyRead])
async def list_task_dependencies(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[TaskDependency]:
    """Dependencies blocking a task."""
    return await manager.get_task_dependencies(session, task_id, user.uid)


@router.get("/task/{task_id}/dependents", response_model=list[DependencyRead])
async def list_dependent_tasks(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[TaskDependency]:
    """Dependencies this task blocks."""
    return await manager.get_dependent_tasks(session, task_id, user.uid)


@router.get("/task/{task_id}/affected", response_model=list[str])
async def list_affected_tasks(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[str]:
    """IDs of every task transitively downstream of this one."""
    return await get_affected_tasks(session, task_id, user.uid)


@router.patch(
    "/{dependency_id}",
    response_model=DependencyRead,
    responses={404: {"model": ErrorResponse}},
)
async def update_dependency(
    dependency_id: uuid.UUID,
    dep_in: DependencyUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TaskDependency:
    """
    Update a dependency's type, lag or notes.

    Its tasks cannot be changed; delete it and create a new one instead.
    """
    return await manager.update_dependency(session, dependency_id, dep_in, user.uid)


@router.delete(
    "/{dependency_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_dependency(
    dependency_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    """Delete a dependency."""
    await manager.delete_dependency(session, dependency_id, user.uid)


@router.delete("/task/{task_id}", response_model=DeletedDependencies)
async def delete_task_dependencies(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DeletedDependencies:
    """
    Delete every dependency touching a task.

    Called by the task service when the task itself is deleted.
    """
    deleted = await manager.delete_task_dependencies(session, task_id, user.uid)
    return DeletedDependencies(task_id=task_id, deleted=deleted)
