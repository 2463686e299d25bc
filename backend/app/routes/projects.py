"""
Project scheduling routes for the Linchpin API.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_session
from app.schemas import CriticalPathNodeRead, ProjectScheduleRead
from app.services.critical_path import (
    CriticalPathNode,
    ProjectSchedule,
    analyze_project_schedule,
    calculate_critical_path,
)
from app.exceptions import ErrorResponse

router = APIRouter()


@router.get(
    "/{project_id}/critical-path",
    response_model=list[CriticalPathNodeRead],
    responses={409: {"model": ErrorResponse, "description": "Dependencies contain a cycle"}},
)
async def get_critical_path(
    project_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[CriticalPathNode]:
    """Tasks with zero slack, i.e. the chain that determines the project end."""
    return await calculate_critical_path(session, project_id, user.uid)


@router.get(
    "/{project_id}/schedule",
    response_model=ProjectScheduleRead,
    responses={409: {"model": ErrorResponse, "description": "Dependencies contain a cycle"}},
)
async def get_schedule(
    project_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProjectSchedule:
    """Earliest/latest start and finish plus slack for every task."""
    return await analyze_project_schedule(session, project_id, user.uid)
