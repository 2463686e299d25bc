"""
Task routes for the Linchpin API.

Task CRUD lives in the task service; this router only exposes the
completion gate.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_session
from app.schemas import TaskCompletionCheck
from app.services.completion import can_complete_task

router = APIRouter()


@router.get("/{task_id}/can-complete", response_model=TaskCompletionCheck)
async def check_can_complete(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TaskCompletionCheck:
    """Whether all finish-to-start/finish-to-finish blockers are completed."""
    allowed = await can_complete_task(session, task_id, user.uid)
    return TaskCompletionCheck(task_id=task_id, can_complete=allowed)
