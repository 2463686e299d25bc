"""
Completion gate.

Answers whether a task may be marked complete given its predecessors. The
answer is advisory: the task service decides whether to enforce it.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import COMPLETION_GATING_TYPES
from app.services.dependencies import get_task_dependencies
from app.services.tasks import get_task
from app.logging_config import get_logger

logger = get_logger(__name__)


async def can_complete_task(session: AsyncSession, task_id: str, owner_id: str) -> bool:
    """
    True if every finish-to-start / finish-to-finish blocker is completed.

    Start-to-start and start-to-finish dependencies never block completion.

    Fails open: if any read fails while checking, the task is allowed to
    complete rather than blocking the user on a storage error.
    """
    try:
        dependencies = await get_task_dependencies(session, task_id, owner_id)

        for dep in dependencies:
            if dep.dependency_type not in COMPLETION_GATING_TYPES:
                continue
            blocker = await get_task(session, dep.depends_on_task_id, owner_id)
            if not blocker.completed:
                logger.debug(
                    f"Task {task_id} blocked by incomplete task {blocker.id} (dependency {dep.id})"
                )
                return False

        return True
    except Exception as e:
        logger.warning(
            f"Completion check for task {task_id} failed, allowing completion: {e}",
            exc_info=True,
        )
        return True
