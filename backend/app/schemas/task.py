from pydantic import BaseModel


class TaskCompletionCheck(BaseModel):
    """
    Advisory answer from the completion gate.

    The caller decides whether to enforce it.
    """
    task_id: str
    can_complete: bool
