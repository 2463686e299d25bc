from pydantic import BaseModel


class CriticalPathNodeRead(BaseModel):
    """CPM timings for one task, in abstract time units from project start."""
    task_id: str
    title: str
    duration: int
    earliest_start: int
    earliest_finish: int
    latest_start: int
    latest_finish: int
    slack: int
    is_critical: bool

    model_config = {"from_attributes": True}


class ProjectScheduleRead(BaseModel):
    """Full CPM analysis of a project."""
    project_id: str
    project_end: int
    nodes: list[CriticalPathNodeRead]
    critical_path_task_ids: list[str]

    model_config = {"from_attributes": True}
