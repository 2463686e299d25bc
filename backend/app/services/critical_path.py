"""
Critical Path Method (CPM) implementation.

Calculates, in abstract time units from project start (t = 0):
- Forward pass: Earliest Start (ES), Earliest Finish (EF)
- Backward pass: Latest Start (LS), Latest Finish (LF)
- Slack/Float: LS - ES
- Critical Path: Tasks where slack = 0

Only finish-to-start dependencies between tasks of the same project take
part in the schedule. The other three types do not reduce to a single
forward/backward pass and are enforced by the completion gate only. Lag is
stored on edges but not applied here.
"""

from collections import deque
from dataclasses import dataclass
from typing import Iterable

import networkx as nx
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Task, TaskDependency, DependencyType
from app.services.dependencies import get_all_dependencies
from app.services.tasks import list_project_tasks
from app.exceptions import ScheduleCycleError
from app.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DURATION = 1


@dataclass
class CriticalPathNode:
    """CPM results for a single task."""
    task_id: str
    title: str
    duration: int
    # Forward pass results
    earliest_start: int
    earliest_finish: int
    # Backward pass results
    latest_start: int
    latest_finish: int
    slack: int  # 0 = critical
    is_critical: bool


@dataclass
class ProjectSchedule:
    """Complete CPM analysis for a project."""
    project_id: str
    project_end: int  # Latest earliest-finish across all tasks
    nodes: list[CriticalPathNode]
    critical_path_task_ids: list[str]

    @property
    def critical_nodes(self) -> list[CriticalPathNode]:
        return [node for node in self.nodes if node.is_critical]


def duration_or_default(estimated_duration: int | None) -> int:
    """
    Scheduling weight of a task.

    Unestimated (or non-positive) tasks count as one unit so that they
    still occupy time on the schedule.
    """
    if estimated_duration is None or estimated_duration <= 0:
        return DEFAULT_DURATION
    return estimated_duration


def build_schedule_graph(
    tasks: Iterable[Task],
    dependencies: Iterable[TaskDependency],
) -> nx.DiGraph:
    """
    Build the scheduling DiGraph for a set of project tasks.

    Nodes are task IDs (in the order given) carrying title and duration.
    Edges go from blocker -> dependent and are limited to finish-to-start
    dependencies whose tasks are both in the set.
    """
    graph = nx.DiGraph()

    for task in tasks:
        graph.add_node(
            task.id,
            title=task.title,
            duration=duration_or_default(task.estimated_duration),
        )

    for dep in dependencies:
        if dep.dependency_type != DependencyType.FINISH_TO_START:
            continue
        if dep.depends_on_task_id not in graph or dep.task_id not in graph:
            continue
        graph.add_edge(dep.depends_on_task_id, dep.task_id)

    return graph


def _topological_order(graph: nx.DiGraph, project_id: str) -> list[str]:
    """
    Kahn's algorithm. The queue is seeded with zero in-degree tasks in node
    order, so the result is deterministic for a given input order.
    """
    in_degree = {node: graph.in_degree(node) for node in graph.nodes}
    queue = deque(node for node in graph.nodes if in_degree[node] == 0)
    order = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in graph.successors(node):
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    if len(order) < graph.number_of_nodes():
        stuck = [node for node in graph.nodes if in_degree[node] > 0]
        logger.error(f"Cycle detected in project {project_id}: {stuck}")
        raise ScheduleCycleError(project_id, stuck)

    return order


def calculate_cpm(graph: nx.DiGraph, project_id: str) -> ProjectSchedule:
    """
    Calculate CPM forward and backward passes over a scheduling graph.

    Forward Pass: ES = max(EF of predecessors, 0); EF = ES + duration
    Backward Pass: LF = min(LS of successors) or project end; LS = LF - duration
    """
    if graph.number_of_nodes() == 0:
        return ProjectSchedule(
            project_id=project_id,
            project_end=0,
            nodes=[],
            critical_path_task_ids=[],
        )

    topo_order = _topological_order(graph, project_id)

    # =========================================================================
    # Forward Pass: Calculate ES and EF
    # =========================================================================
    for node_id in topo_order:
        node = graph.nodes[node_id]
        es = max((graph.nodes[p]['ef'] for p in graph.predecessors(node_id)), default=0)
        node['es'] = es
        node['ef'] = es + node['duration']

    project_end = max(graph.nodes[n]['ef'] for n in graph.nodes)

    # =========================================================================
    # Backward Pass: Calculate LF and LS
    # =========================================================================
    for node_id in reversed(topo_order):
        node = graph.nodes[node_id]
        lf = min(
            (graph.nodes[s]['ls'] for s in graph.successors(node_id)),
            default=project_end,
        )
        node['lf'] = lf
        node['ls'] = lf - node['duration']

    # =========================================================================
    # Calculate Slack and Identify Critical Path
    # =========================================================================
    nodes = []
    critical_path_ids = []

    for node_id in topo_order:
        node = graph.nodes[node_id]
        slack = node['ls'] - node['es']
        is_critical = slack == 0

        if is_critical:
            critical_path_ids.append(node_id)

        nodes.append(CriticalPathNode(
            task_id=node_id,
            title=node['title'],
            duration=node['duration'],
            earliest_start=node['es'],
            earliest_finish=node['ef'],
            latest_start=node['ls'],
            latest_finish=node['lf'],
            slack=slack,
            is_critical=is_critical,
        ))

    return ProjectSchedule(
        project_id=project_id,
        project_end=project_end,
        nodes=nodes,
        critical_path_task_ids=critical_path_ids,
    )


async def analyze_project_schedule(
    session: AsyncSession,
    project_id: str,
    owner_id: str,
) -> ProjectSchedule:
    """
    Full CPM analysis of a project: every task with its timings and slack.

    Reads the project's tasks and the owner's edges once each; the result
    is a snapshot and may miss edges written during the calculation.
    """
    tasks = await list_project_tasks(session, project_id, owner_id)
    if not tasks:
        logger.debug(f"Project {project_id} has no tasks")
        return calculate_cpm(nx.DiGraph(), project_id)

    dependencies = await get_all_dependencies(session, owner_id)
    graph = build_schedule_graph(tasks, dependencies)

    schedule = calculate_cpm(graph, project_id)
    logger.info(
        f"Scheduled project {project_id}: {len(schedule.nodes)} tasks, "
        f"end={schedule.project_end}, critical={len(schedule.critical_path_task_ids)}"
    )
    return schedule


async def calculate_critical_path(
    session: AsyncSession,
    project_id: str,
    owner_id: str,
) -> list[CriticalPathNode]:
    """Zero-slack tasks of a project, in topological order."""
    schedule = await analyze_project_schedule(session, project_id, owner_id)
    return schedule.critical_nodes
