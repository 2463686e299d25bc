"""
Graph operations using NetworkX.

This module handles:
- Building an owner's dependency graph from stored edges
- Cycle detection for proposed dependencies
- Transitive downstream (affected) task lookup
"""

from dataclasses import dataclass
from typing import Iterable

import networkx as nx
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import TaskDependency
from app.services.edge_store import EdgeStore
from app.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class DependencyValidationResult:
    """Outcome of validating a proposed dependency."""
    is_valid: bool
    error: str | None = None
    error_code: str | None = None
    circular_path: list[str] | None = None


def build_dependency_graph(dependencies: Iterable[TaskDependency]) -> nx.DiGraph:
    """
    Build a DiGraph from dependency edges, regardless of type.

    Edges go from blocker -> dependent (depends_on_task_id -> task_id),
    so graph.predecessors(t) are the tasks t depends on.
    """
    graph = nx.DiGraph()
    for dep in dependencies:
        graph.add_edge(dep.depends_on_task_id, dep.task_id)
    return graph


def find_dependency_path(graph: nx.DiGraph, start: str, target: str) -> list[str] | None:
    """
    Depth-first search from start along "depends on" links looking for target.

    Returns the path [start, ..., target] or None if target is unreachable.

    `visited` keeps every node expanded so far, so a node reachable through
    several branches (a diamond) is expanded once and never reported as a
    cycle. `on_stack` holds only the current path; meeting one of those again
    means the stored graph already contains a cycle, which is logged and
    skipped so the search still terminates.
    """
    if start == target:
        return [start]
    if start not in graph or target not in graph:
        return None

    path = [start]
    visited = {start}
    on_stack = {start}
    stack = [(start, iter(graph.predecessors(start)))]

    while stack:
        node, blockers = stack[-1]
        for blocker in blockers:
            if blocker == target:
                return path + [blocker]
            if blocker in on_stack:
                logger.warning(f"Existing dependency cycle through task {blocker}")
                continue
            if blocker not in visited:
                visited.add(blocker)
                on_stack.add(blocker)
                path.append(blocker)
                stack.append((blocker, iter(graph.predecessors(blocker))))
                break
        else:
            stack.pop()
            on_stack.discard(node)
            path.pop()

    return None


def check_dependency(
    dependencies: Iterable[TaskDependency],
    task_id: str,
    depends_on_task_id: str,
) -> DependencyValidationResult:
    """
    Decide whether "task_id depends on depends_on_task_id" may be added
    to the given edge set.
    """
    if task_id == depends_on_task_id:
        return DependencyValidationResult(
            is_valid=False,
            error="A task cannot depend on itself",
            error_code="self_dependency",
        )

    graph = build_dependency_graph(dependencies)

    # If the blocker already (transitively) depends on the task,
    # the new edge closes the loop
    path = find_dependency_path(graph, depends_on_task_id, task_id)
    if path is not None:
        return DependencyValidationResult(
            is_valid=False,
            error="This dependency would create a circular dependency",
            error_code="cycle_detected",
            circular_path=[task_id] + path,
        )

    return DependencyValidationResult(is_valid=True)


async def validate_dependency(
    session: AsyncSession,
    task_id: str,
    depends_on_task_id: str,
    owner_id: str,
) -> DependencyValidationResult:
    """Validate a proposed dependency against the owner's current edges."""
    if task_id == depends_on_task_id:
        return check_dependency([], task_id, depends_on_task_id)

    dependencies = await EdgeStore(session, owner_id).list_all()
    logger.debug(
        f"Validating {task_id} -> {depends_on_task_id} against {len(dependencies)} edges"
    )
    return check_dependency(dependencies, task_id, depends_on_task_id)


async def get_affected_tasks(
    session: AsyncSession,
    task_id: str,
    owner_id: str,
) -> list[str]:
    """
    All task IDs downstream of task_id (tasks that transitively depend on it).
    """
    dependencies = await EdgeStore(session, owner_id).list_all()
    graph = build_dependency_graph(dependencies)

    if task_id not in graph:
        return []

    return sorted(nx.descendants(graph, task_id))
