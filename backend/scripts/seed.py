#!/usr/bin/env python3
"""
Seed script to generate a large dependency graph for performance testing.

Generates a wave-structured DAG for one owner and project:
- Multiple parallel tracks
- Diamond patterns (convergence points)
- A mix of dependency types (mostly finish-to-start)
- Some unestimated tasks

Every edge is created through the dependency manager, so cycle validation
runs on each insert exactly as it does behind the API.

Usage:
    python -m scripts.seed [--nodes 500] [--clear]

Options:
    --nodes N    Number of tasks to generate (default: 500)
    --clear      Clear existing data for the owner before seeding
    --owner      Owner (user id) to seed for
    --project    Project id to put the tasks in
"""

import argparse
import asyncio
import random
import time
from typing import List, Tuple

from sqlalchemy import delete, func, select

from app.database import async_session_maker, init_db
from app.exceptions import DuplicateDependencyError
from app.models import DependencyType, Task, TaskDependency
from app.schemas import DependencyCreate
from app.services import dependencies as manager
from app.services.critical_path import analyze_project_schedule


async def clear_data(owner_id: str):
    """Clear the owner's tasks and dependencies."""
    print(f"Clearing existing data for {owner_id}...")
    async with async_session_maker() as session:
        await session.execute(delete(TaskDependency).where(TaskDependency.owner_id == owner_id))
        await session.execute(delete(Task).where(Task.owner_id == owner_id))
        await session.commit()
    print("Data cleared.")


def generate_dag(
    owner_id: str,
    project_id: str,
    num_nodes: int = 500,
) -> Tuple[List[Task], List[DependencyCreate]]:
    """
    Generate a realistic DAG structure.

    Strategy:
    - Create tasks in "waves" (levels)
    - Each task depends on 1-3 tasks from the previous three waves
    - 10% of tasks are unestimated
    - 80% of edges are finish-to-start

    Returns:
        Tuple of (tasks, dependency proposals)
    """
    tasks = []
    proposals = []

    num_waves = max(10, num_nodes // 50)  # ~50 tasks per wave
    tasks_per_wave = num_nodes // num_waves

    print(f"Generating {num_nodes} tasks in {num_waves} waves...")

    tasks_by_wave = []
    seen_pairs = set()

    for wave in range(num_waves):
        wave_tasks = []
        wave_size = tasks_per_wave

        # Last wave gets remaining tasks
        if wave == num_waves - 1:
            wave_size = num_nodes - len(tasks)

        for i in range(wave_size):
            duration = None if random.random() < 0.1 else random.randint(1, 10)
            task = Task(
                id=f"{project_id}-w{wave:02d}-{i:03d}",
                owner_id=owner_id,
                project_id=project_id,
                title=f"Task W{wave:02d}-{i:03d}",
                estimated_duration=duration,
            )
            tasks.append(task)
            wave_tasks.append(task)

        tasks_by_wave.append(wave_tasks)

        if wave == 0:
            continue

        for task in wave_tasks:
            num_deps = random.randint(1, min(3, len(tasks_by_wave[wave - 1])))
            # Prefer recent waves but occasionally reach back further
            available_waves = list(range(max(0, wave - 3), wave))

            for _ in range(num_deps):
                blocker = random.choice(tasks_by_wave[random.choice(available_waves)])
                if (task.id, blocker.id) in seen_pairs:
                    continue
                seen_pairs.add((task.id, blocker.id))

                dependency_type = DependencyType.FINISH_TO_START
                if random.random() < 0.2:
                    dependency_type = random.choice(list(DependencyType))

                proposals.append(DependencyCreate(
                    task_id=task.id,
                    depends_on_task_id=blocker.id,
                    dependency_type=dependency_type,
                ))

    return tasks, proposals


async def insert_tasks(tasks: List[Task]):
    """Insert tasks in batches."""
    async with async_session_maker() as session:
        batch_size = 100
        print(f"Inserting {len(tasks)} tasks...")
        for i in range(0, len(tasks), batch_size):
            session.add_all(tasks[i:i + batch_size])
            await session.flush()
            if (i + batch_size) % 500 == 0:
                print(f"  Inserted {min(i + batch_size, len(tasks))} tasks...")
        await session.commit()


async def insert_dependencies(proposals: List[DependencyCreate], owner_id: str) -> float:
    """
    Create dependencies one by one through the manager.

    Returns the mean time per validated insert in milliseconds.
    """
    print(f"Creating {len(proposals)} dependencies...")
    start_time = time.time()

    async with async_session_maker() as session:
        for i, proposal in enumerate(proposals, start=1):
            try:
                await manager.create_dependency(session, proposal, owner_id)
            except DuplicateDependencyError:
                continue
            if i % 500 == 0:
                print(f"  Created {i} dependencies...")

    elapsed = time.time() - start_time
    return elapsed * 1000 / max(len(proposals), 1)


async def get_stats(owner_id: str, project_id: str):
    """Print statistics about the generated graph and its schedule."""
    async with async_session_maker() as session:
        num_tasks = await session.scalar(
            select(func.count()).select_from(Task).where(
                Task.owner_id == owner_id, Task.project_id == project_id
            )
        )
        num_deps = await session.scalar(
            select(func.count()).select_from(TaskDependency).where(
                TaskDependency.owner_id == owner_id
            )
        )
        num_roots = await session.scalar(
            select(func.count()).select_from(Task).where(
                Task.owner_id == owner_id,
                Task.project_id == project_id,
                Task.id.not_in(
                    select(TaskDependency.task_id).where(TaskDependency.owner_id == owner_id)
                ),
            )
        )

        start_time = time.time()
        schedule = await analyze_project_schedule(session, project_id, owner_id)
        cpm_time = time.time() - start_time

    avg_deps = num_deps / num_tasks if num_tasks else 0

    print("\n=== Graph Statistics ===")
    print(f"Tasks:         {num_tasks}")
    print(f"Dependencies:  {num_deps}")
    print(f"Root tasks:    {num_roots} (no blockers)")
    print(f"Avg deps/task: {avg_deps:.2f}")
    print(f"Project end:   {schedule.project_end}")
    print(f"Critical path: {len(schedule.critical_path_task_ids)} tasks")
    print(f"CPM time:      {cpm_time * 1000:.2f}ms")


async def main():
    parser = argparse.ArgumentParser(description="Seed the database with a large dependency graph")
    parser.add_argument("--nodes", type=int, default=500, help="Number of tasks to create")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")
    parser.add_argument("--owner", type=str, default="seed-user", help="Owner id")
    parser.add_argument("--project", type=str, default="perf-project", help="Project id")

    args = parser.parse_args()

    print("=== Linchpin Seed Script ===")

    await init_db()

    if args.clear:
        await clear_data(args.owner)

    start_time = time.time()
    tasks, proposals = generate_dag(args.owner, args.project, args.nodes)
    print(f"Generation time: {time.time() - start_time:.2f}s")

    start_time = time.time()
    await insert_tasks(tasks)
    print(f"Task insert time: {time.time() - start_time:.2f}s")

    per_insert = await insert_dependencies(proposals, args.owner)
    print(f"Mean validated insert: {per_insert:.2f}ms")

    await get_stats(args.owner, args.project)

    print("\n=== Seeding Complete ===")
    print(f"Owner: {args.owner}  Project: {args.project}")


if __name__ == "__main__":
    asyncio.run(main())
