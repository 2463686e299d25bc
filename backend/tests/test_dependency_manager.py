"""
Dependency manager and critical-path tests against the database.
"""

import uuid
from datetime import timezone

import pytest
import pytest_asyncio

from app.exceptions import (
    CycleDetectedError,
    DuplicateDependencyError,
    NotFoundError,
    SelfDependencyError,
    ValidationError,
)
from app.models import DependencyType, TaskDependency
from app.schemas import DependencyCreate, DependencyUpdate
from app.services import dependencies as manager
from app.services.critical_path import analyze_project_schedule, calculate_critical_path
from app.services.graph import get_affected_tasks
from conftest import make_task as task, OWNER_ID, OTHER_OWNER_ID, PROJECT_ID


def proposal(task_id, depends_on_task_id, **kwargs):
    return DependencyCreate(task_id=task_id, depends_on_task_id=depends_on_task_id, **kwargs)


@pytest_asyncio.fixture
async def tasks(add_tasks):
    await add_tasks(
        task("A", 2), task("B", 3), task("C", 1), task("D", 4),
        task("X", 1, owner_id=OTHER_OWNER_ID),
    )


class TestCreateDependency:

    @pytest.mark.asyncio
    async def test_created_dependency_is_listed(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        assert created.owner_id == OWNER_ID
        assert created.dependency_type == DependencyType.FINISH_TO_START

        listed = await manager.get_task_dependencies(test_session, "A", OWNER_ID)
        assert [d.id for d in listed] == [created.id]

    @pytest.mark.asyncio
    async def test_optional_fields_are_stored(self, test_session, tasks):
        created = await manager.create_dependency(
            test_session,
            proposal("A", "B", dependency_type=DependencyType.START_TO_START, lag=-2, notes="overlap"),
            OWNER_ID,
        )

        assert created.dependency_type == DependencyType.START_TO_START
        assert created.lag == -2
        assert created.notes == "overlap"

    def test_timestamps_default_to_aware_utc(self):
        dependency = TaskDependency(owner_id=OWNER_ID, task_id="A", depends_on_task_id="B")

        assert dependency.created_at.tzinfo is timezone.utc
        assert dependency.updated_at.tzinfo is timezone.utc
        assert task("A").created_at.tzinfo is timezone.utc

    @pytest.mark.asyncio
    async def test_timestamps_are_stored_and_bumped_on_update(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)
        assert created.created_at is not None

        updated = await manager.update_dependency(test_session, created.id, {"lag": 2}, OWNER_ID)

        assert updated.updated_at >= updated.created_at

    @pytest.mark.asyncio
    async def test_self_dependency_is_not_persisted(self, test_session, tasks):
        with pytest.raises(SelfDependencyError) as exc_info:
            await manager.create_dependency(test_session, proposal("A", "A"), OWNER_ID)

        assert "cannot depend on itself" in exc_info.value.message
        assert await manager.get_all_dependencies(test_session, OWNER_ID) == []

    @pytest.mark.asyncio
    async def test_cycle_is_rejected_with_path(self, test_session, tasks):
        await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)
        await manager.create_dependency(test_session, proposal("B", "C"), OWNER_ID)

        with pytest.raises(CycleDetectedError) as exc_info:
            await manager.create_dependency(test_session, proposal("C", "A"), OWNER_ID)

        assert exc_info.value.circular_path == ["C", "A", "B", "C"]
        assert exc_info.value.details[0]["circular_path"] == ["C", "A", "B", "C"]
        assert len(await manager.get_all_dependencies(test_session, OWNER_ID)) == 2

        # Depending on the end of the chain is fine
        await manager.create_dependency(test_session, proposal("A", "C"), OWNER_ID)

    @pytest.mark.asyncio
    async def test_diamond_is_accepted(self, test_session, tasks):
        for task_id, depends_on in [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]:
            await manager.create_dependency(test_session, proposal(task_id, depends_on), OWNER_ID)

        assert len(await manager.get_all_dependencies(test_session, OWNER_ID)) == 4

    @pytest.mark.asyncio
    async def test_duplicate_pair_is_rejected(self, test_session, tasks):
        await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        with pytest.raises(DuplicateDependencyError):
            await manager.create_dependency(
                test_session,
                proposal("A", "B", dependency_type=DependencyType.FINISH_TO_FINISH),
                OWNER_ID,
            )

    @pytest.mark.asyncio
    async def test_unknown_task_is_rejected(self, test_session, tasks):
        with pytest.raises(NotFoundError):
            await manager.create_dependency(test_session, proposal("A", "missing"), OWNER_ID)

    @pytest.mark.asyncio
    async def test_other_owners_task_is_not_found(self, test_session, tasks):
        with pytest.raises(NotFoundError):
            await manager.create_dependency(test_session, proposal("A", "X"), OWNER_ID)


class TestReadAndDelete:

    @pytest.mark.asyncio
    async def test_dependencies_and_dependents(self, test_session, tasks):
        await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)
        await manager.create_dependency(test_session, proposal("C", "B"), OWNER_ID)

        blockers_of_a = await manager.get_task_dependencies(test_session, "A", OWNER_ID)
        blocked_by_b = await manager.get_dependent_tasks(test_session, "B", OWNER_ID)

        assert [d.depends_on_task_id for d in blockers_of_a] == ["B"]
        assert sorted(d.task_id for d in blocked_by_b) == ["A", "C"]

    @pytest.mark.asyncio
    async def test_delete_removes_edge_from_both_views(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        await manager.delete_dependency(test_session, created.id, OWNER_ID)

        assert await manager.get_task_dependencies(test_session, "A", OWNER_ID) == []
        assert await manager.get_dependent_tasks(test_session, "B", OWNER_ID) == []

    @pytest.mark.asyncio
    async def test_delete_missing_dependency(self, test_session, tasks):
        with pytest.raises(NotFoundError):
            await manager.delete_dependency(test_session, uuid.uuid4(), OWNER_ID)

    @pytest.mark.asyncio
    async def test_other_owner_cannot_see_or_delete(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        assert await manager.get_all_dependencies(test_session, OTHER_OWNER_ID) == []
        assert await manager.get_task_dependencies(test_session, "A", OTHER_OWNER_ID) == []
        with pytest.raises(NotFoundError):
            await manager.delete_dependency(test_session, created.id, OTHER_OWNER_ID)

        assert len(await manager.get_all_dependencies(test_session, OWNER_ID)) == 1

    @pytest.mark.asyncio
    async def test_delete_task_dependencies_removes_both_directions(self, test_session, tasks):
        await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)
        await manager.create_dependency(test_session, proposal("B", "C"), OWNER_ID)
        await manager.create_dependency(test_session, proposal("A", "D"), OWNER_ID)

        deleted = await manager.delete_task_dependencies(test_session, "B", OWNER_ID)

        assert deleted == 2
        remaining = await manager.get_all_dependencies(test_session, OWNER_ID)
        assert [(d.task_id, d.depends_on_task_id) for d in remaining] == [("A", "D")]

    @pytest.mark.asyncio
    async def test_affected_tasks_are_transitive(self, test_session, tasks):
        await manager.create_dependency(test_session, proposal("B", "A"), OWNER_ID)
        await manager.create_dependency(test_session, proposal("C", "B"), OWNER_ID)

        assert await get_affected_tasks(test_session, "A", OWNER_ID) == ["B", "C"]
        assert await get_affected_tasks(test_session, "C", OWNER_ID) == []
        assert await get_affected_tasks(test_session, "nowhere", OWNER_ID) == []


class TestUpdateDependency:

    @pytest.mark.asyncio
    async def test_mutable_fields_are_updated(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        updated = await manager.update_dependency(
            test_session,
            created.id,
            DependencyUpdate(dependency_type=DependencyType.START_TO_START, lag=3),
            OWNER_ID,
        )

        assert updated.dependency_type == DependencyType.START_TO_START
        assert updated.lag == 3
        assert updated.notes is None
        assert (updated.task_id, updated.depends_on_task_id) == ("A", "B")

    @pytest.mark.asyncio
    async def test_string_dependency_type_is_accepted(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        updated = await manager.update_dependency(
            test_session, created.id, {"dependency_type": "finish-to-finish"}, OWNER_ID
        )

        assert updated.dependency_type == DependencyType.FINISH_TO_FINISH

    @pytest.mark.parametrize("field", ["task_id", "depends_on_task_id", "owner_id"])
    @pytest.mark.asyncio
    async def test_endpoints_are_immutable(self, test_session, tasks, field):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        with pytest.raises(ValidationError):
            await manager.update_dependency(test_session, created.id, {field: "C"}, OWNER_ID)

        reloaded = await manager.get_task_dependencies(test_session, "A", OWNER_ID)
        assert reloaded[0].depends_on_task_id == "B"

    @pytest.mark.asyncio
    async def test_unknown_dependency_type(self, test_session, tasks):
        created = await manager.create_dependency(test_session, proposal("A", "B"), OWNER_ID)

        with pytest.raises(ValidationError) as exc_info:
            await manager.update_dependency(
                test_session, created.id, {"dependency_type": "sideways"}, OWNER_ID
            )

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_update_missing_dependency(self, test_session, tasks):
        with pytest.raises(NotFoundError):
            await manager.update_dependency(test_session, uuid.uuid4(), {"lag": 1}, OWNER_ID)


class TestProjectCriticalPath:

    async def build_reference_network(self, session):
        for task_id, depends_on in [("B", "A"), ("C", "A"), ("D", "B"), ("D", "C")]:
            await manager.create_dependency(session, proposal(task_id, depends_on), OWNER_ID)

    @pytest.mark.asyncio
    async def test_critical_path_from_store(self, test_session, tasks):
        await self.build_reference_network(test_session)

        critical = await calculate_critical_path(test_session, PROJECT_ID, OWNER_ID)

        assert [n.task_id for n in critical] == ["A", "B", "D"]
        assert all(n.slack == 0 for n in critical)

    @pytest.mark.asyncio
    async def test_full_schedule_from_store(self, test_session, tasks):
        await self.build_reference_network(test_session)

        schedule = await analyze_project_schedule(test_session, PROJECT_ID, OWNER_ID)
        slack = {n.task_id: n.slack for n in schedule.nodes}

        assert schedule.project_end == 9
        assert slack == {"A": 0, "B": 0, "C": 2, "D": 0}

    @pytest.mark.asyncio
    async def test_recalculation_is_stable(self, test_session, tasks):
        await self.build_reference_network(test_session)

        first = await analyze_project_schedule(test_session, PROJECT_ID, OWNER_ID)
        second = await analyze_project_schedule(test_session, PROJECT_ID, OWNER_ID)

        assert first == second

    @pytest.mark.asyncio
    async def test_empty_or_foreign_project(self, test_session, tasks):
        assert await calculate_critical_path(test_session, "no-such-project", OWNER_ID) == []
        assert await calculate_critical_path(test_session, PROJECT_ID, "nobody") == []
