"""Tests for TaskRouter: open-task creation, closing and removal."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from approval_kernel.domain.application import ApprovalAction, TaskStatus
from approval_kernel.models.application import Application
from approval_kernel.models.task import Task

NOW = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def application(session, directory):
    app = Application(
        app_no="AP20240304000001",
        app_type="reimburse",
        title="Reimbursement request - Taxi",
        applicant_id=directory["bob"],
        dept_id=directory["eng"],
        status=1,
        current_node="Engineering approval",
        submit_time=NOW,
    )
    session.add(app)
    session.flush()
    return app


def _tasks(session, app_id):
    return list(session.execute(select(Task).where(Task.app_id == app_id)).scalars())


class TestCreateTask:

    def test_task_copies_node_and_assignee(self, task_router, application, directory):
        task = task_router.create_task(application, directory["alice"], "Alice Chen")

        assert task.status == TaskStatus.OPEN
        assert task.node_name == "Engineering approval"
        assert task.assignee_id == directory["alice"]
        assert task.assignee_name == "Alice Chen"
        assert task.create_time == NOW
        assert task.action is None
        assert task.finish_time is None


class TestCloseTask:

    def test_close_records_decision(self, task_router, application, directory):
        task = task_router.create_task(application, directory["alice"], "Alice Chen")
        finished = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)

        task_router.close_task(task, ApprovalAction.REJECT, "Missing receipt", finished)

        assert task.status == TaskStatus.DONE
        assert task.action == 2
        assert task.comment == "Missing receipt"
        assert task.finish_time == finished

    def test_closed_task_allows_a_new_open_task(self, session, task_router, application, directory):
        first = task_router.create_task(application, directory["alice"], "Alice Chen")
        task_router.close_task(first, ApprovalAction.APPROVE, None, NOW)
        task_router.create_task(application, directory["erin"], "Erin Wu")

        assert len(_tasks(session, application.id)) == 2


class TestRemoveOpenTasks:

    def test_removes_open_task(self, session, task_router, application, directory):
        task_router.create_task(application, directory["alice"], "Alice Chen")

        assert task_router.remove_open_tasks(application.id) == 1
        assert _tasks(session, application.id) == []

    def test_closed_tasks_are_kept(self, session, task_router, application, directory):
        closed = task_router.create_task(application, directory["alice"], "Alice Chen")
        task_router.close_task(closed, ApprovalAction.APPROVE, None, NOW)

        assert task_router.remove_open_tasks(application.id) == 0
        assert [t.id for t in _tasks(session, application.id)] == [closed.id]

    def test_nothing_to_remove(self, task_router, application):
        assert task_router.remove_open_tasks(application.id) == 0
