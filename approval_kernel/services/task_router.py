"""
TaskRouter -- creates, closes and removes the open approval task.

Responsibility:
    Maintains the single open Task that points an application at its
    approver.  Creation is only ever called after ApproverValidator has
    accepted the assignee.

Architecture position:
    Kernel > Services.  Flush-only; the caller owns the transaction.

Invariants enforced:
    - At most one OPEN task per application (partial unique index on
      tasks.app_id WHERE status = 0).
    - Removal only touches OPEN tasks; closed tasks are history and stay.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.domain.application import ApprovalAction, TaskStatus
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.logging_config import get_logger
from approval_kernel.models.application import Application
from approval_kernel.models.task import Task
from approval_kernel.services.base import BaseService

logger = get_logger("services.task_router")


class TaskRouter(BaseService):
    """Open-task bookkeeping for the single-step approval flow."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def create_task(
        self,
        application: Application,
        assignee_id: UUID,
        assignee_name: str,
    ) -> Task:
        task = Task(
            app_id=application.id,
            node_name=application.current_node,
            assignee_id=assignee_id,
            assignee_name=assignee_name,
            status=TaskStatus.OPEN,
            create_time=self._clock.now(),
        )
        self.session.add(task)
        self.session.flush()

        logger.info(
            "task_created",
            extra={
                "task_id": task.id,
                "app_id": application.id,
                "assignee_id": assignee_id,
            },
        )
        return task

    def close_task(
        self,
        task: Task,
        action: ApprovalAction,
        comment: str | None,
        finished_at: datetime,
    ) -> Task:
        """Mark an open task done, keeping the decision on the row."""
        task.status = TaskStatus.DONE
        task.action = int(action)
        task.comment = comment
        task.finish_time = finished_at
        self.session.flush()
        return task

    def remove_open_tasks(self, app_id: UUID) -> int:
        """Delete the open task(s) of ``app_id``.  Returns the number removed."""
        open_tasks = list(
            self.session.execute(
                select(Task)
                .where(Task.app_id == app_id)
                .where(Task.status == TaskStatus.OPEN)
            ).scalars()
        )
        for task in open_tasks:
            self.session.delete(task)
        self.session.flush()

        logger.info(
            "open_tasks_removed",
            extra={"app_id": app_id, "removed": len(open_tasks)},
        )
        return len(open_tasks)
