"""
DecisionService -- the approver's approve/reject path.

Responsibility:
    Records one decision on an open task:

        task lookup -> assignee check -> status transition
        -> close task -> HistoryLedger.append

Architecture position:
    Kernel > Services.  Flush-only; ApprovalKernel owns the transaction, so
    the status change, the closed task and the history entry commit
    together or not at all.

Invariants enforced:
    - Only the task's assignee may decide it.
    - A task is decided at most once.
    - Only PENDING applications can be approved or rejected.

Failure modes:
    - TaskNotFoundError, NotAssigneeError, TaskAlreadyClosedError,
      InvalidRequestError (unknown action), InvalidStatusTransitionError.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from approval_kernel.domain.application import ApprovalAction, TaskStatus, can_transition
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.exceptions import (
    ApplicationNotFoundError,
    InvalidRequestError,
    InvalidStatusTransitionError,
    NotAssigneeError,
    TaskAlreadyClosedError,
    TaskNotFoundError,
)
from approval_kernel.logging_config import get_logger
from approval_kernel.models.application import Application
from approval_kernel.models.task import Task
from approval_kernel.services.base import BaseService
from approval_kernel.services.history_ledger import HistoryLedger
from approval_kernel.services.task_router import TaskRouter

logger = get_logger("services.decision")


class DecisionService(BaseService):

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        task_router: TaskRouter | None = None,
        ledger: HistoryLedger | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._task_router = task_router or TaskRouter(session, self._clock)
        self._ledger = ledger or HistoryLedger(session, self._clock)

    def decide(
        self,
        task_id: UUID,
        approver_id: UUID,
        action: int,
        comment: str | None = None,
    ) -> UUID:
        """
        Approve or reject the application behind ``task_id``.

        Returns:
            The application id.
        """
        try:
            decision = ApprovalAction(action)
        except ValueError as exc:
            raise InvalidRequestError("action", f"unknown action {action!r}") from exc

        task = self.session.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(str(task_id))
        if task.assignee_id != approver_id:
            raise NotAssigneeError(str(task_id), str(approver_id))
        if task.status != TaskStatus.OPEN:
            raise TaskAlreadyClosedError(str(task_id))

        application = self.session.get(Application, task.app_id)
        if application is None:
            raise ApplicationNotFoundError(str(task.app_id))
        new_status = decision.resulting_status
        if not can_transition(application.status, new_status):
            raise InvalidStatusTransitionError(
                str(application.id), application.status, new_status,
            )

        now = self._clock.now()
        application.status = new_status
        application.finish_time = now
        self._task_router.close_task(task, decision, comment, now)
        self._ledger.append(
            app_id=application.id,
            approver_id=approver_id,
            approver_name=task.assignee_name,
            action=decision,
            comment=comment,
            node_name=task.node_name,
        )

        logger.info(
            "decision_recorded",
            extra={
                "app_id": application.id,
                "task_id": task_id,
                "approver_id": approver_id,
                "action": int(decision),
                "new_status": int(new_status),
            },
        )
        return application.id
