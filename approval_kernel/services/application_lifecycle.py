"""
ApplicationLifecycle -- creation and withdrawal of applications.

Responsibility:
    Orchestrates the write side of an application's life before a decision:

        applicant lookup -> ApproverValidator -> SequenceService (app_no)
        -> Application + detail record -> TaskRouter (open task)

    and withdrawal (pending -> withdrawn, open task removed).

Architecture position:
    Kernel > Services.  Flush-only.  The caller (ApprovalKernel) wraps each
    operation in one transaction, so creation is all-or-nothing: any
    failure after the first flush rolls back application, detail, counter
    increment and task together.

Invariants enforced:
    - Every business rule is checked before the first write.
    - Exactly one detail record is written, chosen by app_type through
      ``detail_model_for``.
    - A pending application has exactly one open task.
    - Only the applicant can withdraw, and only from PENDING.

Failure modes:
    - UserNotFoundError: applicant does not exist.
    - MissingDepartmentError: applicant has no department.
    - Approver* errors from ApproverValidator.
    - ApplicationNotFoundError / NotApplicantError /
      InvalidStatusTransitionError on withdrawal.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from approval_kernel.config import KernelSettings
from approval_kernel.domain.application import (
    AppType,
    ApplicationStatus,
    can_transition,
)
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.domain.dtos import LeaveRequest, ReimburseRequest, UserRecord
from approval_kernel.exceptions import (
    ApplicationNotFoundError,
    InvalidStatusTransitionError,
    MissingDepartmentError,
    NotApplicantError,
    UserNotFoundError,
)
from approval_kernel.logging_config import get_logger
from approval_kernel.models.application import Application, detail_model_for
from approval_kernel.services.approver_validator import ApproverValidator
from approval_kernel.services.base import BaseService
from approval_kernel.services.directory_service import DirectoryService
from approval_kernel.services.sequence_service import SequenceService
from approval_kernel.services.task_router import TaskRouter

logger = get_logger("services.application_lifecycle")

_TITLE_PREFIXES = {
    AppType.LEAVE: "Leave request - ",
    AppType.REIMBURSE: "Reimbursement request - ",
}


def build_title(app_type: AppType, reason: str, max_reason_length: int = 10) -> str:
    """``<type prefix><reason>``, reason cut to ``max_reason_length`` plus "..."."""
    if len(reason) > max_reason_length:
        reason = reason[:max_reason_length] + "..."
    return _TITLE_PREFIXES[app_type] + reason


class ApplicationLifecycle(BaseService):
    """
    Creates and withdraws applications.

    Collaborators default to instances bound to the same session; tests
    inject replacements (e.g. a failing TaskRouter to prove rollback).
    """

    def __init__(
        self,
        session: Session,
        settings: KernelSettings | None = None,
        clock: Clock | None = None,
        directory: DirectoryService | None = None,
        validator: ApproverValidator | None = None,
        sequences: SequenceService | None = None,
        task_router: TaskRouter | None = None,
    ):
        super().__init__(session)
        self._settings = settings or KernelSettings()
        self._clock = clock or SystemClock()
        self._directory = directory or DirectoryService(session)
        self._validator = validator or ApproverValidator(
            self._directory, self._settings.approval_permission_code,
        )
        self._sequences = sequences or SequenceService(session)
        self._task_router = task_router or TaskRouter(session, self._clock)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_leave_application(self, request: LeaveRequest, user_id: UUID) -> UUID:
        detail = {
            "leave_type": request.leave_type,
            "start_time": request.start_time,
            "end_time": request.end_time,
            "days": request.days,
            "reason": request.reason,
            "attachment": request.attachment,
        }
        return self._create(
            AppType.LEAVE, user_id, request.approver_id, request.reason, detail,
        )

    def create_reimburse_application(self, request: ReimburseRequest, user_id: UUID) -> UUID:
        detail = {
            "expense_type": request.expense_type,
            "amount": request.amount,
            "reason": request.reason,
            "invoice_attachment": request.invoice_attachment,
            "occur_date": request.occur_date,
        }
        return self._create(
            AppType.REIMBURSE, user_id, request.approver_id, request.reason, detail,
        )

    def _create(
        self,
        app_type: AppType,
        user_id: UUID,
        approver_id: UUID | None,
        reason: str,
        detail_values: dict,
    ) -> UUID:
        applicant = self._require_applicant(user_id)
        approver = self._validator.validate(applicant, approver_id)
        current_node = self._resolve_node(applicant)

        now = self._clock.now()
        business_date = now.astimezone(self._settings.tzinfo).date()
        app_no = self._sequences.next_app_no(business_date, self._settings.app_no_prefix)

        application = Application(
            app_no=app_no,
            app_type=app_type.value,
            title=build_title(app_type, reason, self._settings.title_reason_length),
            applicant_id=applicant.user_id,
            dept_id=applicant.dept_id,
            status=ApplicationStatus.PENDING,
            current_node=current_node,
            submit_time=now,
        )
        self.session.add(application)
        self.session.flush()

        detail_model = detail_model_for(app_type)
        self.session.add(detail_model(app_id=application.id, **detail_values))
        self.session.flush()

        self._task_router.create_task(application, approver.user_id, approver.real_name)

        logger.info(
            "application_created",
            extra={
                "app_id": application.id,
                "app_no": app_no,
                "app_type": app_type.value,
                "applicant_id": applicant.user_id,
                "approver_id": approver.user_id,
            },
        )
        return application.id

    def _require_applicant(self, user_id: UUID) -> UserRecord:
        applicant = self._directory.get_user_by_id(user_id)
        if applicant is None:
            raise UserNotFoundError(str(user_id))
        if applicant.dept_id is None:
            raise MissingDepartmentError(str(user_id))
        return applicant

    def _resolve_node(self, applicant: UserRecord) -> str:
        dept = self._directory.get_dept_by_id(applicant.dept_id)
        if dept is None:
            return self._settings.fallback_node_label
        return dept.dept_name + self._settings.node_label_suffix

    # =========================================================================
    # Withdrawal
    # =========================================================================

    def withdraw_application(self, app_id: UUID, user_id: UUID) -> None:
        application = self.session.get(Application, app_id)
        if application is None:
            raise ApplicationNotFoundError(str(app_id))
        if application.applicant_id != user_id:
            raise NotApplicantError(str(app_id), str(user_id))
        if not can_transition(application.status, ApplicationStatus.WITHDRAWN):
            raise InvalidStatusTransitionError(
                str(app_id), application.status, ApplicationStatus.WITHDRAWN,
            )

        application.status = ApplicationStatus.WITHDRAWN
        self.session.flush()
        removed = self._task_router.remove_open_tasks(app_id)

        logger.info(
            "application_withdrawn",
            extra={"app_id": app_id, "user_id": user_id, "tasks_removed": removed},
        )
