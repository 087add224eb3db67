"""
ApprovalKernel -- the boundary every caller goes through.

Responsibility:
    Exposes one method per operation of the approval core and owns, for
    each call, the unit of work (one ``session_scope``) and the translation
    of failures into the typed error taxonomy.

Architecture position:
    Kernel > Boundary.  Composes services (writes) and selectors (reads).
    The transport layer above (HTTP, CLI, ...) is not part of this package.

Invariants enforced:
    - One transaction per call.  Any exception rolls back every write of
      the call: application, detail, counter increment, task, history.
    - Every log line of a call carries the same correlation_id: the one the
      caller already bound, otherwise a fresh one per call.
    - Domain errors (ApprovalKernelError) reach the caller unchanged and
      are logged as ``operation_rejected``.
    - Any other exception is logged with its traceback as
      ``operation_failed`` and replaced by UnexpectedError, whose message
      carries no internal detail.
"""

from collections.abc import Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from approval_kernel.config import KernelSettings
from approval_kernel.db.engine import get_session_factory, init_engine_from_url, session_scope
from approval_kernel.domain.application import AppType, ApplicationStatus
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.domain.dtos import (
    ApplicationDetail,
    ApplicationSummary,
    ApplicationView,
    ApproverDashboard,
    ApproverOption,
    HistoryFilter,
    HistoryView,
    LeaveRequest,
    MonthlyStat,
    Page,
    ReimburseRequest,
    TaskView,
)
from approval_kernel.exceptions import ApprovalKernelError, UnexpectedError
from approval_kernel.logging_config import LogContext, configure_logging, get_logger
from approval_kernel.selectors.application_selector import ApplicationSelector
from approval_kernel.selectors.approver_selector import ApproverSelector
from approval_kernel.selectors.summary_selector import SummarySelector
from approval_kernel.selectors.task_selector import TaskSelector
from approval_kernel.services.application_lifecycle import ApplicationLifecycle
from approval_kernel.services.decision_service import DecisionService
from approval_kernel.services.task_router import TaskRouter

logger = get_logger("kernel")


class ApprovalKernel:
    """
    Facade over the approval core.

    Args:
        session_factory: Zero-argument callable returning a new Session.
        settings: Kernel settings; defaults to ``KernelSettings()``.
        clock: Time source; defaults to the system clock.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: KernelSettings | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._settings = settings or KernelSettings()
        self._clock = clock or SystemClock()

    @classmethod
    def from_settings(cls, settings: KernelSettings, clock: Clock | None = None) -> "ApprovalKernel":
        """Configure logging and the engine from ``settings`` and build a kernel."""
        configure_logging(level=settings.log_level)
        init_engine_from_url(settings.database_url)
        return cls(get_session_factory(), settings=settings, clock=clock)

    @property
    def settings(self) -> KernelSettings:
        return self._settings

    @contextmanager
    def _unit_of_work(self, operation: str, actor_id: UUID | None = None, **context) -> Generator[Session, None, None]:
        correlation_id = LogContext.get("correlation_id") or uuid4().hex
        with LogContext.bind(
            correlation_id=correlation_id, operation=operation, actor_id=actor_id, **context,
        ):
            try:
                with session_scope(self._session_factory) as session:
                    yield session
            except ApprovalKernelError as exc:
                logger.warning(
                    "operation_rejected",
                    extra={
                        "error_kind": exc.kind,
                        "error_code": exc.code,
                        "error_message": exc.message,
                    },
                )
                raise
            except Exception as exc:
                logger.error(
                    "operation_failed",
                    exc_info=True,
                    extra={"error_type": type(exc).__name__},
                )
                raise UnexpectedError(operation) from exc

    def _lifecycle(self, session: Session) -> ApplicationLifecycle:
        return ApplicationLifecycle(
            session,
            settings=self._settings,
            clock=self._clock,
            task_router=TaskRouter(session, self._clock),
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def create_leave(self, request: LeaveRequest, user_id: UUID) -> UUID:
        with self._unit_of_work("create_leave", actor_id=user_id) as session:
            return self._lifecycle(session).create_leave_application(request, user_id)

    def create_reimburse(self, request: ReimburseRequest, user_id: UUID) -> UUID:
        with self._unit_of_work("create_reimburse", actor_id=user_id) as session:
            return self._lifecycle(session).create_reimburse_application(request, user_id)

    def withdraw(self, app_id: UUID, user_id: UUID) -> None:
        with self._unit_of_work("withdraw", actor_id=user_id, app_id=app_id) as session:
            self._lifecycle(session).withdraw_application(app_id, user_id)

    def decide(
        self,
        task_id: UUID,
        approver_id: UUID,
        action: int,
        comment: str | None = None,
    ) -> UUID:
        with self._unit_of_work("decide", actor_id=approver_id, task_id=task_id) as session:
            service = DecisionService(
                session,
                clock=self._clock,
                task_router=TaskRouter(session, self._clock),
            )
            return service.decide(task_id, approver_id, action, comment)

    # =========================================================================
    # Reads
    # =========================================================================

    def list_my_applications(
        self,
        user_id: UUID,
        page: int | None = 1,
        size: int | None = None,
        app_type: AppType | str | None = None,
        status: ApplicationStatus | int | None = None,
    ) -> Page[ApplicationView]:
        with self._unit_of_work("list_my_applications", actor_id=user_id) as session:
            return ApplicationSelector(session, self._settings).list_my_applications(
                user_id, page, size, app_type, status,
            )

    def list_my_history(
        self,
        user_id: UUID,
        page: int | None = 1,
        size: int | None = None,
        filters: HistoryFilter | None = None,
    ) -> Page[HistoryView]:
        with self._unit_of_work("list_my_history", actor_id=user_id) as session:
            return ApplicationSelector(session, self._settings).list_my_history(
                user_id, page, size, filters,
            )

    def get_application_detail(self, app_id: UUID) -> ApplicationDetail:
        with self._unit_of_work("get_application_detail", app_id=app_id) as session:
            return ApplicationSelector(session, self._settings).get_application_detail(app_id)

    def get_my_summary(self, user_id: UUID) -> ApplicationSummary:
        with self._unit_of_work("get_my_summary", actor_id=user_id) as session:
            return SummarySelector(session, self._settings).get_my_summary(user_id)

    def get_dept_approvers(self, user_id: UUID, dept_id: UUID | None = None) -> list[ApproverOption]:
        with self._unit_of_work("get_dept_approvers", actor_id=user_id) as session:
            return ApproverSelector(session, self._settings).get_dept_approvers(user_id, dept_id)

    def list_todo_tasks(
        self, approver_id: UUID, page: int | None = 1, size: int | None = None,
    ) -> Page[TaskView]:
        with self._unit_of_work("list_todo_tasks", actor_id=approver_id) as session:
            return TaskSelector(session, self._settings).list_todo_tasks(approver_id, page, size)

    def list_done_tasks(
        self, approver_id: UUID, page: int | None = 1, size: int | None = None,
    ) -> Page[TaskView]:
        with self._unit_of_work("list_done_tasks", actor_id=approver_id) as session:
            return TaskSelector(session, self._settings).list_done_tasks(approver_id, page, size)

    def get_approver_dashboard(
        self, approver_id: UUID, year: int | None = None, month: int | None = None,
    ) -> ApproverDashboard:
        """Dashboard for ``year``/``month``; either defaults to the current one."""
        today = self._local_now()
        with self._unit_of_work("get_approver_dashboard", actor_id=approver_id) as session:
            return SummarySelector(session, self._settings).get_approver_dashboard(
                approver_id,
                year if year is not None else today.year,
                month if month is not None else today.month,
            )

    def get_approver_monthly_stats(
        self, approver_id: UUID, year: int | None = None,
    ) -> tuple[MonthlyStat, ...]:
        year = year if year is not None else self._local_now().year
        with self._unit_of_work("get_approver_monthly_stats", actor_id=approver_id) as session:
            return SummarySelector(session, self._settings).get_approver_monthly_stats(
                approver_id, year,
            )

    def _local_now(self) -> datetime:
        return self._clock.now().astimezone(self._settings.tzinfo)
