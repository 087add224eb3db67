"""
Module: approval_kernel.selectors.application_selector
Responsibility: Read-only queries over a user's applications: the paginated
    "my applications" list, the history search, and the detail view.
Architecture position: Kernel > Selectors.  May import from models/, domain/
    and selectors/base.py.  Decision history is read through HistoryLedger,
    whose read methods never flush.

Invariants enforced:
    - History search is "materialize the filtered set in memory, then
      paginate".  Applicant, date range, status set and app_type are pushed
      to SQL; the detail subtype (leave_type / expense_type) and the
      latest-decision approver name are applied in Python afterwards.  The
      page total is the size of that filtered set, never the raw SQL count.
    - Without an explicit status the history search covers approved,
      rejected and withdrawn applications only.
    - The detail record of an application is always looked up through its
      app_type; a leave application never exposes a reimbursement detail.

Failure modes:
    - ApplicationNotFoundError from get_application_detail().
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from approval_kernel.config import KernelSettings

from approval_kernel.domain.application import (
    HISTORY_STATUSES,
    AppType,
    ApplicationStatus,
)
from approval_kernel.domain.dtos import (
    ApplicationDetail,
    ApplicationRecord,
    ApplicationView,
    HistoryEntryView,
    HistoryFilter,
    HistoryView,
    LeaveDetailView,
    Page,
    ReimburseDetailView,
)
from approval_kernel.exceptions import ApplicationNotFoundError
from approval_kernel.models.application import Application, detail_model_for
from approval_kernel.models.directory import User
from approval_kernel.selectors.base import BaseSelector
from approval_kernel.services.history_ledger import HistoryLedger

UNASSIGNED_DEPT_LABEL = "Unassigned"

_DETAIL_VIEWS = {
    AppType.LEAVE: LeaveDetailView,
    AppType.REIMBURSE: ReimburseDetailView,
}


class ApplicationSelector(BaseSelector):
    """Queries over applications owned by one applicant."""

    def __init__(self, session: Session, settings: KernelSettings | None = None):
        super().__init__(session, settings)
        self._history = HistoryLedger(session)

    def _applicant_labels(self, user_id: UUID) -> tuple[str, str]:
        """(real_name, dept_name) of the applicant, "" when unknown."""
        user = self.session.get(User, user_id)
        if user is None:
            return "", ""
        dept_name = self.dept_names([user.dept_id]).get(user.dept_id, "")
        return user.real_name, dept_name

    # =========================================================================
    # My applications
    # =========================================================================

    def list_my_applications(
        self,
        user_id: UUID,
        page: int | None = 1,
        size: int | None = None,
        app_type: AppType | str | None = None,
        status: ApplicationStatus | int | None = None,
    ) -> Page[ApplicationView]:
        """One page of the user's applications, newest submission first."""
        page, size = self.normalize_page(page, size)

        conditions = [Application.applicant_id == user_id]
        if app_type:
            conditions.append(Application.app_type == AppType(app_type).value)
        if status is not None:
            conditions.append(Application.status == int(status))

        total = self.session.execute(
            select(func.count()).select_from(Application).where(*conditions)
        ).scalar_one()

        apps = list(
            self.session.execute(
                select(Application)
                .where(*conditions)
                .order_by(Application.submit_time.desc(), Application.app_no.desc())
                .offset((page - 1) * size)
                .limit(size)
            ).scalars()
        )

        leave = self.leave_details(a.id for a in apps if a.app_type == AppType.LEAVE.value)
        reimburse = self.reimburse_details(
            a.id for a in apps if a.app_type == AppType.REIMBURSE.value
        )
        real_name, dept_name = self._applicant_labels(user_id)

        items = []
        for app in apps:
            leave_detail = leave.get(app.id)
            reimburse_detail = reimburse.get(app.id)
            items.append(
                ApplicationView(
                    app_id=app.id,
                    app_no=app.app_no,
                    app_type=AppType(app.app_type),
                    title=app.title,
                    applicant_name=real_name,
                    dept_name=dept_name or UNASSIGNED_DEPT_LABEL,
                    status=ApplicationStatus(app.status),
                    current_node=app.current_node,
                    submit_time=app.submit_time,
                    finish_time=app.finish_time,
                    leave_type=leave_detail.leave_type if leave_detail else None,
                    expense_type=reimburse_detail.expense_type if reimburse_detail else None,
                )
            )
        return Page(items=tuple(items), total=total, page=page, size=size)

    # =========================================================================
    # History search
    # =========================================================================

    def list_my_history(
        self,
        user_id: UUID,
        page: int | None = 1,
        size: int | None = None,
        filters: HistoryFilter | None = None,
    ) -> Page[HistoryView]:
        """
        Finished applications of the user, filtered, then paginated.

        Returns:
            Page whose ``total`` is the number of applications that passed
            every filter.
        """
        page, size = self.normalize_page(page, size)
        filters = filters or HistoryFilter()

        stmt = select(Application).where(Application.applicant_id == user_id)
        if filters.start_time is not None:
            stmt = stmt.where(Application.submit_time >= filters.start_time)
        if filters.end_time is not None:
            stmt = stmt.where(Application.submit_time <= filters.end_time)
        if filters.status is not None:
            stmt = stmt.where(Application.status == int(filters.status))
        else:
            stmt = stmt.where(Application.status.in_([int(s) for s in HISTORY_STATUSES]))
        if filters.app_type:
            stmt = stmt.where(Application.app_type == AppType(filters.app_type).value)
        stmt = stmt.order_by(Application.submit_time.desc(), Application.app_no.desc())

        apps = list(self.session.execute(stmt).scalars())
        if not apps:
            return Page(items=(), total=0, page=page, size=size)

        app_ids = [a.id for a in apps]
        leave = self.leave_details(a.id for a in apps if a.app_type == AppType.LEAVE.value)
        reimburse = self.reimburse_details(
            a.id for a in apps if a.app_type == AppType.REIMBURSE.value
        )
        latest = self._history.latest_for_many(app_ids)
        real_name, dept_name = self._applicant_labels(user_id)

        matched: list[HistoryView] = []
        for app in apps:
            leave_detail = leave.get(app.id)
            reimburse_detail = reimburse.get(app.id)

            if app.app_type == AppType.LEAVE.value and filters.leave_type is not None:
                if leave_detail is None or leave_detail.leave_type != filters.leave_type:
                    continue
            if app.app_type == AppType.REIMBURSE.value and filters.expense_type is not None:
                if reimburse_detail is None or reimburse_detail.expense_type != filters.expense_type:
                    continue

            last = latest.get(app.id)
            if filters.approver_name:
                if last is None or filters.approver_name not in (last.approver_name or ""):
                    continue

            matched.append(
                HistoryView(
                    app_id=app.id,
                    app_no=app.app_no,
                    app_type=AppType(app.app_type),
                    title=app.title,
                    status=ApplicationStatus(app.status),
                    applicant_name=real_name,
                    dept_name=dept_name,
                    current_node=app.current_node,
                    approver_name=last.approver_name if last else None,
                    action=last.action if last else None,
                    comment=last.comment if last else None,
                    leave_type=leave_detail.leave_type if leave_detail else None,
                    leave_days=leave_detail.days if leave_detail else None,
                    expense_type=reimburse_detail.expense_type if reimburse_detail else None,
                    expense_amount=reimburse_detail.amount if reimburse_detail else None,
                    submit_time=app.submit_time,
                    approve_time=last.approve_time if last else None,
                    finish_time=app.finish_time,
                )
            )

        return self.slice_page(matched, page, size)

    # =========================================================================
    # Detail
    # =========================================================================

    def get_application_detail(self, app_id: UUID) -> ApplicationDetail:
        app = self.session.get(Application, app_id)
        if app is None:
            raise ApplicationNotFoundError(str(app_id))

        app_type = AppType(app.app_type)
        detail_model = detail_model_for(app_type)
        detail_row = self.session.execute(
            select(detail_model).where(detail_model.app_id == app_id)
        ).scalar_one_or_none()
        detail = (
            _DETAIL_VIEWS[app_type].from_model(detail_row)
            if detail_row is not None
            else None
        )

        history = self._history.entries_for(app_id)

        return ApplicationDetail(
            application=ApplicationRecord.from_model(app),
            detail=detail,
            history=tuple(HistoryEntryView.from_model(h) for h in history),
        )
