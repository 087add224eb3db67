"""
Module: approval_kernel.selectors.summary_selector
Responsibility: Statistics derived from stored applications and tasks: the
    applicant's personal summary and the approver's monthly dashboard.
Architecture position: Kernel > Selectors.  May import from models/, domain/,
    db/types.py and selectors/base.py.

Invariants enforced:
    - Nothing is stored; every figure is recomputed from applications,
      detail records and tasks at query time.
    - Summary status counts partition total_count exactly.
    - approval_rate = approved * 100 / total, ROUND_HALF_UP to 2 places;
      0 when total is 0.
    - Leave days and reimbursed amounts only count APPROVED applications.
    - Dashboard days and months are taken in the configured timezone.

Failure modes:
    - UserNotFoundError when the user does not exist.
"""

import calendar
from collections import Counter
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from approval_kernel.db.types import round_half_up
from approval_kernel.domain.application import (
    AppType,
    ApplicationStatus,
    ApprovalAction,
    TaskStatus,
)
from approval_kernel.domain.dtos import (
    ApplicationSummary,
    ApproverDashboard,
    DailyStat,
    MonthlyStat,
    TypeStat,
)
from approval_kernel.exceptions import InvalidRequestError, UserNotFoundError
from approval_kernel.models.application import Application
from approval_kernel.models.directory import User
from approval_kernel.models.task import Task
from approval_kernel.selectors.base import BaseSelector


def approval_rate(approved: int, total: int) -> Decimal:
    """Percentage of approved applications, 2 places, half-up."""
    if total == 0:
        return Decimal("0")
    return round_half_up(Decimal(approved) * 100 / Decimal(total))


class SummarySelector(BaseSelector):

    def _require_user(self, user_id: UUID) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def _labels(self, user: User) -> tuple[str, str]:
        dept_name = self.dept_names([user.dept_id]).get(user.dept_id, "")
        post_name = self.post_names([user.post_id]).get(user.post_id, "")
        return dept_name, post_name

    # =========================================================================
    # Applicant summary
    # =========================================================================

    def get_my_summary(self, user_id: UUID) -> ApplicationSummary:
        user = self._require_user(user_id)

        apps = list(
            self.session.execute(
                select(Application).where(Application.applicant_id == user_id)
            ).scalars()
        )
        by_status = Counter(a.status for a in apps)
        by_type = Counter(a.app_type for a in apps)

        approved_leave = [
            a.id for a in apps
            if a.app_type == AppType.LEAVE.value and a.status == ApplicationStatus.APPROVED
        ]
        approved_reimburse = [
            a.id for a in apps
            if a.app_type == AppType.REIMBURSE.value and a.status == ApplicationStatus.APPROVED
        ]
        total_leave_days = sum(
            (d.days for d in self.leave_details(approved_leave).values() if d.days is not None),
            Decimal("0"),
        )
        total_amount = sum(
            (d.amount for d in self.reimburse_details(approved_reimburse).values()
             if d.amount is not None),
            Decimal("0"),
        )

        submit_times = [a.submit_time for a in apps if a.submit_time is not None]
        dept_name, post_name = self._labels(user)
        approved = by_status[ApplicationStatus.APPROVED]

        return ApplicationSummary(
            user_id=user.id,
            real_name=user.real_name,
            dept_name=dept_name,
            post_name=post_name,
            total_count=len(apps),
            pending_count=by_status[ApplicationStatus.PENDING],
            approved_count=approved,
            rejected_count=by_status[ApplicationStatus.REJECTED],
            withdrawn_count=by_status[ApplicationStatus.WITHDRAWN],
            leave_count=by_type[AppType.LEAVE.value],
            reimburse_count=by_type[AppType.REIMBURSE.value],
            total_leave_days=total_leave_days,
            total_reimburse_amount=total_amount,
            approval_rate=approval_rate(approved, len(apps)),
            last_submit_time=max(submit_times) if submit_times else None,
        )

    # =========================================================================
    # Approver dashboard
    # =========================================================================

    def _done_tasks_between(
        self, approver_id: UUID, start: datetime, end: datetime,
    ) -> list[tuple[Task, str]]:
        rows = self.session.execute(
            select(Task, Application.app_type)
            .join(Application, Application.id == Task.app_id)
            .where(Task.assignee_id == approver_id)
            .where(Task.status == TaskStatus.DONE)
            .where(Task.finish_time >= start)
            .where(Task.finish_time < end)
        ).all()
        return [(row[0], row[1]) for row in rows]

    def get_approver_dashboard(
        self, approver_id: UUID, year: int, month: int,
    ) -> ApproverDashboard:
        """Decisions taken by ``approver_id`` during one calendar month."""
        if not 1 <= month <= 12:
            raise InvalidRequestError("month", "must be between 1 and 12")
        user = self._require_user(approver_id)
        tz = self.settings.tzinfo

        start = datetime(year, month, 1, tzinfo=tz)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=tz)
        else:
            end = datetime(year, month + 1, 1, tzinfo=tz)
        done = self._done_tasks_between(approver_id, start, end)

        actions = Counter(task.action for task, _ in done)
        types = Counter(app_type for _, app_type in done)
        days = Counter(task.finish_time.astimezone(tz).day for task, _ in done)

        type_stats = tuple(
            TypeStat(app_type=t, type_label=t.label, count=types[t.value])
            for t in AppType
        )
        days_in_month = calendar.monthrange(year, month)[1]
        daily_stats = tuple(
            DailyStat(date=f"{year:04d}-{month:02d}-{day:02d}", count=days[day])
            for day in range(1, days_in_month + 1)
        )

        dept_name, post_name = self._labels(user)
        return ApproverDashboard(
            real_name=user.real_name,
            dept_name=dept_name,
            post_name=post_name,
            total_count=len(done),
            approved_count=actions[ApprovalAction.APPROVE],
            rejected_count=actions[ApprovalAction.REJECT],
            type_stats=type_stats,
            daily_stats=daily_stats,
        )

    def get_approver_monthly_stats(self, approver_id: UUID, year: int) -> tuple[MonthlyStat, ...]:
        """Twelve YYYY-MM buckets of decisions taken in ``year``."""
        self._require_user(approver_id)
        tz = self.settings.tzinfo
        done = self._done_tasks_between(
            approver_id,
            datetime(year, 1, 1, tzinfo=tz),
            datetime(year + 1, 1, 1, tzinfo=tz),
        )
        months = Counter(task.finish_time.astimezone(tz).month for task, _ in done)
        return tuple(
            MonthlyStat(month=f"{year:04d}-{m:02d}", count=months[m])
            for m in range(1, 13)
        )
