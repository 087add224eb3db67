"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the kernel boundary:
    inbound requests (LeaveRequest, ReimburseRequest, HistoryFilter),
    directory records (UserRecord, DeptRecord, PostRecord), and every read
    model returned by the selectors (pages, detail views, summaries,
    dashboards).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters and are only
    invoked from services and selectors.

Invariants enforced:
    - Requests validate themselves on construction: non-empty reason,
      leave days > 0 and end >= start, reimbursement amount > 0.
    - Days and amounts fit their columns exactly: at most one decimal
      place and below 100000 for days, at most two decimal places and
      below 10^12 for amounts. Nothing is rounded on the way in.
    - An ApplicationDetail carries exactly one detail view, and its
      variant matches the application's app_type.
    - PostRecord carries its permission codes as a frozenset, resolved once
      when the post is read.

Failure modes:
    - InvalidRequestError on malformed requests.
    - ValueError on an ApplicationDetail whose detail variant does not
      match its app_type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Generic, TypeVar, Union
from uuid import UUID

from approval_kernel.db.types import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_PRECISION,
    DAY_COUNT_DECIMAL_PLACES,
    DAY_COUNT_PRECISION,
)
from approval_kernel.domain.application import AppType, ApplicationStatus, UserStatus
from approval_kernel.exceptions import InvalidRequestError

if TYPE_CHECKING:
    from approval_kernel.models.application import (
        Application as ApplicationModel,
        LeaveDetail as LeaveDetailModel,
        ReimburseDetail as ReimburseDetailModel,
    )
    from approval_kernel.models.history import HistoryEntry as HistoryEntryModel

T = TypeVar("T")


# =========================================================================
# Inbound requests
# =========================================================================


def _require_reason(reason: str | None) -> None:
    if reason is None or not reason.strip():
        raise InvalidRequestError("reason", "must not be empty")


def _require_quantity(field_name: str, value, precision: int, places: int) -> None:
    """Reject a quantity the backing Numeric(precision, places) column would alter."""
    if value is None:
        raise InvalidRequestError(field_name, "must be greater than zero")
    value = Decimal(value)
    if not value.is_finite() or value <= 0:
        raise InvalidRequestError(field_name, "must be greater than zero")
    if value >= Decimal(10) ** (precision - places):
        raise InvalidRequestError(
            field_name, f"must be less than {10 ** (precision - places)}",
        )
    if value != value.quantize(Decimal(1).scaleb(-places)):
        raise InvalidRequestError(
            field_name, f"must have at most {places} decimal place(s)",
        )


@dataclass(frozen=True)
class LeaveRequest:
    """Payload of a new leave application."""

    leave_type: int
    start_time: datetime
    end_time: datetime
    days: Decimal
    reason: str
    approver_id: UUID | None
    attachment: str | None = None

    def __post_init__(self) -> None:
        _require_reason(self.reason)
        _require_quantity(
            "days", self.days, DAY_COUNT_PRECISION, DAY_COUNT_DECIMAL_PLACES,
        )
        if self.end_time < self.start_time:
            raise InvalidRequestError("end_time", "must not be before start_time")


@dataclass(frozen=True)
class ReimburseRequest:
    """Payload of a new reimbursement application."""

    expense_type: int
    amount: Decimal
    reason: str
    occur_date: date
    approver_id: UUID | None
    invoice_attachment: str | None = None

    def __post_init__(self) -> None:
        _require_reason(self.reason)
        _require_quantity(
            "amount", self.amount, AMOUNT_PRECISION, AMOUNT_DECIMAL_PLACES,
        )


@dataclass(frozen=True)
class HistoryFilter:
    """
    Filters for the history search.

    ``status=None`` means "any finished status" (approved, rejected,
    withdrawn).  ``leave_type`` only narrows leave applications and
    ``expense_type`` only narrows reimbursements.
    """

    app_type: AppType | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    approver_name: str | None = None
    leave_type: int | None = None
    expense_type: int | None = None
    status: ApplicationStatus | None = None


# =========================================================================
# Directory records
# =========================================================================


@dataclass(frozen=True)
class UserRecord:
    user_id: UUID
    real_name: str
    dept_id: UUID | None
    post_id: UUID | None
    status: int

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


@dataclass(frozen=True)
class DeptRecord:
    dept_id: UUID
    dept_name: str


@dataclass(frozen=True)
class PostRecord:
    post_id: UUID
    post_name: str
    permission_codes: frozenset[str] = field(default_factory=frozenset)

    def grants(self, code: str) -> bool:
        return code in self.permission_codes


# =========================================================================
# Read models
# =========================================================================


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a larger result set. ``total`` counts the whole set."""

    items: tuple[T, ...]
    total: int
    page: int
    size: int

    @property
    def pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size


@dataclass(frozen=True)
class ApplicationRecord:
    """The persisted application row."""

    app_id: UUID
    app_no: str
    app_type: AppType
    title: str
    applicant_id: UUID
    dept_id: UUID | None
    status: ApplicationStatus
    current_node: str | None
    submit_time: datetime
    finish_time: datetime | None

    @classmethod
    def from_model(cls, model: ApplicationModel) -> ApplicationRecord:
        return cls(
            app_id=model.id,
            app_no=model.app_no,
            app_type=AppType(model.app_type),
            title=model.title,
            applicant_id=model.applicant_id,
            dept_id=model.dept_id,
            status=ApplicationStatus(model.status),
            current_node=model.current_node,
            submit_time=model.submit_time,
            finish_time=model.finish_time,
        )


@dataclass(frozen=True)
class LeaveDetailView:
    leave_type: int
    start_time: datetime
    end_time: datetime
    days: Decimal
    reason: str
    attachment: str | None

    app_type = AppType.LEAVE

    @classmethod
    def from_model(cls, model: LeaveDetailModel) -> LeaveDetailView:
        return cls(
            leave_type=model.leave_type,
            start_time=model.start_time,
            end_time=model.end_time,
            days=model.days,
            reason=model.reason,
            attachment=model.attachment,
        )


@dataclass(frozen=True)
class ReimburseDetailView:
    expense_type: int
    amount: Decimal
    reason: str
    invoice_attachment: str | None
    occur_date: date

    app_type = AppType.REIMBURSE

    @classmethod
    def from_model(cls, model: ReimburseDetailModel) -> ReimburseDetailView:
        return cls(
            expense_type=model.expense_type,
            amount=model.amount,
            reason=model.reason,
            invoice_attachment=model.invoice_attachment,
            occur_date=model.occur_date,
        )


DetailView = Union[LeaveDetailView, ReimburseDetailView]


@dataclass(frozen=True)
class HistoryEntryView:
    history_id: UUID
    app_id: UUID
    node_name: str | None
    approver_id: UUID | None
    approver_name: str
    action: int
    comment: str | None
    approve_time: datetime
    create_time: datetime

    @classmethod
    def from_model(cls, model: HistoryEntryModel) -> HistoryEntryView:
        return cls(
            history_id=model.id,
            app_id=model.app_id,
            node_name=model.node_name,
            approver_id=model.approver_id,
            approver_name=model.approver_name,
            action=model.action,
            comment=model.comment,
            approve_time=model.approve_time,
            create_time=model.create_time,
        )


@dataclass(frozen=True)
class ApplicationDetail:
    """An application, its one detail record, and its history (newest first)."""

    application: ApplicationRecord
    detail: DetailView | None
    history: tuple[HistoryEntryView, ...]

    def __post_init__(self) -> None:
        if self.detail is not None and self.detail.app_type != self.application.app_type:
            raise ValueError(
                f"Detail variant {self.detail.app_type.value} does not match "
                f"application type {self.application.app_type.value}"
            )


@dataclass(frozen=True)
class ApplicationView:
    """Row of the "my applications" list."""

    app_id: UUID
    app_no: str
    app_type: AppType
    title: str
    applicant_name: str
    dept_name: str
    status: ApplicationStatus
    current_node: str | None
    submit_time: datetime
    finish_time: datetime | None
    leave_type: int | None = None
    expense_type: int | None = None


@dataclass(frozen=True)
class HistoryView:
    """Row of the history search, with the latest decision folded in."""

    app_id: UUID
    app_no: str
    app_type: AppType
    title: str
    status: ApplicationStatus
    applicant_name: str
    dept_name: str
    current_node: str | None
    approver_name: str | None
    action: int | None
    comment: str | None
    leave_type: int | None
    leave_days: Decimal | None
    expense_type: int | None
    expense_amount: Decimal | None
    submit_time: datetime
    approve_time: datetime | None
    finish_time: datetime | None


@dataclass(frozen=True)
class ApplicationSummary:
    user_id: UUID
    real_name: str
    dept_name: str
    post_name: str
    total_count: int
    pending_count: int
    approved_count: int
    rejected_count: int
    withdrawn_count: int
    leave_count: int
    reimburse_count: int
    total_leave_days: Decimal
    total_reimburse_amount: Decimal
    approval_rate: Decimal
    last_submit_time: datetime | None


@dataclass(frozen=True)
class ApproverOption:
    user_id: UUID
    real_name: str
    dept_id: UUID
    dept_name: str | None
    post_id: UUID | None
    post_name: str | None


@dataclass(frozen=True)
class TaskView:
    task_id: UUID
    app_id: UUID
    app_no: str
    app_type: AppType
    title: str
    applicant_name: str
    node_name: str | None
    create_time: datetime
    leave_type: int | None = None
    expense_type: int | None = None
    action: int | None = None
    comment: str | None = None
    finish_time: datetime | None = None


@dataclass(frozen=True)
class TypeStat:
    app_type: AppType
    type_label: str
    count: int


@dataclass(frozen=True)
class DailyStat:
    date: str  # YYYY-MM-DD
    count: int


@dataclass(frozen=True)
class MonthlyStat:
    month: str  # YYYY-MM
    count: int


@dataclass(frozen=True)
class ApproverDashboard:
    real_name: str
    dept_name: str
    post_name: str
    total_count: int
    approved_count: int
    rejected_count: int
    type_stats: tuple[TypeStat, ...]
    daily_stats: tuple[DailyStat, ...]
