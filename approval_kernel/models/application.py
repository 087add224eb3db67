"""
Module: approval_kernel.models.application
Responsibility: ORM persistence for applications and their type-specific
    detail records (leave, reimbursement).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/application.py only.

Invariants enforced:
    - app_no is globally unique (uq constraint).
    - Exactly one detail row per application, in the table selected by
      app_type.  Detail tables carry a UNIQUE app_id; DETAIL_MODELS is the
      single dispatch point from tag to table.
    - status is one of 1, 3, 4, 5 (check constraint).
    - Applications are never deleted.

Failure modes:
    - IntegrityError on duplicate app_no or a second detail row.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import Base, UUIDString
from approval_kernel.db.types import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_PRECISION,
    DAY_COUNT_DECIMAL_PLACES,
    DAY_COUNT_PRECISION,
)
from approval_kernel.domain.application import AppType
from approval_kernel.exceptions import ImmutabilityViolationError


class Application(Base):
    """One leave or reimbursement request and its lifecycle state."""

    __tablename__ = "applications"

    __table_args__ = (
        CheckConstraint(
            "status IN (1, 3, 4, 5)",
            name="ck_applications_valid_status",
        ),
        CheckConstraint(
            "app_type IN ('leave', 'reimburse')",
            name="ck_applications_valid_type",
        ),
        Index("ix_applications_applicant_submit", "applicant_id", "submit_time"),
    )

    app_no: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    app_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    applicant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    dept_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("depts.id"), nullable=True,
    )
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_node: Mapped[str | None] = mapped_column(String(100), nullable=True)
    submit_time: Mapped[datetime] = mapped_column(nullable=False)
    finish_time: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Application {self.app_no} {self.app_type} status={self.status}>"


class LeaveDetail(Base):
    """Leave specifics of an application with app_type == 'leave'."""

    __tablename__ = "leave_details"

    app_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("applications.id"), nullable=False, unique=True,
    )
    leave_type: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime] = mapped_column(nullable=False)
    days: Mapped[Decimal] = mapped_column(
        Numeric(DAY_COUNT_PRECISION, DAY_COUNT_DECIMAL_PLACES), nullable=False,
    )
    reason: Mapped[str] = mapped_column(String(2000), nullable=False)
    attachment: Mapped[str | None] = mapped_column(String(500), nullable=True)


class ReimburseDetail(Base):
    """Reimbursement specifics of an application with app_type == 'reimburse'."""

    __tablename__ = "reimburse_details"

    app_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("applications.id"), nullable=False, unique=True,
    )
    expense_type: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(AMOUNT_PRECISION, AMOUNT_DECIMAL_PLACES), nullable=False,
    )
    reason: Mapped[str] = mapped_column(String(2000), nullable=False)
    invoice_attachment: Mapped[str | None] = mapped_column(String(500), nullable=True)
    occur_date: Mapped[date] = mapped_column(Date, nullable=False)


DETAIL_MODELS: dict[AppType, type[LeaveDetail] | type[ReimburseDetail]] = {
    AppType.LEAVE: LeaveDetail,
    AppType.REIMBURSE: ReimburseDetail,
}


def detail_model_for(app_type: str | AppType) -> type[LeaveDetail] | type[ReimburseDetail]:
    """Resolve the detail table for an application type tag."""
    return DETAIL_MODELS[AppType(app_type)]


@event.listens_for(Application, "before_delete")
def prevent_application_delete(mapper, connection, target):
    """Applications are never deleted."""
    raise ImmutabilityViolationError(
        entity_type="Application",
        entity_id=str(target.id),
        reason="Applications cannot be deleted",
    )
