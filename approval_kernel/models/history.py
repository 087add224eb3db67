"""
Module: approval_kernel.models.history
Responsibility: ORM persistence for the approval history ledger.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only.  ORM listeners reject UPDATE and DELETE of any
      HistoryEntry row.

Failure modes:
    - ImmutabilityViolationError on history UPDATE/DELETE.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import Base, UUIDString
from approval_kernel.exceptions import ImmutabilityViolationError


class HistoryEntry(Base):
    """Immutable record of one approval decision."""

    __tablename__ = "history_entries"

    __table_args__ = (
        Index("ix_history_app_approve_time", "app_id", "approve_time"),
    )

    app_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("applications.id"), nullable=False,
    )
    node_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approver_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approver_name: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    approve_time: Mapped[datetime] = mapped_column(nullable=False)
    create_time: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<HistoryEntry app={self.app_id} action={self.action} by={self.approver_name}>"


@event.listens_for(HistoryEntry, "before_update")
def prevent_history_update(mapper, connection, target):
    """Prevent updates to history entries."""
    raise ImmutabilityViolationError(
        entity_type="HistoryEntry",
        entity_id=str(target.id),
        reason="History entries are immutable -- cannot modify",
    )


@event.listens_for(HistoryEntry, "before_delete")
def prevent_history_delete(mapper, connection, target):
    """Prevent deletion of history entries."""
    raise ImmutabilityViolationError(
        entity_type="HistoryEntry",
        entity_id=str(target.id),
        reason="History entries are immutable -- cannot delete",
    )


# Canonical "latest decision first" ordering
NEWEST_FIRST = (
    HistoryEntry.approve_time.desc(),
    HistoryEntry.create_time.desc(),
    HistoryEntry.id,
)
