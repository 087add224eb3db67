"""
Module: approval_kernel.models.task
Responsibility: ORM persistence for approval tasks, the routing record that
    points an application at the approver responsible for deciding it.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one OPEN task per application, backed by a partial unique
      index on PostgreSQL and SQLite.
    - Closed tasks keep the decision (action, comment, finish_time) and are
      never removed; only OPEN tasks may be deleted (withdrawal).

Failure modes:
    - IntegrityError on a second open task for the same application.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import Base, UUIDString


class Task(Base):
    """Open or historical routing decision for one application."""

    __tablename__ = "tasks"

    __table_args__ = (
        Index(
            "ix_tasks_one_open_per_app",
            "app_id",
            unique=True,
            postgresql_where=text("status = 0"),
            sqlite_where=text("status = 0"),
        ),
        Index("ix_tasks_assignee_status", "assignee_id", "status"),
    )

    app_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("applications.id"), nullable=False,
    )
    node_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    assignee_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    assignee_name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comment: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    create_time: Mapped[datetime] = mapped_column(nullable=False)
    finish_time: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Task app={self.app_id} assignee={self.assignee_name} status={self.status}>"
