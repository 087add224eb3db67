"""
Module: approval_kernel.selectors.base
Responsibility: Abstract base class for the read-only query selectors, plus the
    shared pagination and display-name helpers they all need.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers, apart from the
    read methods of services/history_ledger.py.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), session.delete(),
      session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Page numbers below 1 are treated as 1; sizes are clamped to
      [1, max_page_size].
"""

from collections.abc import Iterable, Sequence
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.config import KernelSettings
from approval_kernel.domain.dtos import Page
from approval_kernel.models.application import LeaveDetail, ReimburseDetail
from approval_kernel.models.directory import Dept, Post, User

T = TypeVar("T")


class BaseSelector:
    """
    Base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session, settings: KernelSettings | None = None):
        self.session = session
        self.settings = settings or KernelSettings()

    # Pagination

    def normalize_page(self, page: int | None, size: int | None) -> tuple[int, int]:
        """Return (page, size) with defaults applied and bounds enforced."""
        page = page if page is not None and page > 0 else 1
        if size is None or size <= 0:
            size = self.settings.default_page_size
        size = min(size, self.settings.max_page_size)
        return page, size

    @staticmethod
    def slice_page(items: Sequence[T], page: int, size: int) -> Page[T]:
        """Paginate an already-materialized list.  ``total`` is ``len(items)``."""
        start = (page - 1) * size
        return Page(
            items=tuple(items[start:start + size]),
            total=len(items),
            page=page,
            size=size,
        )

    # Batch lookups for read models

    def user_names(self, user_ids: Iterable[UUID | None]) -> dict[UUID, str]:
        ids = {uid for uid in user_ids if uid is not None}
        if not ids:
            return {}
        rows = self.session.execute(
            select(User.id, User.real_name).where(User.id.in_(ids))
        )
        return {row.id: row.real_name for row in rows}

    def dept_names(self, dept_ids: Iterable[UUID | None]) -> dict[UUID, str]:
        ids = {did for did in dept_ids if did is not None}
        if not ids:
            return {}
        rows = self.session.execute(
            select(Dept.id, Dept.dept_name).where(Dept.id.in_(ids))
        )
        return {row.id: row.dept_name for row in rows}

    def post_names(self, post_ids: Iterable[UUID | None]) -> dict[UUID, str]:
        ids = {pid for pid in post_ids if pid is not None}
        if not ids:
            return {}
        rows = self.session.execute(
            select(Post.id, Post.post_name).where(Post.id.in_(ids))
        )
        return {row.id: row.post_name for row in rows}

    def leave_details(self, app_ids: Iterable[UUID]) -> dict[UUID, LeaveDetail]:
        ids = set(app_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(LeaveDetail).where(LeaveDetail.app_id.in_(ids))
        ).scalars()
        return {d.app_id: d for d in rows}

    def reimburse_details(self, app_ids: Iterable[UUID]) -> dict[UUID, ReimburseDetail]:
        ids = set(app_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(ReimburseDetail).where(ReimburseDetail.app_id.in_(ids))
        ).scalars()
        return {d.app_id: d for d in rows}
