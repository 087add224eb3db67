"""
DirectoryService -- read-only lookups into the organisation directory.

Responsibility:
    Resolves users, departments and posts into frozen directory records.
    A post's permission codes are resolved once, when the post is read,
    into the ``PostRecord.permission_codes`` frozenset; eligibility checks
    test membership in that set instead of re-querying the join table.

Architecture position:
    Kernel > Services.  Directory tables are owned outside the kernel;
    this service never writes them.

Invariants enforced:
    - Misses return ``None`` (or an empty set); raising is the
      caller's decision.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.domain.dtos import DeptRecord, PostRecord, UserRecord
from approval_kernel.models.directory import Dept, Permission, Post, User, post_permissions


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        user_id=user.id,
        real_name=user.real_name,
        dept_id=user.dept_id,
        post_id=user.post_id,
        status=user.status,
    )


class DirectoryService:
    """Read-only directory collaborator."""

    def __init__(self, session: Session):
        self._session = session

    def get_user_by_id(self, user_id: UUID | None) -> UserRecord | None:
        if user_id is None:
            return None
        user = self._session.get(User, user_id)
        return _user_record(user) if user is not None else None

    def get_dept_by_id(self, dept_id: UUID | None) -> DeptRecord | None:
        if dept_id is None:
            return None
        dept = self._session.get(Dept, dept_id)
        if dept is None:
            return None
        return DeptRecord(dept_id=dept.id, dept_name=dept.dept_name)

    def get_post_by_id(self, post_id: UUID | None) -> PostRecord | None:
        if post_id is None:
            return None
        post = self._session.get(Post, post_id)
        if post is None:
            return None
        return PostRecord(
            post_id=post.id,
            post_name=post.post_name,
            permission_codes=post.permission_codes,
        )

    def get_permission_codes_by_post_id(self, post_id: UUID | None) -> frozenset[str]:
        if post_id is None:
            return frozenset()
        rows = self._session.execute(
            select(Permission.permission_code)
            .join(post_permissions, post_permissions.c.permission_id == Permission.id)
            .where(post_permissions.c.post_id == post_id)
        ).scalars()
        return frozenset(rows)

