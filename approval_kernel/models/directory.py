"""
Module: approval_kernel.models.directory
Responsibility: ORM persistence for the organisation directory the kernel
    reads from: departments, posts, permissions (attached to posts through a
    membership table) and users.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - The kernel never writes these tables during a lifecycle operation.
      Only directory_loader (seeding) and external administration do.
    - permission_code is globally unique.

Failure modes:
    - IntegrityError on duplicate permission_code or post_code.
"""

from uuid import UUID

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from approval_kernel.db.base import Base, UUIDString

post_permissions = Table(
    "post_permissions",
    Base.metadata,
    Column("post_id", UUIDString(), ForeignKey("posts.id"), primary_key=True),
    Column("permission_id", UUIDString(), ForeignKey("permissions.id"), primary_key=True),
)


class Dept(Base):
    """Department; the unit an application is routed within."""

    __tablename__ = "depts"

    dept_name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Dept {self.dept_name}>"


class Permission(Base):
    """A capability code that can be attached to posts."""

    __tablename__ = "permissions"

    permission_code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    permission_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Permission {self.permission_code}>"


class Post(Base):
    """A job post; users hold at most one post."""

    __tablename__ = "posts"

    post_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    post_name: Mapped[str] = mapped_column(String(100), nullable=False)

    permissions: Mapped[list[Permission]] = relationship(
        Permission,
        secondary=post_permissions,
        lazy="selectin",
    )

    @property
    def permission_codes(self) -> frozenset[str]:
        return frozenset(p.permission_code for p in self.permissions)

    def __repr__(self) -> str:
        return f"<Post {self.post_code}>"


class User(Base):
    """Directory user.  status: 1 = active, 0 = disabled."""

    __tablename__ = "users"

    __table_args__ = (
        Index("ix_users_dept_status", "dept_id", "status"),
    )

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    real_name: Mapped[str] = mapped_column(String(100), nullable=False)
    dept_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("depts.id"), nullable=True,
    )
    post_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("posts.id"), nullable=True,
    )
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<User {self.username} status={self.status}>"
