"""
Directory loader -- seeds departments, permissions, posts and users.

Responsibility:
    Inserts a directory described as plain data (typically a parsed YAML
    document) so a fresh database, a demo or a test can be populated.  The
    kernel itself treats these tables as read-only; this loader is the one
    writer that ships with it.

Input shape::

    depts:
      - {key: eng, dept_name: Engineering}
    permissions:
      - {code: APPROVAL_REVIEW, name: Review applications}
    posts:
      - {key: lead, post_code: LEAD, post_name: Team lead,
         permissions: [APPROVAL_REVIEW]}
    users:
      - {key: alice, username: alice, real_name: Alice,
         dept: eng, post: lead}          # status defaults to 1 (active)

Returns a flat mapping ``key -> id``.  Permissions are keyed by code.

Failure modes:
    - InvalidRequestError on a duplicate key or on a reference to an
      unknown department, post or permission.
"""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from approval_kernel.domain.application import UserStatus
from approval_kernel.exceptions import InvalidRequestError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.directory import Dept, Permission, Post, User

logger = get_logger("directory_loader")


def _register(ids: dict[str, UUID], key: str, value: UUID) -> None:
    if key in ids:
        raise InvalidRequestError("key", f"duplicate directory key {key!r}")
    ids[key] = value


def _lookup(ids: dict[str, UUID], key: str | None, field: str) -> UUID | None:
    if key is None:
        return None
    if key not in ids:
        raise InvalidRequestError(field, f"unknown reference {key!r}")
    return ids[key]


def load_directory(session: Session, data: Mapping[str, Any]) -> dict[str, UUID]:
    """Insert the directory described by ``data``.  Flushes, never commits."""
    ids: dict[str, UUID] = {}
    dept_ids: dict[str, UUID] = {}
    post_ids: dict[str, UUID] = {}
    permissions: dict[str, Permission] = {}

    for item in data.get("depts") or []:
        dept = Dept(dept_name=item["dept_name"])
        session.add(dept)
        session.flush()
        _register(ids, item["key"], dept.id)
        dept_ids[item["key"]] = dept.id

    for item in data.get("permissions") or []:
        permission = Permission(
            permission_code=item["code"],
            permission_name=item.get("name", item["code"]),
        )
        session.add(permission)
        session.flush()
        _register(ids, item["code"], permission.id)
        permissions[item["code"]] = permission

    for item in data.get("posts") or []:
        codes = item.get("permissions") or []
        unknown = [c for c in codes if c not in permissions]
        if unknown:
            raise InvalidRequestError("permissions", f"unknown permission(s) {unknown}")
        post = Post(
            post_code=item.get("post_code", item["key"]),
            post_name=item["post_name"],
            permissions=[permissions[c] for c in codes],
        )
        session.add(post)
        session.flush()
        _register(ids, item["key"], post.id)
        post_ids[item["key"]] = post.id

    for item in data.get("users") or []:
        user = User(
            username=item.get("username", item["key"]),
            real_name=item["real_name"],
            dept_id=_lookup(dept_ids, item.get("dept"), "dept"),
            post_id=_lookup(post_ids, item.get("post"), "post"),
            status=int(item.get("status", UserStatus.ACTIVE)),
        )
        session.add(user)
        session.flush()
        _register(ids, item["key"], user.id)

    logger.info(
        "directory_loaded",
        extra={
            "depts": len(dept_ids),
            "posts": len(post_ids),
            "permissions": len(permissions),
            "entries": len(ids),
        },
    )
    return ids
