"""ORM models for the approval kernel."""

from approval_kernel.models.application import (
    DETAIL_MODELS,
    Application,
    LeaveDetail,
    ReimburseDetail,
    detail_model_for,
)
from approval_kernel.models.directory import Dept, Permission, Post, User, post_permissions
from approval_kernel.models.history import NEWEST_FIRST, HistoryEntry
from approval_kernel.models.task import Task

__all__ = [
    "Application",
    "LeaveDetail",
    "ReimburseDetail",
    "DETAIL_MODELS",
    "detail_model_for",
    "Dept",
    "Permission",
    "Post",
    "User",
    "post_permissions",
    "HistoryEntry",
    "NEWEST_FIRST",
    "Task",
]
