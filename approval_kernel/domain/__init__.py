"""Pure domain layer: enums, state rules, value objects and the clock."""

from approval_kernel.domain.application import (
    APPLICATION_TRANSITIONS,
    HISTORY_STATUSES,
    TERMINAL_STATUSES,
    AppType,
    ApplicationStatus,
    ApprovalAction,
    TaskStatus,
    UserStatus,
    can_transition,
)
from approval_kernel.domain.clock import Clock, DeterministicClock, SystemClock

__all__ = [
    "APPLICATION_TRANSITIONS",
    "HISTORY_STATUSES",
    "TERMINAL_STATUSES",
    "AppType",
    "ApplicationStatus",
    "ApprovalAction",
    "TaskStatus",
    "UserStatus",
    "can_transition",
    "Clock",
    "DeterministicClock",
    "SystemClock",
]
