"""
Application domain types (``approval_kernel.domain.application``).

Responsibility
--------------
Pure value objects for the application lifecycle: status codes, the
leave/reimburse type tag, task status, decision actions, and the table of
legal status transitions.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  No imports from ``db/``,
``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Only ``APPLICATION_TRANSITIONS`` edges are legal.  Every edge leaves
  PENDING; approved, rejected and withdrawn are terminal.
* Status code 2 is never assigned (historically reserved, meaning unknown).
"""

from __future__ import annotations

from enum import Enum, IntEnum


class AppType(str, Enum):
    """Tag selecting which detail record an application owns."""

    LEAVE = "leave"
    REIMBURSE = "reimburse"

    @property
    def label(self) -> str:
        return _APP_TYPE_LABELS[self]


_APP_TYPE_LABELS = {
    AppType.LEAVE: "Leave",
    AppType.REIMBURSE: "Reimbursement",
}


class ApplicationStatus(IntEnum):
    """Application lifecycle states (persisted as integers)."""

    PENDING = 1
    APPROVED = 3
    REJECTED = 4
    WITHDRAWN = 5


APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    }),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset({
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})

# Default status set for history searches without an explicit status filter
HISTORY_STATUSES: tuple[ApplicationStatus, ...] = (
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
)


def can_transition(from_status: int, to_status: int) -> bool:
    """True when ``from_status -> to_status`` is a legal lifecycle edge."""
    try:
        source = ApplicationStatus(from_status)
        target = ApplicationStatus(to_status)
    except ValueError:
        return False
    return target in APPLICATION_TRANSITIONS[source]


class TaskStatus(IntEnum):
    """Approval task states."""

    OPEN = 0
    DONE = 1


class ApprovalAction(IntEnum):
    """Decision recorded by an approver."""

    APPROVE = 1
    REJECT = 2

    @property
    def resulting_status(self) -> ApplicationStatus:
        if self is ApprovalAction.APPROVE:
            return ApplicationStatus.APPROVED
        return ApplicationStatus.REJECTED


class UserStatus(IntEnum):
    """Directory account state."""

    DISABLED = 0
    ACTIVE = 1
