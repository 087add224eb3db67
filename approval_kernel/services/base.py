"""
BaseService -- abstract base for the write-side services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service that mutates state.  Services receive a SQLAlchemy
    ``Session`` and use ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (ApprovalKernel, a script, or the test harness) owns commit/rollback,
      which is what makes create-application-plus-task one atomic unit.

Failure modes:
    - A subclass calling ``session.commit()`` breaks the all-or-nothing
      guarantee of application creation and withdrawal.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for write-side services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide list/aggregate queries -- those belong in
          ``approval_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
