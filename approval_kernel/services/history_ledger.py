"""
HistoryLedger -- append-only record of approval decisions.

Responsibility:
    Appends one HistoryEntry per decision.  It is also the single read path
    for decision history: the history search asks it for the latest decision
    of each application and the detail view for the full trail.  Reads never
    flush, so selectors may use them.

Architecture position:
    Kernel > Services.  Flush-only.  The ORM listeners in
    models/history.py reject any UPDATE or DELETE of a written entry.

Invariants enforced:
    - Entries are immutable once flushed.
    - "Latest" means newest approve_time, ties broken by create_time.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from approval_kernel.domain.application import ApprovalAction
from approval_kernel.domain.clock import Clock, SystemClock
from approval_kernel.logging_config import get_logger
from approval_kernel.models.history import NEWEST_FIRST, HistoryEntry
from approval_kernel.services.base import BaseService

logger = get_logger("services.history_ledger")


class HistoryLedger(BaseService):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def append(
        self,
        app_id: UUID,
        approver_id: UUID | None,
        approver_name: str,
        action: ApprovalAction,
        comment: str | None = None,
        node_name: str | None = None,
    ) -> HistoryEntry:
        now = self._clock.now()
        entry = HistoryEntry(
            app_id=app_id,
            node_name=node_name,
            approver_id=approver_id,
            approver_name=approver_name,
            action=int(action),
            comment=comment,
            approve_time=now,
            create_time=now,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "history_appended",
            extra={"app_id": app_id, "history_id": entry.id, "action": int(action)},
        )
        return entry

    def entries_for(self, app_id: UUID) -> list[HistoryEntry]:
        """All entries of one application, newest first."""
        return list(
            self.session.execute(
                select(HistoryEntry)
                .where(HistoryEntry.app_id == app_id)
                .order_by(*NEWEST_FIRST)
            ).scalars()
        )

    def latest_for_many(self, app_ids: Iterable[UUID]) -> dict[UUID, HistoryEntry]:
        """Latest entry per application.  Applications without one are absent."""
        app_ids = list(app_ids)
        if not app_ids:
            return {}
        latest: dict[UUID, HistoryEntry] = {}
        rows = self.session.execute(
            select(HistoryEntry)
            .where(HistoryEntry.app_id.in_(app_ids))
            .order_by(*NEWEST_FIRST)
        ).scalars()
        for entry in rows:
            latest.setdefault(entry.app_id, entry)
        return latest

