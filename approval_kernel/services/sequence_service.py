"""
SequenceService -- per-day application number allocation via locked counter rows.

Responsibility:
    Provides strictly increasing sequence numbers per named counter, and on
    top of that the human-readable application number
    ``<prefix><yyyyMMdd><6-digit daily sequence>``.  Uses a dedicated
    counter table with row-level locking (``SELECT ... FOR UPDATE``) so two
    submissions on the same day can never receive the same number.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by ApplicationLifecycle while it creates an application.

Invariants enforced:
    - The locked counter row is the sole source of truth for the next
      value.  Counting existing applications and formatting count + 1 is
      never used.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the number.
    - One counter per business date (``app_no:YYYYMMDD``), so the daily
      sequence restarts at 000001.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
    - Sequence overflow beyond 999999 on one day widens the number; it is
      still unique.
"""

from datetime import date

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from approval_kernel.db.base import Base
from approval_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures uniqueness under concurrency.
    """

    __tablename__ = "sequence_counters"

    # Sequence name (e.g. "app_no:20240101")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    # Current sequence value
    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly increasing
        integer value.  The increment is only committed when the caller's
        transaction commits.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.

    Usage:
        with session_scope() as session:
            app_no = SequenceService(session).next_app_no(today)
            # If the transaction rolls back, the number is not consumed
    """

    APP_NO_PREFIX = "AP"
    APP_NO_SEQUENCE_WIDTH = 6

    def __init__(self, session: Session):
        self._session = session

    @staticmethod
    def app_no_sequence_name(business_date: date) -> str:
        return f"app_no:{business_date:%Y%m%d}"

    def next_app_no(self, business_date: date, prefix: str = APP_NO_PREFIX) -> str:
        """
        Allocate the next application number for ``business_date``.

        Returns:
            e.g. ``AP20240101000001`` for the first application of the day.
        """
        seq = self.next_value(self.app_no_sequence_name(business_date))
        app_no = f"{prefix}{business_date:%Y%m%d}{seq:0{self.APP_NO_SEQUENCE_WIDTH}d}"
        logger.info(
            "app_no_allocated",
            extra={"app_no": app_no, "business_date": business_date, "sequence": seq},
        )
        return app_no

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        This method:
        1. Locks the sequence row (or creates it if not exists)
        2. Increments the counter
        3. Returns the new value

        Postconditions:
            - Returns an integer > 0 that is strictly greater than any
              previously committed value for this sequence name.
            - The counter row is locked until the transaction completes.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            # First use of this sequence.  Another transaction may be creating
            # the same row; the savepoint keeps the rest of our work intact.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._session.execute(
                    select(SequenceCounter)
                    .where(SequenceCounter.name == sequence_name)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one()

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

