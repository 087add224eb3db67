"""
Module: approval_kernel.db.types
Responsibility: Column types and annotated aliases shared by every model.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Timestamps are always timezone-aware UTC when they leave the database,
      whatever the backend returns (SQLite drops tzinfo on the way back).
    - Amounts use Decimal with two decimal places; day counts use one.
      No floats anywhere in the kernel.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import DateTime, Numeric, String
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored in UTC.

    Guarantees:
        - process_bind_param: aware datetimes are converted to UTC; naive
          datetimes are assumed to already be UTC.
        - process_result_value: always returns an aware UTC datetime.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


AMOUNT_PRECISION = 14
AMOUNT_DECIMAL_PLACES = 2
DAY_COUNT_PRECISION = 6
DAY_COUNT_DECIMAL_PLACES = 1

# Reimbursement amount in major currency units
Amount = Annotated[Decimal, Numeric(AMOUNT_PRECISION, AMOUNT_DECIMAL_PLACES)]

# Leave duration, half days allowed
DayCount = Annotated[Decimal, Numeric(DAY_COUNT_PRECISION, DAY_COUNT_DECIMAL_PLACES)]

# Display labels and names
Label = Annotated[str, String(100)]

# Free text (reasons, comments)
LongText = Annotated[str, String(2000)]

# Attachment or invoice reference (URL or storage key)
AttachmentRef = Annotated[str, String(500)]


RATE_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_half_up(value: Decimal, decimal_places: int = RATE_DECIMAL_PLACES) -> Decimal:
    """Quantize ``value`` with ROUND_HALF_UP to ``decimal_places``."""
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=DEFAULT_ROUNDING)


def utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive input is taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
