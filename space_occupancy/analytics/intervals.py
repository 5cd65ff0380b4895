"""Hour-aligned decomposition of visit intervals.

Splits a ``[checkin, checkout)`` interval into the pieces that fall
inside each calendar hour so occupancy can be counted per hour.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import NamedTuple


class BucketKey(NamedTuple):
    """Calendar hour identifier: a date and an hour of day (0-23)."""

    date: date
    hour: int

    @classmethod
    def for_time(cls, moment: datetime) -> "BucketKey":
        return cls(moment.date(), moment.hour)

    @property
    def label(self) -> str:
        """Return the ``YYYY-MM-DD-HH`` label used in exports."""
        return f"{self.date.isoformat()}-{self.hour:02d}"


@dataclass(frozen=True)
class TimeSlot:
    """The part of one visit lying within a single calendar hour.

    Attributes:
        key: Calendar hour the slot belongs to.
        start: Slot start, inclusive.
        end: Slot end, exclusive. Never later than the next hour boundary.
        customer_id: Customer owning the visit.
    """

    key: BucketKey
    start: datetime
    end: datetime
    customer_id: str = ""

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


def next_hour_boundary(moment: datetime) -> datetime:
    """Return minute 0 of the hour following ``moment``."""
    return moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


def decompose_interval(
    checkin: datetime, checkout: datetime, customer_id: str = ""
) -> list[TimeSlot]:
    """Split a visit interval into hour-aligned slots.

    The slots cover ``[checkin, checkout)`` exactly once, in order, with
    no gaps. Zero-length pieces are not emitted, so an empty interval
    yields an empty list.

    Args:
        checkin: Start of the visit.
        checkout: End of the visit. Must already be resolved.
        customer_id: Customer identifier copied onto each slot.

    Returns:
        Slots ordered by start time.
    """
    slots = []
    cursor = checkin
    while cursor < checkout:
        end = min(next_hour_boundary(cursor), checkout)
        if end > cursor:
            slots.append(
                TimeSlot(
                    key=BucketKey.for_time(cursor),
                    start=cursor,
                    end=end,
                    customer_id=customer_id,
                )
            )
        cursor = end
    return slots
