"""Hourly occupancy and daily usage aggregation.

Folds decomposed time slots into per-hour buckets and visits into
per-day statistics for one analysis pass.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from space_occupancy.analytics.intervals import BucketKey, TimeSlot, decompose_interval
from space_occupancy.utils.records import Visit

logger = logging.getLogger(__name__)


@dataclass
class HourBucket:
    """Occupancy of a single calendar hour.

    Attributes:
        key: Calendar hour of the bucket.
        count: Number of visit slots that touched this hour.
        members: ``(customer_id, minutes)`` pairs, one per slot.
    """

    key: BucketKey
    count: int = 0
    members: list[tuple[str, float]] = field(default_factory=list)

    @property
    def total_minutes(self) -> float:
        """Summed slot duration in minutes."""
        return math.fsum(minutes for _, minutes in self.members)

    def add(self, customer_id: str, minutes: float) -> None:
        self.count += 1
        self.members.append((customer_id, minutes))


@dataclass
class DailyStat:
    """Usage attributed to one check-in date.

    Attributes:
        day: Calendar date of the check-ins.
        sessions: Number of visits that checked in on this day.
        users: Distinct customer ids seen on this day.
        stay_minutes: Stay duration of every visit, in minutes.
    """

    day: date
    sessions: int = 0
    users: set[str] = field(default_factory=set)
    stay_minutes: list[float] = field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return math.fsum(self.stay_minutes) / 60

    @property
    def unique_users(self) -> int:
        return len(self.users)


@dataclass(frozen=True)
class SlotDetail:
    """A decomposed slot together with the stay length of its visit."""

    slot: TimeSlot
    stay_minutes: float


class OccupancyAggregator:
    """Accumulates hourly buckets and daily statistics for one pass.

    Results do not depend on the order in which visits are recorded.
    Buckets are only created for hours that have at least one occupant.
    """

    def __init__(self) -> None:
        self.buckets: dict[BucketKey, HourBucket] = {}
        self.daily_stats: dict[date, DailyStat] = {}
        self.slot_details: list[SlotDetail] = []
        self._visit_count: int = 0

    def record_slot(self, slot: TimeSlot) -> None:
        """Add one slot to its hour bucket.

        Args:
            slot: Decomposed slot of a visit.
        """
        bucket = self.buckets.get(slot.key)
        if bucket is None:
            bucket = self.buckets[slot.key] = HourBucket(key=slot.key)
        bucket.add(slot.customer_id, slot.duration_minutes)

    def record_visit(self, visit: Visit) -> list[TimeSlot]:
        """Decompose a visit and record both its slots and its daily usage.

        Daily usage is attributed to the check-in date even when the
        visit's slots extend into following days.

        Args:
            visit: Validated visit record.

        Returns:
            The slots the visit was split into.
        """
        slots = decompose_interval(visit.checkin, visit.checkout, visit.customer_id)
        for slot in slots:
            self.record_slot(slot)
            self.slot_details.append(SlotDetail(slot, visit.stay_minutes))

        day = visit.checkin.date()
        stat = self.daily_stats.get(day)
        if stat is None:
            stat = self.daily_stats[day] = DailyStat(day=day)
        stat.sessions += 1
        stat.users.add(visit.customer_id)
        stat.stay_minutes.append(visit.stay_minutes)
        self._visit_count += 1
        return slots

    def get_buckets(self) -> dict[BucketKey, HourBucket]:
        """Return the buckets ordered by date and hour.

        Returns:
            Mapping of bucket key to bucket, members in canonical order.
        """
        return {
            key: HourBucket(
                key=key,
                count=self.buckets[key].count,
                members=sorted(self.buckets[key].members),
            )
            for key in sorted(self.buckets)
        }

    def get_daily_stats(self) -> dict[date, DailyStat]:
        """Return the daily statistics ordered by date."""
        return {
            day: DailyStat(
                day=day,
                sessions=self.daily_stats[day].sessions,
                users=set(self.daily_stats[day].users),
                stay_minutes=sorted(self.daily_stats[day].stay_minutes),
            )
            for day in sorted(self.daily_stats)
        }

    def get_slot_details(self) -> list[SlotDetail]:
        """Return every recorded slot ordered by start time and customer."""
        return sorted(
            self.slot_details,
            key=lambda d: (d.slot.start, d.slot.customer_id, d.slot.end),
        )

    def get_visit_count(self) -> int:
        return self._visit_count


def aggregate_visits(visits: Iterable[Visit]) -> OccupancyAggregator:
    """Run one aggregation pass over a set of visits.

    Args:
        visits: Validated visits, in any order.

    Returns:
        Aggregator holding the pass's buckets and daily statistics.
    """
    aggregator = OccupancyAggregator()
    for visit in visits:
        aggregator.record_visit(visit)
    logger.debug(
        "Aggregated %d visits into %d hourly buckets over %d days",
        aggregator.get_visit_count(),
        len(aggregator.buckets),
        len(aggregator.daily_stats),
    )
    return aggregator
