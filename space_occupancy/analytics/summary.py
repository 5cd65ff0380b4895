"""Scalar usage metrics for one analysis period."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

import numpy as np

from space_occupancy.analytics.intervals import BucketKey
from space_occupancy.analytics.occupancy import DailyStat, HourBucket
from space_occupancy.utils.records import Visit


def round_half_away(value: float, ndigits: int = 1) -> float:
    """Round to ``ndigits`` decimals, ties away from zero.

    Args:
        value: Number to round.
        ndigits: Number of decimal places to keep.

    Returns:
        Rounded value. Negative zero is returned as ``0.0``.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))
    return rounded + 0.0


@dataclass(frozen=True)
class PeriodSummary:
    """Usage metrics of one period.

    Attributes:
        total_hours: Summed stay time in hours.
        man_hours: Session count, one session counted as one person.
        total_sessions: Number of valid visits.
        unique_users: Distinct customers across all visits.
        peak_occupancy: Highest hourly occupant count.
        average_occupancy: Mean occupant count over occupied hours.
        active_days: Days with at least one check-in.
    """

    total_hours: float = 0.0
    man_hours: float = 0.0
    total_sessions: int = 0
    unique_users: int = 0
    peak_occupancy: int = 0
    average_occupancy: float = 0.0
    active_days: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def summarize_period(
    buckets: Mapping[BucketKey, HourBucket],
    daily_stats: Mapping[date, DailyStat],
    visits: Sequence[Visit],
) -> PeriodSummary:
    """Reduce one period's accumulators to scalar metrics.

    Hours without occupants have no bucket, so they do not pull the
    average down. An empty period yields all zeros.

    Args:
        buckets: Hourly buckets of the period.
        daily_stats: Per-day statistics of the period.
        visits: All valid visits of the period.

    Returns:
        PeriodSummary with fractional values rounded to one decimal.
    """
    counts = [bucket.count for bucket in buckets.values()]
    total_hours = math.fsum(stat.total_hours for stat in daily_stats.values())
    sessions = len(visits)

    return PeriodSummary(
        total_hours=round_half_away(total_hours),
        man_hours=round_half_away(sessions),
        total_sessions=sessions,
        unique_users=len({visit.customer_id for visit in visits}),
        peak_occupancy=int(max(counts)) if counts else 0,
        average_occupancy=round_half_away(float(np.mean(counts))) if counts else 0.0,
        active_days=len(daily_stats),
    )
