"""Time-of-day and day-of-week usage patterns.

Groups a month's check-ins into morning/afternoon/evening slots and
into weekdays, and computes average daily occupancy for each group.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

import numpy as np

from space_occupancy.analytics.summary import round_half_away
from space_occupancy.utils.records import Visit

logger = logging.getLogger(__name__)

TIME_OF_DAY_RANGES: dict[str, tuple[int, int]] = {
    "morning": (8, 12),
    "afternoon": (12, 18),
    "evening": (18, 23),
}

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def time_of_day(hour: int) -> str:
    """Return the time-of-day slot of an hour, or ``"other"``."""
    for name, (start, end) in TIME_OF_DAY_RANGES.items():
        if start <= hour < end:
            return name
    return "other"


def year_month(moment: date) -> str:
    return f"{moment.year}-{moment.month:02d}"


@dataclass
class GroupStats:
    """Usage of one time-of-day slot or weekday within a month.

    Attributes:
        average_occupancy: Sessions per observed day.
        total_sessions: Number of check-ins in the group.
        unique_users: Distinct customers in the group.
        total_hours: Summed stay time in hours.
        days_analyzed: Days used as the averaging denominator.
        average_session_length: Mean stay in hours.
    """

    average_occupancy: float = 0.0
    total_sessions: int = 0
    unique_users: int = 0
    total_hours: float = 0.0
    days_analyzed: int = 0
    average_session_length: float = 0.0


@dataclass
class TimeOfDayAnalysis:
    """Time-of-day breakdown of one month."""

    slots: dict[str, GroupStats] = field(default_factory=dict)
    daily_occupancy: dict[date, dict[str, int]] = field(default_factory=dict)
    days_analyzed: int = 0
    total_records: int = 0


def _group_stats(visits: Sequence[Visit], days: int) -> GroupStats:
    stays = [visit.stay_minutes / 60 for visit in visits]
    total_hours = float(np.sum(stays)) if stays else 0.0
    return GroupStats(
        average_occupancy=round_half_away(len(visits) / days) if days else 0.0,
        total_sessions=len(visits),
        unique_users=len({visit.customer_id for visit in visits}),
        total_hours=round_half_away(total_hours),
        days_analyzed=days,
        average_session_length=(
            round_half_away(total_hours / len(visits)) if visits else 0.0
        ),
    )


def _month_visits(visits: Iterable[Visit], month: str) -> list[Visit]:
    return [visit for visit in visits if year_month(visit.checkin) == month]


def analyze_time_of_day(visits: Iterable[Visit], month: str) -> TimeOfDayAnalysis:
    """Break one month's check-ins down by time of day.

    Check-ins outside the named slots are ignored. Averages are taken
    over the days that have at least one check-in in any named slot.

    Args:
        visits: All visits.
        month: Month to analyze, as ``YYYY-MM``.

    Returns:
        TimeOfDayAnalysis for the month.
    """
    month_visits = _month_visits(visits, month)
    grouped: dict[str, list[Visit]] = {name: [] for name in TIME_OF_DAY_RANGES}
    daily: dict[date, dict[str, int]] = {}

    for visit in month_visits:
        slot = time_of_day(visit.checkin.hour)
        if slot == "other":
            continue
        grouped[slot].append(visit)
        day = daily.setdefault(
            visit.checkin.date(), {name: 0 for name in TIME_OF_DAY_RANGES}
        )
        day[slot] += 1

    days = len(daily)
    return TimeOfDayAnalysis(
        slots={name: _group_stats(group, days) for name, group in grouped.items()},
        daily_occupancy=dict(sorted(daily.items())),
        days_analyzed=days,
        total_records=len(month_visits),
    )


def analyze_day_of_week(visits: Iterable[Visit], month: str) -> dict[str, GroupStats]:
    """Break one month's check-ins down by weekday.

    Each weekday is averaged over the number of distinct dates on which
    it had check-ins.

    Args:
        visits: All visits.
        month: Month to analyze, as ``YYYY-MM``.

    Returns:
        Mapping of weekday name (Monday first) to its statistics.
    """
    grouped: dict[int, list[Visit]] = defaultdict(list)
    dates: dict[int, set[date]] = defaultdict(set)
    for visit in _month_visits(visits, month):
        weekday = visit.checkin.weekday()
        grouped[weekday].append(visit)
        dates[weekday].add(visit.checkin.date())

    return {
        name: _group_stats(grouped[index], len(dates[index]))
        for index, name in enumerate(DAY_NAMES)
    }


def available_months(visits: Iterable[Visit]) -> list[str]:
    """Return the sorted ``YYYY-MM`` months that have check-ins."""
    return sorted({year_month(visit.checkin) for visit in visits})


def compare_months(visits: Iterable[Visit], months: Sequence[str]) -> dict[str, dict]:
    """Run both pattern analyses for each requested month.

    Args:
        visits: All visits.
        months: Months to analyze, as ``YYYY-MM``.

    Returns:
        Mapping of month to ``time_of_day``, ``day_of_week`` and
        ``total_records`` entries.
    """
    visits = list(visits)
    result = {}
    for month in months:
        time_analysis = analyze_time_of_day(visits, month)
        result[month] = {
            "time_of_day": time_analysis,
            "day_of_week": analyze_day_of_week(visits, month),
            "total_records": time_analysis.total_records,
        }
        logger.info("Analyzed %s: %d records", month, time_analysis.total_records)
    return result
