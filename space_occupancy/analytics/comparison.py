"""Month-to-date comparison against the same span of the previous month.

Builds the current and reference windows from an explicit reference
instant, analyzes each window independently and reports the change of
every period metric.
"""

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from space_occupancy.analytics.intervals import BucketKey
from space_occupancy.analytics.occupancy import (
    DailyStat,
    HourBucket,
    SlotDetail,
    aggregate_visits,
)
from space_occupancy.analytics.summary import (
    PeriodSummary,
    round_half_away,
    summarize_period,
)
from space_occupancy.utils.records import Visit

logger = logging.getLogger(__name__)

INFINITE_INCREASE = "+∞%"
NO_CHANGE = "0%"


@dataclass(frozen=True)
class AnalysisWindow:
    """Inclusive time range of check-ins belonging to one period.

    Attributes:
        start: First instant of the window.
        end: Last instant of the window.
    """

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    @property
    def month(self) -> str:
        """Return the ``YYYY-MM`` month the window starts in."""
        return self.start.strftime("%Y-%m")

    @property
    def label(self) -> str:
        return f"{self.start:%Y-%m-%d} to {self.end:%Y-%m-%d}"


def current_window(now: datetime) -> AnalysisWindow:
    """Return the window from the first of ``now``'s month through ``now``."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return AnalysisWindow(start=start, end=now)


def reference_window(now: datetime) -> AnalysisWindow:
    """Return the same day-of-month span in the previous month.

    The window ends at the same day and time of day as ``now``. If the
    previous month has no such day, it runs to the end of that month.

    Args:
        now: Reference instant of the comparison.

    Returns:
        AnalysisWindow covering the previous month's matching span.
    """
    year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    if now.day <= last_day:
        end = now.replace(year=year, month=month)
    else:
        end = datetime(year, month, last_day, 23, 59, 59, 999999)
    return AnalysisWindow(start=start, end=end)


def percent_change(current: float, previous: float) -> str:
    """Format the relative change from ``previous`` to ``current``.

    Args:
        current: Metric value of the current period.
        previous: Metric value of the reference period.

    Returns:
        Signed percentage such as ``"+12.5%"`` or ``"-100%"``.
        ``"+∞%"`` when only the current period is non-zero and
        ``"0%"`` when both are zero.
    """
    if previous == 0:
        return INFINITE_INCREASE if current > 0 else NO_CHANGE
    change = (current - previous) / previous * 100
    rounded = round_half_away(change)
    text = str(int(rounded)) if rounded.is_integer() else f"{rounded:.1f}"
    return f"{'+' if change >= 0 else ''}{text}%"


def absolute_change(current: int, previous: int) -> str:
    """Format the signed difference ``current - previous``, e.g. ``"+3"``."""
    return f"{int(current) - int(previous):+d}"


@dataclass(frozen=True)
class ComparisonResult:
    """Per-metric change between the current and reference periods."""

    total_hours_change: str = NO_CHANGE
    man_hours_change: str = NO_CHANGE
    unique_users_change: str = "+0"
    total_sessions_change: str = "+0"
    peak_occupancy_change: str = "+0"
    average_occupancy_change: str = NO_CHANGE


def compare_summaries(
    current: PeriodSummary, previous: PeriodSummary
) -> ComparisonResult:
    """Compute the change of every metric between two period summaries.

    Args:
        current: Summary of the current period.
        previous: Summary of the reference period.

    Returns:
        ComparisonResult with percentage and absolute deltas.
    """
    return ComparisonResult(
        total_hours_change=percent_change(current.total_hours, previous.total_hours),
        man_hours_change=percent_change(current.man_hours, previous.man_hours),
        unique_users_change=absolute_change(
            current.unique_users, previous.unique_users
        ),
        total_sessions_change=absolute_change(
            current.total_sessions, previous.total_sessions
        ),
        peak_occupancy_change=absolute_change(
            current.peak_occupancy, previous.peak_occupancy
        ),
        average_occupancy_change=percent_change(
            current.average_occupancy, previous.average_occupancy
        ),
    )


@dataclass
class PeriodAnalysis:
    """Full analysis of one window: its visits, accumulators and summary."""

    window: AnalysisWindow
    visits: list[Visit] = field(default_factory=list)
    summary: PeriodSummary = field(default_factory=PeriodSummary)
    buckets: dict[BucketKey, HourBucket] = field(default_factory=dict)
    daily_stats: dict[date, DailyStat] = field(default_factory=dict)
    slot_details: list[SlotDetail] = field(default_factory=list)


@dataclass(frozen=True)
class ReportMetadata:
    """Provenance of a comparison report."""

    generated_at: datetime
    current_window_label: str
    reference_window_label: str
    comparison_days: int


@dataclass
class ComparisonReport:
    """Current and reference period analyses plus their comparison."""

    current_period: PeriodAnalysis
    reference_period: PeriodAnalysis
    comparison: ComparisonResult
    metadata: ReportMetadata


def analyze_period(visits: Iterable[Visit], window: AnalysisWindow) -> PeriodAnalysis:
    """Aggregate and summarize the visits that checked in within a window.

    Args:
        visits: Candidate visits; those outside the window are ignored.
        window: Window to analyze.

    Returns:
        PeriodAnalysis of the window.
    """
    selected = [visit for visit in visits if window.contains(visit.checkin)]
    aggregator = aggregate_visits(selected)
    buckets = aggregator.get_buckets()
    daily_stats = aggregator.get_daily_stats()
    return PeriodAnalysis(
        window=window,
        visits=selected,
        summary=summarize_period(buckets, daily_stats, selected),
        buckets=buckets,
        daily_stats=daily_stats,
        slot_details=aggregator.get_slot_details(),
    )


def compare_periods(
    visits: Iterable[Visit],
    now: datetime,
    generated_at: Optional[datetime] = None,
) -> ComparisonReport:
    """Compare month-to-date usage with the same span of the previous month.

    The result depends only on ``visits`` and ``now``.

    Args:
        visits: All valid visits, in any order.
        now: Reference instant closing the current window.
        generated_at: Timestamp recorded in the metadata. Defaults to ``now``.

    Returns:
        ComparisonReport for the two windows.
    """
    visits = list(visits)
    current = current_window(now)
    reference = reference_window(now)
    logger.info("Current period: %s", current.label)
    logger.info("Reference period: %s", reference.label)

    current_analysis = analyze_period(visits, current)
    reference_analysis = analyze_period(visits, reference)
    logger.info(
        "Records: current %d, reference %d",
        len(current_analysis.visits),
        len(reference_analysis.visits),
    )

    return ComparisonReport(
        current_period=current_analysis,
        reference_period=reference_analysis,
        comparison=compare_summaries(
            current_analysis.summary, reference_analysis.summary
        ),
        metadata=ReportMetadata(
            generated_at=generated_at or now,
            current_window_label=current.label,
            reference_window_label=reference.label,
            comparison_days=now.day,
        ),
    )
