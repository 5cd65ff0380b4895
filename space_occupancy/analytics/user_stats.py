"""Per-customer monthly usage statistics."""

import calendar
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import date, datetime

from space_occupancy.analytics.summary import round_half_away
from space_occupancy.analytics.time_patterns import year_month
from space_occupancy.utils.records import Visit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserStats:
    """Usage of one customer over a period.

    Attributes:
        customer_id: Customer identifier.
        monthly_visits: Visits per month of the period.
        monthly_hours: Stay hours per month of the period.
        active_months: Months with at least one visit.
        total_visits: Visits in the period.
        total_hours: Stay hours in the period.
        first_checkin: Earliest check-in date over all records.
    """

    customer_id: str
    monthly_visits: float
    monthly_hours: float
    active_months: int
    total_visits: int
    total_hours: float
    first_checkin: date

    def to_dict(self) -> dict:
        data = asdict(self)
        data["first_checkin"] = self.first_checkin.isoformat()
        return data


def shift_months(moment: datetime, months: int) -> datetime:
    """Move ``moment`` back by ``months`` calendar months, clamping the day."""
    index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(index, 12)
    day = min(moment.day, calendar.monthrange(year, month + 1)[1])
    return moment.replace(year=year, month=month + 1, day=day)


def trailing_window(now: datetime, months: int) -> tuple[datetime, datetime]:
    """Return the ``(start, end)`` range covering the last ``months`` months."""
    return shift_months(now, months), now


def month_window(month: str) -> tuple[datetime, datetime]:
    """Return the ``(start, end)`` range of a ``YYYY-MM`` month."""
    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return (
        datetime(year, month_number, 1),
        datetime(year, month_number, last_day, 23, 59, 59, 999999),
    )


def calculate_user_stats(
    visits: Iterable[Visit],
    start: datetime,
    end: datetime,
    period_months: int = 1,
) -> list[UserStats]:
    """Compute per-customer monthly averages for a period.

    Months without visits count as zero, so averages divide by the full
    period length.

    Args:
        visits: All visits. First check-in dates are taken from all of
            them, not only those inside the period.
        start: First instant of the period.
        end: Last instant of the period.
        period_months: Number of months the period spans.

    Returns:
        UserStats sorted by monthly visits, highest first.
    """
    visits = list(visits)
    period_months = max(period_months, 1)

    first_checkin: dict[str, datetime] = {}
    for visit in visits:
        seen = first_checkin.get(visit.customer_id)
        if seen is None or visit.checkin < seen:
            first_checkin[visit.customer_id] = visit.checkin

    counts: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    minutes: dict[str, float] = defaultdict(float)
    for visit in visits:
        if not start <= visit.checkin <= end:
            continue
        counts[visit.customer_id][year_month(visit.checkin)] += 1
        minutes[visit.customer_id] += visit.stay_minutes

    result = []
    for customer_id, monthly in counts.items():
        total_visits = sum(monthly.values())
        total_minutes = minutes[customer_id]
        result.append(
            UserStats(
                customer_id=customer_id,
                monthly_visits=round_half_away(total_visits / period_months),
                monthly_hours=round_half_away(total_minutes / (60 * period_months)),
                active_months=len(monthly),
                total_visits=total_visits,
                total_hours=round_half_away(total_minutes / 60),
                first_checkin=first_checkin[customer_id].date(),
            )
        )

    result.sort(key=lambda s: (-s.monthly_visits, s.customer_id))
    logger.info("Computed statistics for %d users", len(result))
    return result
