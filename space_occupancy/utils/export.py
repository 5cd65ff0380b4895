"""Report export to JSON and CSV files.

Turns comparison reports and supplementary analyses into plain
dictionaries and writes them, along with the per-hour occupancy
tables, to an output directory.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict
from datetime import date
from pathlib import Path

import pandas as pd

from space_occupancy.analytics.comparison import ComparisonReport, PeriodAnalysis
from space_occupancy.analytics.intervals import BucketKey
from space_occupancy.analytics.occupancy import DailyStat, HourBucket, SlotDetail
from space_occupancy.analytics.summary import round_half_away

logger = logging.getLogger(__name__)

HOURLY_COLUMNS = ["date_hour", "occupancy", "total_minutes", "users"]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camel_keys(data: Mapping) -> dict:
    return {_camel(key): value for key, value in data.items()}


def buckets_to_dict(buckets: Mapping[BucketKey, HourBucket]) -> dict:
    """Convert hourly buckets to a dict keyed by ``YYYY-MM-DD-HH``."""
    return {
        key.label: {
            "count": bucket.count,
            "totalMinutes": bucket.total_minutes,
            "users": [
                {"name": customer_id, "duration": minutes}
                for customer_id, minutes in bucket.members
            ],
        }
        for key, bucket in buckets.items()
    }


def daily_stats_to_dict(daily_stats: Mapping[date, DailyStat]) -> dict:
    """Convert daily statistics to a dict keyed by ISO date."""
    return {
        day.isoformat(): {
            "totalHours": stat.total_hours,
            "totalSessions": stat.sessions,
            "uniqueUsers": stat.unique_users,
        }
        for day, stat in daily_stats.items()
    }


def slot_details_to_list(details: list[SlotDetail]) -> list[dict]:
    return [
        {
            "date": detail.slot.key.date.isoformat(),
            "hour": detail.slot.key.hour,
            "dateHour": detail.slot.key.label,
            "duration": detail.slot.duration_minutes,
            "checkin": detail.slot.start.isoformat(),
            "checkout": detail.slot.end.isoformat(),
            "customerName": detail.slot.customer_id,
            "originalStayMinutes": detail.stay_minutes,
        }
        for detail in details
    ]


def period_to_dict(period: PeriodAnalysis) -> dict:
    return {
        "period": period.window.month,
        "records": len(period.visits),
        "summary": _camel_keys(period.summary.to_dict()),
        "buckets": buckets_to_dict(period.buckets),
        "dailyStats": daily_stats_to_dict(period.daily_stats),
    }


def report_to_dict(report: ComparisonReport) -> dict:
    """Convert a comparison report to a JSON-serializable dict.

    Args:
        report: Report produced by ``compare_periods``.

    Returns:
        Dictionary with ``currentPeriod``, ``referencePeriod``,
        ``comparison`` and ``metadata`` keys.
    """
    return {
        "currentPeriod": period_to_dict(report.current_period),
        "referencePeriod": period_to_dict(report.reference_period),
        "comparison": _camel_keys(asdict(report.comparison)),
        "metadata": {
            "generatedAt": report.metadata.generated_at.isoformat(),
            "currentWindowLabel": report.metadata.current_window_label,
            "referenceWindowLabel": report.metadata.reference_window_label,
            "comparisonDays": report.metadata.comparison_days,
        },
    }


def time_patterns_to_dict(by_month: Mapping[str, dict]) -> dict:
    """Convert ``compare_months`` output to a JSON-serializable dict."""
    result = {}
    for month, analysis in by_month.items():
        time_of_day = analysis["time_of_day"]
        result[month] = {
            "timeSlots": {
                "timeSlotAverages": {
                    name: _camel_keys(asdict(stats))
                    for name, stats in time_of_day.slots.items()
                },
                "dailyOccupancy": {
                    day.isoformat(): counts
                    for day, counts in time_of_day.daily_occupancy.items()
                },
                "daysAnalyzed": time_of_day.days_analyzed,
                "totalRecords": time_of_day.total_records,
            },
            "dayOfWeek": {
                name: _camel_keys(asdict(stats))
                for name, stats in analysis["day_of_week"].items()
            },
            "metadata": {"month": month, "totalRecords": analysis["total_records"]},
        }
    return result


def hourly_frame(buckets: Mapping[BucketKey, HourBucket]) -> pd.DataFrame:
    """Build the per-hour occupancy table.

    Args:
        buckets: Hourly buckets, in the order rows should appear.

    Returns:
        DataFrame with ``date_hour``, ``occupancy``, ``total_minutes``
        and ``users`` columns. Minutes are rounded to whole numbers.
    """
    rows = [
        {
            "date_hour": key.label,
            "occupancy": bucket.count,
            "total_minutes": int(round_half_away(bucket.total_minutes, 0)),
            "users": ";".join(
                f"{customer_id}({int(round_half_away(minutes, 0))}min)"
                for customer_id, minutes in bucket.members
            ),
        }
        for key, bucket in sorted(buckets.items())
    ]
    return pd.DataFrame(rows, columns=HOURLY_COLUMNS)


def write_json(data: dict, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return output_path


def write_report_json(report: ComparisonReport, output_path: Path) -> Path:
    return write_json(report_to_dict(report), output_path)


def write_hourly_csv(buckets: Mapping[BucketKey, HourBucket], output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    hourly_frame(buckets).to_csv(output_path, index=False)
    return output_path


def export_comparison(report: ComparisonReport, output_dir: str) -> dict[str, Path]:
    """Write the report and its intermediate tables to a directory.

    Args:
        report: Report produced by ``compare_periods``.
        output_dir: Directory to write into. Created if missing.

    Returns:
        Mapping of export name to written file path.
    """
    out = Path(output_dir)
    metadata = report_to_dict(report)["metadata"]
    written = {
        "report": write_report_json(report, out / "realtime-analysis.json"),
        "current_hourly": write_hourly_csv(
            report.current_period.buckets, out / "current-month-hourly.csv"
        ),
        "reference_hourly": write_hourly_csv(
            report.reference_period.buckets, out / "previous-month-hourly.csv"
        ),
        "daily_stats": write_json(
            {
                "current": daily_stats_to_dict(report.current_period.daily_stats),
                "previous": daily_stats_to_dict(report.reference_period.daily_stats),
                "metadata": metadata,
            },
            out / "daily-stats.json",
        ),
        "slot_details": write_json(
            {
                "current": slot_details_to_list(report.current_period.slot_details),
                "previous": slot_details_to_list(
                    report.reference_period.slot_details
                ),
                "metadata": metadata,
            },
            out / "time-slots-detail.json",
        ),
    }
    for name, path in written.items():
        logger.debug("Wrote %s to %s", name, path)
    logger.info("Exported %d files to %s", len(written), out)
    return written
