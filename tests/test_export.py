"""Tests for report export."""

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from space_occupancy.analytics.comparison import ComparisonReport, compare_periods
from space_occupancy.analytics.occupancy import aggregate_visits
from space_occupancy.analytics.time_patterns import compare_months
from space_occupancy.utils.export import (
    HOURLY_COLUMNS,
    export_comparison,
    hourly_frame,
    report_to_dict,
    time_patterns_to_dict,
)
from space_occupancy.utils.records import Visit


@pytest.fixture
def report() -> ComparisonReport:
    """Comparison report with activity in both windows."""
    visits = [
        Visit("alice", datetime(2024, 3, 5, 23, 33, 42), stay_minutes=90),
        Visit("bob", datetime(2024, 3, 5, 23, 0), stay_minutes=30),
        Visit("carol", datetime(2024, 2, 3, 9), stay_minutes=60),
    ]
    return compare_periods(visits, datetime(2024, 3, 10, 18))


class TestReportToDict:
    """Tests for report_to_dict."""

    def test_top_level_keys(self, report: ComparisonReport) -> None:
        """The report exposes both periods, the comparison and metadata."""
        data = report_to_dict(report)
        assert set(data) == {"currentPeriod", "referencePeriod", "comparison", "metadata"}

    def test_summary_and_comparison_keys(self, report: ComparisonReport) -> None:
        """Metric names are camel-cased."""
        data = report_to_dict(report)
        assert data["currentPeriod"]["summary"]["peakOccupancy"] == 2
        assert data["currentPeriod"]["summary"]["manHours"] == 2
        assert data["comparison"]["uniqueUsersChange"] == "+1"
        assert data["metadata"]["currentWindowLabel"] == "2024-03-01 to 2024-03-10"
        assert data["metadata"]["generatedAt"] == "2024-03-10T18:00:00"

    def test_buckets_keyed_by_label(self, report: ComparisonReport) -> None:
        """Buckets are keyed by YYYY-MM-DD-HH."""
        buckets = report_to_dict(report)["currentPeriod"]["buckets"]
        assert list(buckets) == ["2024-03-05-23", "2024-03-06-00", "2024-03-06-01"]
        assert buckets["2024-03-05-23"]["count"] == 2

    def test_json_serializable(self, report: ComparisonReport) -> None:
        """The dict round-trips through json."""
        json.dumps(report_to_dict(report), ensure_ascii=False)


class TestHourlyFrame:
    """Tests for hourly_frame."""

    def test_rows(self, report: ComparisonReport) -> None:
        """One row per occupied hour with rounded minutes and user detail."""
        df = hourly_frame(report.current_period.buckets)
        assert list(df.columns) == HOURLY_COLUMNS
        first = df.iloc[0]
        assert first["date_hour"] == "2024-03-05-23"
        assert first["occupancy"] == 2
        assert first["total_minutes"] == 56
        assert first["users"] == "alice(26min);bob(30min)"

    def test_half_minutes_round_up(self) -> None:
        """Half minutes round up in both the total and the user detail."""
        visits = [
            Visit("dana", datetime(2024, 3, 5, 10, 0), stay_minutes=2.5),
            Visit("erin", datetime(2024, 3, 5, 10, 30), stay_minutes=1.5),
        ]
        df = hourly_frame(aggregate_visits(visits).get_buckets())
        row = df.iloc[0]
        assert row["total_minutes"] == 4
        assert row["users"] == "dana(3min);erin(2min)"

    def test_empty(self) -> None:
        """Empty buckets produce an empty frame with headers."""
        df = hourly_frame({})
        assert df.empty
        assert list(df.columns) == HOURLY_COLUMNS


class TestExportComparison:
    """Tests for export_comparison."""

    def test_writes_all_files(self, report: ComparisonReport, tmp_path: Path) -> None:
        """All report files are written to the output directory."""
        written = export_comparison(report, str(tmp_path / "out"))
        names = sorted(p.name for p in written.values())
        assert names == [
            "current-month-hourly.csv",
            "daily-stats.json",
            "previous-month-hourly.csv",
            "realtime-analysis.json",
            "time-slots-detail.json",
        ]
        for path in written.values():
            assert path.exists()

        hourly = pd.read_csv(written["current_hourly"])
        assert len(hourly) == 3
        details = json.loads(written["slot_details"].read_text(encoding="utf-8"))
        assert len(details["current"]) == 4
        assert details["previous"][0]["customerName"] == "carol"


class TestTimePatternsToDict:
    """Tests for time_patterns_to_dict."""

    def test_structure(self) -> None:
        """Each month carries time slot and weekday sections."""
        visits = [Visit("a", datetime(2025, 8, 4, 9), stay_minutes=60)]
        data = time_patterns_to_dict(compare_months(visits, ["2025-08"]))
        month = data["2025-08"]
        assert month["timeSlots"]["timeSlotAverages"]["morning"]["totalSessions"] == 1
        assert month["timeSlots"]["dailyOccupancy"]["2025-08-04"]["morning"] == 1
        assert month["dayOfWeek"]["Monday"]["averageOccupancy"] == 1.0
        json.dumps(data)
