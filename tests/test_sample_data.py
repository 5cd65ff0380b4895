"""Tests for the sample check-in log generator."""

from datetime import datetime
from pathlib import Path

from scripts.generate_sample_checkins import generate_sample_checkins
from space_occupancy.analytics.comparison import compare_periods
from space_occupancy.utils.records import load_visits


class TestGenerateSampleCheckins:
    """Tests for generate_sample_checkins."""

    def test_generated_log_loads(self, tmp_path: Path) -> None:
        """Every generated row normalizes into a visit."""
        path = generate_sample_checkins(
            str(tmp_path / "sample.csv"), start=datetime(2025, 7, 1), days=45
        )
        result = load_visits(path)
        assert result.total_rows > 0
        assert result.rejections == []
        assert len(result.visits) == result.total_rows

    def test_generated_log_compares(self, tmp_path: Path) -> None:
        """The generated log has activity in both comparison windows."""
        path = generate_sample_checkins(
            str(tmp_path / "sample.csv"), start=datetime(2025, 7, 1), days=45
        )
        report = compare_periods(load_visits(path).visits, datetime(2025, 8, 14, 23))
        assert report.current_period.summary.total_sessions > 0
        assert report.reference_period.summary.total_sessions > 0
