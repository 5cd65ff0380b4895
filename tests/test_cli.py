"""Tests for the Click CLI module."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from space_occupancy.cli import cli, main

HEADER = "顧客名,チェックイン日時,滞在時間\n"


@pytest.fixture
def checkin_csv(tmp_path: Path) -> Path:
    """Check-in log with rows in August and July 2025 and one bad row."""
    path = tmp_path / "checkins.csv"
    path.write_text(
        HEADER
        + "alice,2025-08-02 10:00:00 +0900,02:00:00\n"
        + "bob,2025-08-02 10:30:00 +0900,01:00:00\n"
        + "alice,2025-07-03 10:00:00 +0900,01:00:00\n"
        + "carol,2025-07-04 19:00:00 +0900,00:45:00\n"
        + "dave,not a date,01:00:00\n",
        encoding="utf-8",
    )
    return path


class TestCliGroup:
    """Tests for the CLI group and basic options."""

    def test_cli_help(self) -> None:
        """CLI shows help text."""
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Space Occupancy CLI" in result.output

    def test_cli_version(self) -> None:
        """CLI shows version."""
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_main_is_callable(self) -> None:
        """main entry point is callable."""
        assert callable(main)


class TestCompareCommand:
    """Tests for the compare command."""

    def test_compare_help(self) -> None:
        """Compare command shows help."""
        result = CliRunner().invoke(cli, ["compare", "--help"])
        assert result.exit_code == 0
        assert "--now" in result.output

    def test_compare_writes_reports(self, checkin_csv: Path, tmp_path: Path) -> None:
        """Compare command writes the report files and prints a summary."""
        out = tmp_path / "out"
        result = CliRunner().invoke(
            cli,
            ["compare", "-i", str(checkin_csv), "-o", str(out), "--now", "2025-08-15T12:00:00"],
        )
        assert result.exit_code == 0, result.output
        assert "Loaded 4 visits" in result.output
        assert "1 rows skipped" in result.output
        assert "2025-08-01 to 2025-08-15" in result.output
        assert (out / "current-month-hourly.csv").exists()

        report = json.loads((out / "realtime-analysis.json").read_text(encoding="utf-8"))
        assert report["currentPeriod"]["summary"]["totalSessions"] == 2
        assert report["referencePeriod"]["summary"]["totalSessions"] == 2
        assert report["comparison"]["totalSessionsChange"] == "+0"
        assert report["comparison"]["totalHoursChange"] == "+66.7%"

    def test_compare_missing_input(self, tmp_path: Path) -> None:
        """A missing record file exits with status 1."""
        result = CliRunner().invoke(
            cli, ["compare", "-i", str(tmp_path / "missing.csv"), "-o", str(tmp_path)]
        )
        assert result.exit_code == 1
        assert "not found" in result.output


class TestTimeAnalysisCommand:
    """Tests for the time-analysis command."""

    def test_time_analysis(self, checkin_csv: Path, tmp_path: Path) -> None:
        """Time analysis covers the latest months."""
        out = tmp_path / "time.json"
        result = CliRunner().invoke(
            cli, ["time-analysis", "-i", str(checkin_csv), "-o", str(out), "-m", "1"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["metadata"]["analysisMonths"] == ["2025-08"]
        assert "2025-08" in data["comparison"]

    def test_time_analysis_no_records(self, tmp_path: Path) -> None:
        """An input without valid rows exits with status 1."""
        path = tmp_path / "empty.csv"
        path.write_text(HEADER, encoding="utf-8")
        result = CliRunner().invoke(cli, ["time-analysis", "-i", str(path)])
        assert result.exit_code == 1


class TestUsersCommand:
    """Tests for the users command."""

    def test_users(self, checkin_csv: Path, tmp_path: Path) -> None:
        """User statistics are written for the trailing period."""
        out = tmp_path / "users.json"
        result = CliRunner().invoke(
            cli,
            ["users", "-i", str(checkin_csv), "-o", str(out), "-m", "6", "--now", "2025-08-15"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["users"][0]["customer_id"] == "alice"
        assert data["users"][0]["total_visits"] == 2
        assert data["metadata"]["uniqueUsers"] == 3

    def test_users_single_month(self, checkin_csv: Path, tmp_path: Path) -> None:
        """--month restricts the statistics to one calendar month."""
        out = tmp_path / "july.json"
        result = CliRunner().invoke(
            cli, ["users", "-i", str(checkin_csv), "-o", str(out), "--month", "2025-07"]
        )
        assert result.exit_code == 0, result.output
        assert "Users in 2025-07: 2" in result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert [u["customer_id"] for u in data["users"]] == ["alice", "carol"]
        assert data["users"][0]["total_visits"] == 1
        assert data["users"][0]["monthly_visits"] == 1.0
        assert data["users"][1]["total_hours"] == 0.8
        assert data["metadata"]["periodMonths"] == 1
        assert data["metadata"]["month"] == "2025-07"

    def test_users_bad_month(self, checkin_csv: Path) -> None:
        """A malformed --month value is a usage error."""
        result = CliRunner().invoke(
            cli, ["users", "-i", str(checkin_csv), "--month", "July"]
        )
        assert result.exit_code == 2
        assert "YYYY-MM" in result.output
