"""Click CLI for occupancy comparison, time-pattern and user reports.

Provides three commands:
- ``compare``: Compare month-to-date usage with the previous month.
- ``time-analysis``: Break recent months down by time of day and weekday.
- ``users``: Compute per-customer monthly usage statistics.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from space_occupancy.analytics.comparison import compare_periods
from space_occupancy.analytics.time_patterns import available_months, compare_months
from space_occupancy.analytics.user_stats import (
    calculate_user_stats,
    month_window,
    trailing_window,
)
from space_occupancy.utils.config import AppConfig, load_config
from space_occupancy.utils.export import (
    export_comparison,
    time_patterns_to_dict,
    write_json,
)
from space_occupancy.utils.logger import setup_logger
from space_occupancy.utils.records import LoadResult, RecordSourceError, load_visits

logger = logging.getLogger(__name__)


def _load_app_config(config_path: Optional[str], verbose: bool) -> AppConfig:
    config = load_config(config_path) if config_path else AppConfig()
    level = "DEBUG" if verbose else config.logging.level
    setup_logger("space_occupancy", log_file=config.logging.file, level=level)
    return config


def _load_records(input_path: str, config: AppConfig) -> LoadResult:
    try:
        result = load_visits(input_path, config.input.columns)
    except RecordSourceError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(
        f"Loaded {len(result.visits)} visits from {input_path} "
        f"({len(result.rejections)} rows skipped)"
    )
    return result


def _resolve_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


def _validate_month(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[str]:
    if value is None:
        return None
    try:
        datetime.strptime(value, "%Y-%m")
    except ValueError as exc:
        raise click.BadParameter("expected YYYY-MM") from exc
    return value


_input_option = click.option(
    "--input",
    "-i",
    "input_path",
    required=True,
    type=click.Path(),
    help="Check-in log CSV file",
)
_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Configuration YAML",
)
_now_option = click.option(
    "--now",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"]),
    default=None,
    help="Reference instant (defaults to the current time)",
)
_verbose_option = click.option("--verbose", "-v", is_flag=True, help="Verbose output")


@click.group()
@click.version_option(version="1.0.0")
def cli() -> None:
    """Space Occupancy CLI - Hourly occupancy and month-over-month usage analysis."""


@cli.command()
@_input_option
@_config_option
@click.option(
    "--output",
    "-o",
    "output_dir",
    type=click.Path(),
    help="Output directory for reports",
)
@_now_option
@_verbose_option
def compare(
    input_path: str,
    config_path: Optional[str],
    output_dir: Optional[str],
    now: Optional[datetime],
    verbose: bool,
) -> None:
    """Compare this month so far with the same span of last month.

    Example:
        space-occupancy compare -i checkins.csv -o docs/ --now 2025-08-15
    """
    config = _load_app_config(config_path, verbose)
    records = _load_records(input_path, config)
    reference_now = _resolve_now(now)

    report = compare_periods(records.visits, reference_now)
    written = export_comparison(report, output_dir or config.output.directory)

    current = report.current_period.summary
    previous = report.reference_period.summary
    change = report.comparison
    click.echo(f"Comparison over {report.metadata.comparison_days} days")
    click.echo(f"  Current:   {report.metadata.current_window_label}")
    click.echo(f"  Reference: {report.metadata.reference_window_label}")
    click.echo(
        f"  Sessions: {current.man_hours} vs {previous.man_hours} "
        f"({change.man_hours_change})"
    )
    click.echo(
        f"  Total hours: {current.total_hours}h vs {previous.total_hours}h "
        f"({change.total_hours_change})"
    )
    click.echo(
        f"  Peak occupancy: {current.peak_occupancy} vs {previous.peak_occupancy} "
        f"({change.peak_occupancy_change})"
    )
    click.echo(
        f"  Average occupancy: {current.average_occupancy} vs "
        f"{previous.average_occupancy} ({change.average_occupancy_change})"
    )
    click.echo(
        f"  Unique users: {current.unique_users} vs {previous.unique_users} "
        f"({change.unique_users_change})"
    )
    click.echo(f"\nReport saved to: {written['report']}")


@cli.command("time-analysis")
@_input_option
@_config_option
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(),
    help="Output JSON file",
)
@click.option("--months", "-m", type=int, default=None, help="Number of recent months")
@_verbose_option
def time_analysis(
    input_path: str,
    config_path: Optional[str],
    output_path: Optional[str],
    months: Optional[int],
    verbose: bool,
) -> None:
    """Break the latest months down by time of day and weekday.

    Example:
        space-occupancy time-analysis -i checkins.csv --months 3
    """
    config = _load_app_config(config_path, verbose)
    records = _load_records(input_path, config)
    if not records.visits:
        click.echo("No valid records found", err=True)
        raise SystemExit(1)

    count = months or config.analysis.time_analysis_months
    target_months = available_months(records.visits)[-count:]
    by_month = compare_months(records.visits, target_months)

    out = Path(output_path or Path(config.output.directory) / "time-analysis.json")
    write_json(
        {
            "comparison": time_patterns_to_dict(by_month),
            "metadata": {
                "generatedAt": datetime.now().isoformat(),
                "totalRecords": len(records.visits),
                "analysisMonths": target_months,
            },
        },
        out,
    )

    for month in target_months:
        click.echo(f"\n=== {month} ===")
        for name, stats in by_month[month]["time_of_day"].slots.items():
            click.echo(f"  {name}: {stats.average_occupancy}/day")
    click.echo(f"\nTime analysis saved to: {out}")


@cli.command()
@_input_option
@_config_option
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(),
    help="Output JSON file",
)
@click.option("--months", "-m", type=int, default=None, help="Trailing period in months")
@click.option(
    "--month",
    "month",
    callback=_validate_month,
    default=None,
    help="Single calendar month (YYYY-MM) instead of a trailing period",
)
@_now_option
@_verbose_option
def users(
    input_path: str,
    config_path: Optional[str],
    output_path: Optional[str],
    months: Optional[int],
    month: Optional[str],
    now: Optional[datetime],
    verbose: bool,
) -> None:
    """Compute per-customer monthly visits and hours.

    Example:
        space-occupancy users -i checkins.csv --months 6
        space-occupancy users -i checkins.csv --month 2025-07
    """
    config = _load_app_config(config_path, verbose)
    records = _load_records(input_path, config)
    reference_now = _resolve_now(now)

    if month:
        period = 1
        start, end = month_window(month)
    else:
        period = months or config.analysis.user_stats_months
        start, end = trailing_window(reference_now, period)
    stats = calculate_user_stats(records.visits, start, end, period_months=period)

    out = Path(output_path or Path(config.output.directory) / "user-data.json")
    write_json(
        {
            "users": [s.to_dict() for s in stats],
            "metadata": {
                "generatedAt": reference_now.isoformat(),
                "periodMonths": period,
                "month": month,
                "totalRecords": len(records.visits),
                "uniqueUsers": len({v.customer_id for v in records.visits}),
            },
        },
        out,
    )

    label = month if month else f"the last {period} months"
    click.echo(f"Users in {label}: {len(stats)}")
    for rank, s in enumerate(stats[:5], start=1):
        click.echo(
            f"  {rank}. {s.customer_id}: {s.monthly_visits} visits/month, "
            f"{s.monthly_hours} hours/month"
        )
    click.echo(f"\nUser statistics saved to: {out}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
