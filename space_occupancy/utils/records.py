"""Visit record loading and normalization.

Reads the check-in log CSV, normalizes each raw row into a typed
``Visit`` and records a rejection for every row that cannot be used.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)

_TZ_SUFFIX = re.compile(r"\s*[+-]\d{2}:?\d{2}$")

_DASHED_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
)

_SLASHED_FORMATS = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
)


class RecordSourceError(Exception):
    """Raised when the record source itself cannot be read."""


@dataclass(frozen=True)
class Visit:
    """One check-in/check-out session by one customer.

    Attributes:
        customer_id: Customer identifier as it appears in the log.
        checkin: Check-in time (local wall-clock, naive).
        stay_minutes: Length of the stay in minutes.
        checkout: Check-out time. Derived from ``checkin + stay_minutes``
            when not given.
    """

    customer_id: str
    checkin: datetime
    stay_minutes: float
    checkout: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.stay_minutes < 0:
            raise ValueError(f"Negative stay duration: {self.stay_minutes}")
        if self.checkout is None:
            object.__setattr__(
                self, "checkout", self.checkin + timedelta(minutes=self.stay_minutes)
            )
        if self.checkout < self.checkin:
            raise ValueError(
                f"Checkout {self.checkout} precedes checkin {self.checkin}"
            )


@dataclass
class ColumnMapping:
    """CSV column names used to build a visit."""

    customer: list[str] = field(
        default_factory=lambda: ["顧客名", "会員番号", "ユーザーID", "メンバーID"]
    )
    checkin: str = "チェックイン日時"
    checkout: str = "チェックアウト日時"
    stay: str = "滞在時間"


@dataclass
class RowRejection:
    """A dropped input row and the reason it was dropped."""

    line_number: int
    reason: str


@dataclass
class RowResult:
    """Outcome of normalizing one raw row: either a visit or a rejection."""

    visit: Optional[Visit] = None
    rejection: Optional[RowRejection] = None

    @property
    def ok(self) -> bool:
        return self.visit is not None


@dataclass
class LoadResult:
    """Visits loaded from a source together with the rows that were dropped."""

    visits: list[Visit] = field(default_factory=list)
    rejections: list[RowRejection] = field(default_factory=list)
    total_rows: int = 0


def parse_checkin(text: Optional[str]) -> Optional[datetime]:
    """Parse a check-in timestamp.

    Accepts ``2024-03-29 23:33:42 +0900`` (the offset is dropped and the
    time kept as local wall-clock), ISO ``T``-separated values and the
    slashed ``2025/8/1 9:15:50`` form.

    Args:
        text: Raw timestamp string.

    Returns:
        Naive datetime, or None if the value is blank or unparsable.
    """
    if not text:
        return None
    cleaned = _TZ_SUFFIX.sub("", text.strip())
    formats = _DASHED_FORMATS if "-" in cleaned else _SLASHED_FORMATS
    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
    return None


def parse_stay_minutes(text: Optional[str]) -> Optional[float]:
    """Convert a stay duration string into minutes.

    ``H:MM:SS`` and ``H:MM`` are read as clock durations; a bare number
    is taken to already be in minutes.

    Args:
        text: Raw duration string.

    Returns:
        Duration in minutes, or None if the value is blank or unparsable.
    """
    if not text:
        return None
    parts = text.strip().split(":")
    if len(parts) > 3:
        return None
    try:
        values = [float(p) for p in parts]
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in values):
        return None
    if len(values) == 3:
        hours, minutes, seconds = values
        return hours * 60 + minutes + seconds / 60
    if len(values) == 2:
        hours, minutes = values
        return hours * 60 + minutes
    return values[0]


def normalize_row(
    row: dict, columns: ColumnMapping, line_number: int = 0
) -> RowResult:
    """Normalize one raw CSV row into a Visit.

    When a checkout column is present and parsable, the stay duration is
    taken from the checkout minus the checkin so that hourly and daily
    totals agree.

    Args:
        row: Mapping of column name to raw cell value.
        columns: Column names to read from.
        line_number: Line number in the source file, for diagnostics.

    Returns:
        RowResult holding the visit, or the reason the row was rejected.
    """
    cleaned = {
        str(k).strip(): ("" if v is None else str(v).strip()) for k, v in row.items()
    }

    def reject(reason: str) -> RowResult:
        return RowResult(rejection=RowRejection(line_number, reason))

    customer_id = next((cleaned[c] for c in columns.customer if cleaned.get(c)), "")
    checkin_raw = cleaned.get(columns.checkin, "")
    stay_raw = cleaned.get(columns.stay, "")

    if not customer_id or not checkin_raw or not stay_raw:
        return reject("missing customer, checkin or stay duration")

    checkin = parse_checkin(checkin_raw)
    if checkin is None:
        return reject(f"unparsable checkin timestamp {checkin_raw!r}")

    stay_minutes = parse_stay_minutes(stay_raw)
    if stay_minutes is None:
        return reject(f"unparsable stay duration {stay_raw!r}")
    if stay_minutes <= 0:
        return reject(f"non-positive stay duration {stay_raw!r}")

    checkout = parse_checkin(cleaned.get(columns.checkout, ""))
    if checkout is not None:
        if checkout <= checkin:
            return reject(f"checkout {checkout} is not after checkin {checkin}")
        # The recorded interval wins over the stay column.
        stay_minutes = (checkout - checkin).total_seconds() / 60

    try:
        visit = Visit(
            customer_id=customer_id,
            checkin=checkin,
            stay_minutes=stay_minutes,
            checkout=checkout,
        )
    except (OverflowError, ValueError) as exc:
        return reject(f"stay duration {stay_raw!r} out of range: {exc}")
    return RowResult(visit=visit)


def load_visits(csv_path: str, columns: Optional[ColumnMapping] = None) -> LoadResult:
    """Load and normalize all visits from a check-in log CSV.

    Args:
        csv_path: Path to the CSV file.
        columns: Column names to read. Defaults to ``ColumnMapping()``.

    Returns:
        LoadResult with the valid visits and every rejected row.

    Raises:
        RecordSourceError: If the file is missing or cannot be parsed as CSV.
    """
    columns = columns or ColumnMapping()
    path = Path(csv_path)
    if not path.exists():
        raise RecordSourceError(f"Record file not found: {csv_path}")

    try:
        df = pd.read_csv(
            path, dtype=str, keep_default_na=False, encoding="utf-8-sig"
        )
    except pd.errors.EmptyDataError:
        logger.warning("Record file %s is empty", csv_path)
        return LoadResult()
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise RecordSourceError(f"Cannot read record file {csv_path}: {exc}") from exc

    result = LoadResult(total_rows=len(df))
    for index, row in enumerate(df.to_dict(orient="records")):
        outcome = normalize_row(row, columns, line_number=index + 2)
        if outcome.ok:
            result.visits.append(outcome.visit)
        else:
            logger.warning(
                "Skipping line %d: %s",
                outcome.rejection.line_number,
                outcome.rejection.reason,
            )
            result.rejections.append(outcome.rejection)

    logger.info(
        "Loaded %d visits from %s (%d rejected)",
        len(result.visits),
        csv_path,
        len(result.rejections),
    )
    return result
