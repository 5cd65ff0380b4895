"""Generate a synthetic check-in log for testing and demonstration.

Creates a CSV in the check-in log format with a pool of regular
customers visiting over several months, mostly during opening hours.
"""

from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import pandas as pd


def generate_sample_checkins(
    output_path: str = "data/sample/checkins.csv",
    start: datetime = datetime(2025, 3, 1),
    days: int = 180,
    customers: int = 40,
    visits_per_day: float = 12.0,
) -> str:
    """Generate a synthetic check-in log.

    Args:
        output_path: Path for the output CSV file.
        start: First day of the log.
        days: Number of days to generate.
        customers: Size of the customer pool.
        visits_per_day: Mean number of visits per day.

    Returns:
        Path to the generated CSV file.
    """
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    rng = np.random.RandomState(42)

    names = [f"member-{i + 1:03d}" for i in range(customers)]
    weights = rng.gamma(2.0, 1.0, size=customers)
    weights /= weights.sum()

    rows = []
    for day in range(days):
        for _ in range(rng.poisson(visits_per_day)):
            hour = int(np.clip(rng.normal(13, 3.5), 7, 22))
            checkin = start + timedelta(
                days=day, hours=hour, minutes=int(rng.randint(0, 60)),
                seconds=int(rng.randint(0, 60)),
            )
            stay_seconds = int(np.clip(rng.lognormal(4.6, 0.6), 10, 720) * 60)
            h, rem = divmod(stay_seconds, 3600)
            m, s = divmod(rem, 60)
            rows.append(
                {
                    "顧客名": rng.choice(names, p=weights),
                    "チェックイン日時": checkin.strftime("%Y-%m-%d %H:%M:%S +0900"),
                    "滞在時間": f"{h:02d}:{m:02d}:{s:02d}",
                }
            )

    pd.DataFrame(rows).to_csv(output_path, index=False, encoding="utf-8")
    return output_path


if __name__ == "__main__":
    path = generate_sample_checkins()
    print(f"Sample check-in log generated: {path}")
