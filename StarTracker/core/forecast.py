"""
Star growth forecasting.

Two independent estimators are run over a series of star counts, oldest
first:

- linear regression of value against position in the series
- weighted moving average of consecutive deltas, recent deltas weighted most

Positions are used instead of timestamps, so irregular spacing between
snapshots is ignored. Every prediction is rounded half up and clamped at 0.
"""

import logging
import math
from typing import Optional

from core.entities import (
    ForecastData,
    ForecastMethod,
    ForecastPoint,
    ForecastResult,
    History,
    RepoForecast,
)

logger = logging.getLogger(__name__)

MIN_SNAPSHOTS = 3
FORECAST_WEEKS = 4


def linear_regression(values: list[float]) -> tuple[float, float]:
    """
    Ordinary least squares fit of value against index.

    Returns:
        (slope, intercept); a flat line through the first value when the
        series is too short to fit
    """
    n = len(values)
    sum_x = sum_y = sum_xy = sum_xx = 0.0

    for i, value in enumerate(values):
        sum_x += i
        sum_y += value
        sum_xy += i * value
        sum_xx += i * i

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return 0.0, float(values[0]) if values else 0.0

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def weighted_moving_average(values: list[float]) -> float:
    """
    Average of consecutive deltas, the i-th delta weighted by i + 1.
    """
    if len(values) < 2:
        return 0.0

    deltas = [current - previous for previous, current in zip(values, values[1:])]
    weighted_sum = sum(delta * (i + 1) for i, delta in enumerate(deltas))
    total_weight = sum(range(1, len(deltas) + 1))

    return weighted_sum / total_weight


def clamp_prediction(value: float) -> int:
    """Round half up and never predict fewer than 0 stars."""
    return max(0, math.floor(value + 0.5))


def forecast_from_values(values: list[float]) -> list[ForecastResult]:
    """Run both estimators over one series."""
    n = len(values)
    last_value = values[-1] if values else 0

    slope, intercept = linear_regression(values)
    avg_delta = weighted_moving_average(values)

    weeks = range(1, FORECAST_WEEKS + 1)

    return [
        ForecastResult(
            method=ForecastMethod.LINEAR_REGRESSION,
            points=tuple(
                ForecastPoint(w, clamp_prediction(slope * (n - 1 + w) + intercept))
                for w in weeks
            ),
        ),
        ForecastResult(
            method=ForecastMethod.WEIGHTED_MOVING_AVERAGE,
            points=tuple(
                ForecastPoint(w, clamp_prediction(last_value + avg_delta * w))
                for w in weeks
            ),
        ),
    ]


def repo_series(history: History, repo_full_name: str) -> list[int]:
    """
    Star counts of one repository across all snapshots.
    Snapshots where the repository is absent count as 0.
    """
    series = []
    for snapshot in history.snapshots:
        stars = next(
            (r.stars for r in snapshot.repos if r.full_name == repo_full_name), 0
        )
        series.append(stars)
    return series


def compute_forecast(
    history: History, top_repo_names: list[str]
) -> Optional[ForecastData]:
    """
    Forecast the total and the given repositories for the next weeks.

    Args:
        history: Stored snapshots, oldest first
        top_repo_names: Full names of repositories to forecast individually

    Returns:
        ForecastData, or None when fewer than MIN_SNAPSHOTS snapshots exist
    """
    if len(history.snapshots) < MIN_SNAPSHOTS:
        logger.debug(
            f"Not enough snapshots for a forecast "
            f"({len(history.snapshots)} < {MIN_SNAPSHOTS})"
        )
        return None

    totals = [snapshot.total_stars for snapshot in history.snapshots]

    return ForecastData(
        aggregate=forecast_from_values(totals),
        repos=[
            RepoForecast(
                repo_full_name=name,
                forecasts=forecast_from_values(repo_series(history, name)),
            )
            for name in top_repo_names
        ],
    )
