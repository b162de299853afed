"""
Static SVG line charts of the star history and forecast.
"""

import math
from dataclasses import dataclass
from html import escape
from typing import Optional

from core.entities import ForecastData, ForecastMethod, History
from core.forecast import repo_series
from core.formatting import short_date
from presentation.shared import COLORS, METHOD_LABELS

WIDTH = 800
HEIGHT = 400
MARGIN_TOP = 50
MARGIN_RIGHT = 30
MARGIN_BOTTOM = 50
MARGIN_LEFT = 70
MAX_DATA_POINTS = 30
MAX_X_LABELS = 10
MAX_COMPARISON = 10
LEGEND_COLUMNS = 5
LEGEND_ITEM_WIDTH = 140
LEGEND_ROW_HEIGHT = 16
FONT = "-apple-system,Segoe UI,Helvetica,Arial,sans-serif"

FORECAST_COLORS = {
    ForecastMethod.LINEAR_REGRESSION: "#3498db",
    ForecastMethod.WEIGHTED_MOVING_AVERAGE: "#9b59b6",
}

COMPARISON_COLORS = (
    "#dfb317",
    "#28a745",
    "#e74c3c",
    "#3498db",
    "#9b59b6",
    "#e67e22",
    "#1abc9c",
    "#e84393",
    "#795548",
    "#00bcd4",
)


@dataclass
class Dataset:
    label: str
    data: list[Optional[float]]
    color: str
    dashed: bool = False


def nice_axis_steps(min_value: float, max_value: float, count: int = 5) -> list[int]:
    """Round tick values covering [min_value, max_value]."""
    value_range = max_value - min_value
    if value_range <= 0:
        return [round(min_value)]

    raw_step = value_range / (count - 1)
    magnitude = 10 ** math.floor(math.log10(raw_step))
    residual = raw_step / magnitude

    if residual <= 1.5:
        step = magnitude
    elif residual <= 3.5:
        step = 2 * magnitude
    elif residual <= 7.5:
        step = 5 * magnitude
    else:
        step = 10 * magnitude

    steps = []
    value = math.floor(min_value / step) * step
    while value <= max_value + step * 0.5:
        if value >= min_value - step * 0.5:
            steps.append(round(value))
        value += step
    return steps


def render_line_chart(labels: list[str], datasets: list[Dataset], title: str) -> Optional[str]:
    """
    Render datasets sharing the x axis labels. None values leave gaps.

    Returns:
        SVG text, or None when fewer than two labels exist
    """
    values = [v for ds in datasets for v in ds.data if v is not None]
    if len(labels) < 2 or not values:
        return None

    chart_width = WIDTH - MARGIN_LEFT - MARGIN_RIGHT
    chart_height = HEIGHT - MARGIN_TOP - MARGIN_BOTTOM

    min_data, max_data = min(values), max(values)
    padding = max(1, math.ceil((max_data - min_data) * 0.1))
    min_value = max(0, min_data - padding)
    max_value = max_data + padding

    legend_rows = math.ceil(len(datasets) / LEGEND_COLUMNS) if len(datasets) > 1 else 0
    height = HEIGHT + max(0, legend_rows - 1) * LEGEND_ROW_HEIGHT

    def x_at(i: int) -> float:
        return MARGIN_LEFT + i / (len(labels) - 1) * chart_width

    def y_at(value: float) -> float:
        return MARGIN_TOP + chart_height - (value - min_value) / (max_value - min_value) * chart_height

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{height}" '
        f'viewBox="0 0 {WIDTH} {height}" role="img" aria-label="{escape(title)}">',
        f'<rect width="{WIDTH}" height="{height}" fill="{COLORS["white"]}"/>',
        f'<text x="{WIDTH / 2}" y="28" text-anchor="middle" font-size="16" '
        f'font-weight="bold" font-family="{FONT}" fill="{COLORS["text"]}">{escape(title)}</text>',
    ]

    for tick in nice_axis_steps(min_value, max_value):
        y = round(y_at(tick), 2)
        parts.append(
            f'<line x1="{MARGIN_LEFT}" y1="{y}" x2="{WIDTH - MARGIN_RIGHT}" y2="{y}" '
            f'stroke="{COLORS["neutral"]}" stroke-opacity="0.2"/>'
        )
        parts.append(
            f'<text x="{MARGIN_LEFT - 8}" y="{y + 4}" text-anchor="end" font-size="11" '
            f'font-family="{FONT}" fill="{COLORS["neutral"]}">{tick:,}</text>'
        )

    label_step = max(1, math.ceil(len(labels) / MAX_X_LABELS))
    for i, label in enumerate(labels):
        if i % label_step and i != len(labels) - 1:
            continue
        parts.append(
            f'<text x="{round(x_at(i), 2)}" y="{HEIGHT - MARGIN_BOTTOM + 20}" '
            f'text-anchor="middle" font-size="11" font-family="{FONT}" '
            f'fill="{COLORS["neutral"]}">{escape(label)}</text>'
        )

    for ds in datasets:
        segment: list[str] = []
        segments = []
        for i, value in enumerate(ds.data):
            if value is None:
                if segment:
                    segments.append(segment)
                segment = []
                continue
            segment.append(f"{round(x_at(i), 2)},{round(y_at(value), 2)}")
        if segment:
            segments.append(segment)

        dash = ' stroke-dasharray="6,4"' if ds.dashed else ""
        for points in segments:
            parts.append(
                f'<polyline points="{" ".join(points)}" fill="none" stroke="{ds.color}" '
                f'stroke-width="2"{dash}/>'
            )

    if legend_rows:
        for i, ds in enumerate(datasets):
            row, column = divmod(i, LEGEND_COLUMNS)
            x = MARGIN_LEFT + column * LEGEND_ITEM_WIDTH
            y = HEIGHT - 18 + row * LEGEND_ROW_HEIGHT
            parts.append(
                f'<rect x="{x}" y="{y}" width="12" height="3" fill="{ds.color}"/>'
            )
            parts.append(
                f'<text x="{x + 18}" y="{y + 5}" font-size="11" font-family="{FONT}" '
                f'fill="{COLORS["text"]}">{escape(ds.label)}</text>'
            )

    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def _recent(history: History) -> list:
    return list(history.snapshots[-MAX_DATA_POINTS:])


def generate_history_chart(history: History, title: str = "Star History") -> Optional[str]:
    snapshots = _recent(history)
    return render_line_chart(
        labels=[short_date(s.timestamp) for s in snapshots],
        datasets=[
            Dataset("Total stars", [s.total_stars for s in snapshots], COLORS["accent"])
        ],
        title=title,
    )


def generate_repo_chart(history: History, repo_full_name: str) -> Optional[str]:
    recent = History(snapshots=tuple(_recent(history)))
    return render_line_chart(
        labels=[short_date(s.timestamp) for s in recent.snapshots],
        datasets=[
            Dataset(repo_full_name, repo_series(recent, repo_full_name), COLORS["accent"])
        ],
        title=repo_full_name,
    )


def generate_comparison_chart(
    history: History, repo_names: list[str], title: str = "Top Repositories"
) -> Optional[str]:
    """
    Star history of up to MAX_COMPARISON repositories on one chart.
    Labels drop the owner when all repositories share one.
    """
    if not repo_names:
        return None

    recent = History(snapshots=tuple(_recent(history)))
    capped = repo_names[:MAX_COMPARISON]
    short_labels = len({name.split("/")[0] for name in capped}) == 1

    datasets = [
        Dataset(
            name.split("/")[-1] if short_labels else name,
            repo_series(recent, name),
            COMPARISON_COLORS[i % len(COMPARISON_COLORS)],
        )
        for i, name in enumerate(capped)
    ]

    return render_line_chart(
        labels=[short_date(s.timestamp) for s in recent.snapshots],
        datasets=datasets,
        title=title,
    )


def generate_forecast_chart(history: History, forecast: ForecastData) -> Optional[str]:
    """
    History of the total followed by each estimator's predictions, dashed.
    Each forecast line starts at the last observed point.
    """
    snapshots = _recent(history)
    if not snapshots:
        return None

    weeks = [point.week_offset for point in forecast.aggregate[0].points]
    labels = [short_date(s.timestamp) for s in snapshots] + [f"+{w}w" for w in weeks]

    observed = [float(s.total_stars) for s in snapshots]
    padding = [None] * len(weeks)

    datasets = [Dataset("Total stars", observed + padding, COLORS["accent"])]
    for result in forecast.aggregate:
        leading = [None] * (len(observed) - 1) + [observed[-1]]
        datasets.append(
            Dataset(
                METHOD_LABELS[result.method.value],
                leading + [float(point.predicted) for point in result.points],
                FORECAST_COLORS[result.method],
                dashed=True,
            )
        )

    return render_line_chart(labels, datasets, "Star Forecast")
