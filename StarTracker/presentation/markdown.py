"""
Markdown star report, written as README.md of the data branch.
"""

from typing import Optional

from core.entities import ComparisonResults, ForecastData, History, StargazerDiffResult
from core.formatting import delta_indicator, short_date, trend_icon
from presentation.shared import (
    METHOD_LABELS,
    MIN_SNAPSHOTS_FOR_CHART,
    chart_filename,
    prepare_report_data,
    repo_url,
)


def _stargazer_section(diff: StargazerDiffResult) -> list[str]:
    lines = ["## 👤 New Stargazers", ""]
    if diff.total_new == 0:
        return lines + ["No new stargazers since the last run.", ""]

    lines += [f"New stargazers since the last run: {diff.total_new}", ""]
    for entry in diff.entries:
        lines += [
            "<details>",
            f"<summary>{entry.repo_full_name} ({len(entry.new_stargazers)})</summary>",
            "",
        ]
        lines += [
            f'- <img src="{s.avatar_url}" width="20" height="20" '
            f'style="border-radius:50%;vertical-align:middle;"> '
            f"[{s.login}]({s.profile_url}), starred on {short_date(s.starred_at)}"
            for s in entry.new_stargazers
        ]
        lines += ["", "</details>", ""]
    return lines


def _forecast_section(forecast: ForecastData) -> list[str]:
    lines = ["## 🔮 Forecast", ""]
    weeks = [point.week_offset for point in forecast.aggregate[0].points]
    lines.append("| Method | " + " | ".join(f"Week +{w}" for w in weeks) + " |")
    lines.append("|:-------|" + "|".join("------:" for _ in weeks) + "|")
    for result in forecast.aggregate:
        values = " | ".join(str(point.predicted) for point in result.points)
        lines.append(f"| {METHOD_LABELS[result.method.value]} | {values} |")
    lines.append("")

    if forecast.repos:
        lines += ["<details>", "<summary>Forecast by repository</summary>", ""]
        lines.append("| Repository | Method | " + " | ".join(f"+{w}w" for w in weeks) + " |")
        lines.append("|:-----------|:-------|" + "|".join("----:" for _ in weeks) + "|")
        for repo in forecast.repos:
            for result in repo.forecasts:
                values = " | ".join(str(point.predicted) for point in result.points)
                lines.append(
                    f"| {repo.repo_full_name} | {METHOD_LABELS[result.method.value]} | {values} |"
                )
        lines += ["", "</details>", ""]

    return lines


def generate_markdown_report(
    results: ComparisonResults,
    previous_timestamp: Optional[str],
    history: Optional[History] = None,
    include_charts: bool = True,
    forecast: Optional[ForecastData] = None,
    top_repos: int = 10,
    stargazer_diff: Optional[StargazerDiffResult] = None,
) -> str:
    """
    Render the comparison as a Markdown document.

    Args:
        results: Output of compare_stars
        previous_timestamp: Timestamp of the snapshot compared against
        history: History used to decide whether charts exist
        include_charts: Link the SVG charts when enough history exists
        forecast: Forecast to tabulate, if any
        top_repos: Number of repositories with individual charts
        stargazer_diff: New stargazers, or None when they are not tracked

    Returns:
        Markdown text
    """
    summary = results.summary
    data = prepare_report_data(results, previous_timestamp)

    has_charts = (
        include_charts
        and history is not None
        and len(history.snapshots) >= MIN_SNAPSHOTS_FOR_CHART
    )

    lines = [
        "# ⭐ GitHub Star Tracker",
        "",
        f"**{data.now}** | Total: **{summary.total_stars} stars** | "
        f"Change: **{delta_indicator(summary.total_delta)}**",
        "",
    ]

    if not data.is_first_run:
        lines += [f"> Compared to {data.prev}", ""]

    if has_charts:
        top_names = [r.full_name for r in data.sorted_repos[:top_repos]]
        lines += ["## 📈 Star Trend", "", "![Star History](./charts/star-history.svg)", ""]
        if top_names:
            lines += [
                "### By Repository",
                "",
                "![Top Repositories](./charts/comparison.svg)",
                "",
            ]
        if forecast is not None:
            lines += ["![Forecast](./charts/forecast.svg)", ""]
        if top_names:
            lines += ["<details>", "<summary>Individual repository charts</summary>", ""]
            for name in top_names:
                lines += [f"#### {name}", "", f"![{name}](./charts/{chart_filename(name)})", ""]
            lines += ["</details>", ""]

    if data.sorted_repos:
        lines += [
            "## Repositories",
            "",
            "| Repository | Stars | Change | Trend |",
            "|:-----------|------:|-------:|:-----:|",
        ]
        for repo in data.sorted_repos:
            badge = " `new`" if repo.is_new else ""
            lines.append(
                f"| [{repo.full_name}]({repo_url(repo.full_name)}){badge} | "
                f"{repo.current} | {delta_indicator(repo.delta)} | {trend_icon(repo.delta)} |"
            )
        lines.append("")

    if data.new_repos:
        lines += ["## New Repositories", ""]
        lines += [
            f"- [{repo.full_name}]({repo_url(repo.full_name)}) ({repo.current} stars)"
            for repo in data.new_repos
        ]
        lines.append("")

    if data.removed_repos:
        lines += ["## Removed Repositories", ""]
        lines += [
            f"- {repo.full_name} (had {repo.previous} stars)" for repo in data.removed_repos
        ]
        lines.append("")

    if summary.total_delta != 0:
        lines += [
            "## Summary",
            "",
            f"- **Stars gained:** {summary.new_stars}",
            f"- **Stars lost:** {summary.lost_stars}",
            f"- **Net change:** {delta_indicator(summary.total_delta)}",
            "",
        ]

    if stargazer_diff is not None:
        lines += _stargazer_section(stargazer_diff)

    if forecast is not None:
        lines += _forecast_section(forecast)

    return "\n".join(lines)
