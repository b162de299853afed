"""
HTML star report, used as the email body.
"""

from html import escape
from typing import Optional

from core.entities import ComparisonResults, ForecastData, StargazerDiffResult
from core.formatting import delta_indicator, short_date
from presentation.shared import COLORS, METHOD_LABELS, prepare_report_data, repo_url

TABLE_STYLE = "border-collapse:collapse;width:100%;font-size:14px;"
TH_STYLE = (
    f"text-align:left;padding:8px;background:{COLORS['table_header_bg']};"
    f"border-bottom:2px solid {COLORS['table_header_border']};"
)
TD_STYLE = f"padding:8px;border-bottom:1px solid {COLORS['cell_border']};"


def _delta_color(delta: int) -> str:
    if delta > 0:
        return COLORS["positive"]
    if delta < 0:
        return COLORS["negative"]
    return COLORS["neutral"]


def _delta_span(delta: int) -> str:
    return (
        f'<span style="color:{_delta_color(delta)};font-weight:bold;">'
        f"{delta_indicator(delta)}</span>"
    )


def _repo_link(full_name: str) -> str:
    return (
        f'<a href="{escape(repo_url(full_name))}" style="color:{COLORS["link"]};">'
        f"{escape(full_name)}</a>"
    )


def _repo_table(results_rows) -> list[str]:
    parts = [
        f'<table style="{TABLE_STYLE}">',
        f'<tr><th style="{TH_STYLE}">Repository</th>'
        f'<th style="{TH_STYLE}text-align:right;">Stars</th>'
        f'<th style="{TH_STYLE}text-align:right;">Change</th></tr>',
    ]
    for repo in results_rows:
        badge = (
            f' <span style="background:{COLORS["accent"]};color:{COLORS["white"]};'
            f'padding:1px 6px;border-radius:8px;font-size:11px;">new</span>'
            if repo.is_new else ""
        )
        parts.append(
            f'<tr><td style="{TD_STYLE}">{_repo_link(repo.full_name)}{badge}</td>'
            f'<td style="{TD_STYLE}text-align:right;">{repo.current}</td>'
            f'<td style="{TD_STYLE}text-align:right;">{_delta_span(repo.delta)}</td></tr>'
        )
    parts.append("</table>")
    return parts


def _stargazer_section(diff: StargazerDiffResult) -> list[str]:
    parts = ["<h2>👤 New Stargazers</h2>"]
    if diff.total_new == 0:
        parts.append(
            f'<p style="color:{COLORS["neutral"]};">No new stargazers since the last run.</p>'
        )
        return parts

    parts.append(f"<p>New stargazers since the last run: {diff.total_new}</p>")
    for entry in diff.entries:
        parts.append(
            f"<h3>{escape(entry.repo_full_name)} ({len(entry.new_stargazers)})</h3>"
        )
        parts.append("<ul>")
        for s in entry.new_stargazers:
            parts.append(
                f'<li><img src="{escape(s.avatar_url)}" width="20" height="20" '
                f'style="border-radius:50%;vertical-align:middle;"> '
                f'<a href="{escape(s.profile_url)}" style="color:{COLORS["link"]};">'
                f"{escape(s.login)}</a>"
                f'<span style="color:{COLORS["neutral"]};margin-left:8px;font-size:12px;">'
                f"starred on {escape(short_date(s.starred_at))}</span></li>"
            )
        parts.append("</ul>")
    return parts


def _forecast_table(forecast: ForecastData) -> list[str]:
    weeks = [point.week_offset for point in forecast.aggregate[0].points]
    parts = [
        "<h2>Forecast</h2>",
        f'<table style="{TABLE_STYLE}">',
        f'<tr><th style="{TH_STYLE}">Method</th>'
        + "".join(f'<th style="{TH_STYLE}text-align:right;">Week +{w}</th>' for w in weeks)
        + "</tr>",
    ]
    for result in forecast.aggregate:
        parts.append(
            f'<tr><td style="{TD_STYLE}">{escape(METHOD_LABELS[result.method.value])}</td>'
            + "".join(
                f'<td style="{TD_STYLE}text-align:right;">{point.predicted}</td>'
                for point in result.points
            )
            + "</tr>"
        )
    parts.append("</table>")
    return parts


def generate_html_report(
    results: ComparisonResults,
    previous_timestamp: Optional[str],
    forecast: Optional[ForecastData] = None,
    stargazer_diff: Optional[StargazerDiffResult] = None,
) -> str:
    """Render the comparison as a self-contained HTML document with inline styles."""
    summary = results.summary
    data = prepare_report_data(results, previous_timestamp)

    body = [
        "<h1>⭐ GitHub Star Tracker</h1>",
        f"<p><strong>{escape(data.now)}</strong> | Total: "
        f"<strong>{summary.total_stars} stars</strong> | "
        f"Change: {_delta_span(summary.total_delta)}</p>",
    ]

    if not data.is_first_run:
        body.append(
            f'<p style="color:{COLORS["neutral"]};">Compared to {escape(data.prev)}</p>'
        )

    if data.sorted_repos:
        body.append("<h2>Repositories</h2>")
        body += _repo_table(data.sorted_repos)

    if data.new_repos:
        body.append("<h2>New Repositories</h2>")
        body.append("<ul>")
        body += [
            f"<li>{_repo_link(repo.full_name)} ({repo.current} stars)</li>"
            for repo in data.new_repos
        ]
        body.append("</ul>")

    if data.removed_repos:
        body.append("<h2>Removed Repositories</h2>")
        body.append("<ul>")
        body += [
            f"<li>{escape(repo.full_name)} (had {repo.previous} stars)</li>"
            for repo in data.removed_repos
        ]
        body.append("</ul>")

    if summary.total_delta != 0:
        body += [
            "<h2>Summary</h2>",
            "<ul>",
            f"<li><strong>Stars gained:</strong> {summary.new_stars}</li>",
            f"<li><strong>Stars lost:</strong> {summary.lost_stars}</li>",
            f"<li><strong>Net change:</strong> {_delta_span(summary.total_delta)}</li>",
            "</ul>",
        ]

    if stargazer_diff is not None:
        body += _stargazer_section(stargazer_diff)

    if forecast is not None:
        body += _forecast_table(forecast)

    content = "\n".join(body)
    return (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8"><title>GitHub Star Tracker</title></head>\n'
        f'<body style="font-family:-apple-system,Segoe UI,Helvetica,Arial,sans-serif;'
        f'color:{COLORS["text"]};max-width:720px;margin:0 auto;padding:16px;">\n'
        f"{content}\n"
        "</body></html>\n"
    )
