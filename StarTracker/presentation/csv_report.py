"""
CSV export of a star comparison.
"""

import csv
import io

from core.entities import ComparisonResults, RepoResult

CSV_HEADER = ["repository", "owner", "name", "stars", "previous", "delta", "status"]


def repo_status(repo: RepoResult) -> str:
    if repo.is_new:
        return "new"
    if repo.is_removed:
        return "removed"
    return "active"


def generate_csv_report(results: ComparisonResults) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for repo in results.repos:
        writer.writerow([
            repo.full_name,
            repo.owner,
            repo.name,
            repo.current,
            "" if repo.previous is None else repo.previous,
            repo.delta,
            repo_status(repo),
        ])

    return output.getvalue()
