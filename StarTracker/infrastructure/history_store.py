"""
File based storage for star history and generated report artifacts.
"""

import json
import logging
import os
from typing import Optional

from core.entities import History
from core.stargazers import StargazerMap

logger = logging.getLogger(__name__)

HISTORY_FILE = "stars-data.json"
STARGAZERS_FILE = "stargazers.json"
REPORT_FILE = "README.md"
HTML_REPORT_FILE = "report.html"
CSV_FILE = "stars.csv"
BADGE_FILE = "stars-badge.svg"
CHARTS_DIR = "charts"


class JsonHistoryStore:
    """
    Reads and writes the history and artifacts inside a data directory,
    usually the worktree of the data branch.
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def _path(self, *parts: str) -> str:
        return os.path.join(self.data_dir, *parts)

    def _write_text(self, filename: str, content: str) -> str:
        path = self._path(filename)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.debug(f"Wrote {path}")
        return path

    def read_history(self) -> History:
        """
        Load the stored history.

        Returns:
            History, empty if nothing has been stored yet
        """
        path = self._path(HISTORY_FILE)
        if not os.path.exists(path):
            logger.info(f"No history found at {path}, starting fresh")
            return History()

        with open(path, "r", encoding="utf-8") as f:
            history = History.from_dict(json.load(f))

        logger.info(f"Loaded {len(history.snapshots)} snapshots from {path}")
        return history

    def write_history(self, history: History):
        self._write_text(HISTORY_FILE, json.dumps(history.to_dict(), indent=2) + "\n")
        logger.info(f"Saved {len(history.snapshots)} snapshots")

    def read_stargazers(self) -> StargazerMap:
        """Load the stored stargazer map, empty if none was stored yet."""
        path = self._path(STARGAZERS_FILE)
        if not os.path.exists(path):
            return {}

        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write_stargazers(self, stargazer_map: StargazerMap):
        self._write_text(STARGAZERS_FILE, json.dumps(stargazer_map, indent=2) + "\n")

    def write_report(self, markdown: str) -> str:
        return self._write_text(REPORT_FILE, markdown)

    def write_html_report(self, html: str) -> str:
        return self._write_text(HTML_REPORT_FILE, html)

    def write_csv(self, csv_text: str) -> str:
        return self._write_text(CSV_FILE, csv_text)

    def write_badge(self, svg: str) -> str:
        return self._write_text(BADGE_FILE, svg)

    def write_chart(self, filename: str, svg: Optional[str]) -> Optional[str]:
        """Write an SVG chart under charts/, skipping charts that were not rendered."""
        if svg is None:
            return None
        return self._write_text(os.path.join(CHARTS_DIR, filename), svg)
