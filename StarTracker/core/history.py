"""
Pure transformations over the bounded snapshot history.
"""

from dataclasses import replace
from typing import Optional

from core.entities import History, Snapshot


def get_last_snapshot(history: Optional[History]) -> Optional[Snapshot]:
    """Return the most recent snapshot, or None if there is none."""
    if history is None or not history.snapshots:
        return None
    return history.snapshots[-1]


def add_snapshot(history: History, snapshot: Snapshot, max_history: int) -> History:
    """
    Append a snapshot and keep only the most recent max_history entries.

    Returns a new History; the input is left untouched.
    """
    snapshots = history.snapshots + (snapshot,)
    if max_history <= 0:
        snapshots = ()
    elif len(snapshots) > max_history:
        snapshots = snapshots[-max_history:]
    return replace(history, snapshots=snapshots)
