"""
most-recent-wins reduction over append-only RF2 revision logs

Rows are never updated in a release, a change is a new row with the same id
and a later effectiveTime. The current state of an id is its latest revision.
On equal effectiveTime the revision seen first is kept.
"""
from typing import Callable, Dict, Hashable, Iterable, List, TypeVar


Row = TypeVar("Row")
State = TypeVar("State")


def resolve(rows: Iterable[Row],
            key: Callable[[Row], Hashable],
            effective_time: Callable[[Row], str],
            project: Callable[[Row], State]) -> Dict[Hashable, State]:
    """Fold revision rows into the current state per row id.

    Args:
        rows: revision rows in arrival order (not necessarily time sorted)
        key: row id of a row
        effective_time: comparable date stamp of a row
        project: builds the stored state from a row; the state must expose
            an ``effective_time`` attribute

    Returns:
        dict row id -> state of the latest revision
    """
    current: Dict[Hashable, State] = {}
    for row in rows:
        row_id = key(row)
        if row_id in ("", "id", None):
            continue
        seen = current.get(row_id)
        if seen is None or effective_time(row) > seen.effective_time:
            current[row_id] = project(row)
    return current


def merge_revisions(existing: Dict[Hashable, State], new: Dict[Hashable, State]) -> Dict[Hashable, State]:
    """Merge two resolved maps, keeping the later state per row id.

    Ties keep the existing state. Neither input is modified.
    """
    merged = dict(existing)
    for row_id, state in new.items():
        seen = merged.get(row_id)
        if seen is None or state.effective_time > seen.effective_time:
            merged[row_id] = state
    return merged


def stale_revisions(existing: Dict[Hashable, State], new: Dict[Hashable, State]) -> List[Hashable]:
    """Row ids whose incoming state is older than the stored one.

    A release is expected to only carry revisions at or after those already
    merged; anything listed here breaks that assumption.
    """
    return [
        row_id for row_id, state in new.items()
        if row_id in existing and state.effective_time < existing[row_id].effective_time
    ]
