"""Search match bookkeeping over the visible rows."""

from __future__ import annotations

from yed._visible import VisibleRow


def matches_row(row: VisibleRow, query: str) -> bool:
    q = query.lower()
    return q in row.path.dot_path().lower() or q in row.display_key.lower()


def find_matches(rows: list[VisibleRow], query: str | None) -> list[int]:
    """Indices of the rows matching *query*, in row order."""
    if not query:
        return []
    return [idx for idx, row in enumerate(rows) if matches_row(row, query)]


def next_match(matches: list[int], current: int) -> int | None:
    """Match after *current*, wrapping; the first match if *current* is not
    a match."""
    if not matches:
        return None
    if current in matches:
        pos = matches.index(current)
        if pos + 1 < len(matches):
            return matches[pos + 1]
    return matches[0]


def prev_match(matches: list[int], current: int) -> int | None:
    if not matches:
        return None
    if current in matches:
        pos = matches.index(current)
        if pos > 0:
            return matches[pos - 1]
    return matches[-1]
