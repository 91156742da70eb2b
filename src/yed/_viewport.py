"""Selection and scroll state over the active row list."""

from __future__ import annotations

from yed._path import NodePath
from yed._visible import VisibleRow, visible_row_by_path


class Viewport:
    """Selected row index and first shown row.

    Row indices do not survive a rebuild of the row list; callers keep the
    selected row's path and call :meth:`resolve` afterwards. The list length
    is passed in so the same state serves tree rows and raw lines.
    """

    def __init__(self) -> None:
        self.selection: int = 0
        self.scroll: int = 0

    def reset(self) -> None:
        self.selection = 0
        self.scroll = 0

    def clamp(self, length: int) -> None:
        self.selection = max(0, min(self.selection, length - 1))

    def resolve(self, rows: list[VisibleRow], path: NodePath | None) -> None:
        """Select *path* in the rebuilt *rows*, or clamp if it is gone."""
        if path is not None:
            idx = visible_row_by_path(rows, path)
            if idx is not None:
                self.selection = idx
        self.clamp(len(rows))

    def ensure_visible(self, length: int, height: int) -> None:
        if length == 0:
            return
        if self.selection < self.scroll:
            self.scroll = self.selection
        elif self.selection >= self.scroll + height:
            self.scroll = max(0, self.selection - (height - 1))

    def move(self, delta: int, length: int, height: int) -> None:
        if length == 0:
            return
        self.selection = max(0, min(self.selection + delta, length - 1))
        self.ensure_visible(length, height)

    def jump_top(self) -> None:
        self.selection = 0

    def jump_bottom(self, length: int) -> None:
        if length > 0:
            self.selection = length - 1

    def page(self, direction: int, length: int, height: int) -> None:
        """Move half a page; *direction* is +1 or -1."""
        self.move(direction * (height // 2), length, height)

    def reset_horizontal(self) -> None:
        # The tree has no horizontal offset of its own; "0" resets the
        # scroll position to the first row.
        self.scroll = 0

    def scroll_by(self, delta: int, length: int, height: int) -> None:
        """Mouse wheel: move the window, then pull the selection into it."""
        max_scroll = max(0, length - height)
        self.scroll = max(0, min(self.scroll + delta, max_scroll))
        self.clamp_to_window(length, height)

    def clamp_to_window(self, length: int, height: int) -> None:
        if self.selection < self.scroll:
            self.selection = self.scroll
        elif self.selection >= self.scroll + height:
            self.selection = min(self.scroll + height - 1, max(0, length - 1))
