"""Editor session: owns the document, the row projection and the UI state."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from yed._input import Action, InputLine, KeyAction, Mode, ModeState, VimInputHandler
from yed._path import Key, NodePath
from yed._picker import EntryKind, FilePickerState, list_picker_entries
from yed._raw import RawBuffer
from yed._scalar import parse_user_text
from yed._search import find_matches, next_match, prev_match
from yed._viewport import Viewport
from yed._visible import VisibleRow, flatten_visible
from yed.clipboard import ClipboardError, copy_to_clipboard
from yed.model import DocumentModel, LoadResult, ModelError, NodeType, load_document

logger = logging.getLogger(__name__)


@dataclass
class Toast:
    message: str
    expires_at: float


@dataclass(frozen=True)
class RowHit:
    """Screen line *y* shows row *row_index* of the active list."""

    row_index: int
    y: int


def _mtime(path: str) -> float | None:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


class EditorSession:
    """Single owner of all editor state.

    Events come in through :meth:`handle_key` and the mouse handlers and are
    processed to completion: input handler -> action -> model mutation ->
    row rebuild -> selection re-resolution. Rejected mutations and I/O
    failures end up as a toast, never as an exception to the caller.
    """

    TOAST_SECONDS = 2.0
    FILE_CHECK_INTERVAL = 1.5
    RIGHT_CLICK_GUARD = 0.2

    def __init__(
        self,
        model: DocumentModel | None = None,
        *,
        parse_error: str | None = None,
        raw_content: str | None = None,
        clipboard: Callable[[str], None] = copy_to_clipboard,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.model: DocumentModel = model if model is not None else DocumentModel.empty()
        self.clipboard = clipboard
        self.clock = clock
        self.state: ModeState = ModeState()
        self.viewport: Viewport = Viewport()
        self.expanded: set[str] = {""}
        self.tree_root = self.model.build_tree()
        self.visible: list[VisibleRow] = []
        self.hit_map: list[RowHit] = []
        self.dirty: bool = False
        self.toast: Toast | None = None
        self.input: InputLine = InputLine()
        self.search_query: str | None = None
        self.matches: list[int] = []
        self.vim: VimInputHandler = VimInputHandler()
        self.picker: FilePickerState | None = None
        self.right_click_ignore_until: float | None = None
        self.hover_row: int | None = None
        self.parse_error: str | None = parse_error
        self.raw: RawBuffer | None = (
            RawBuffer(raw_content) if raw_content is not None else None
        )
        self.last_modified: float | None = (
            _mtime(self.model.file_path) if self.model.file_path else None
        )
        self.last_file_check: float | None = None
        self.rebuild_visible()

    @classmethod
    def open(cls, path: str | Path, **kwargs) -> EditorSession:
        """Load *path*; ``OSError`` from reading propagates."""
        result = load_document(path)
        return cls(
            result.model,
            parse_error=result.parse_error,
            raw_content=result.raw_content,
            **kwargs,
        )

    @classmethod
    def for_picker(cls, directory: str | Path | None = None, **kwargs) -> EditorSession:
        session = cls(**kwargs)
        current = Path(directory) if directory is not None else Path.cwd()
        session.picker = FilePickerState(current.resolve(), list_picker_entries(current))
        return session

    # -- State accessors ---------------------------------------------------

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def pending_key(self) -> str | None:
        return self.state.pending_key

    @property
    def selection(self) -> int:
        return self.viewport.selection

    @selection.setter
    def selection(self, value: int) -> None:
        self.viewport.selection = value

    @property
    def scroll(self) -> int:
        return self.viewport.scroll

    @property
    def in_raw_mode(self) -> bool:
        return self.raw is not None

    @property
    def is_file_picker(self) -> bool:
        return self.picker is not None

    def visible_len(self) -> int:
        if self.picker is not None:
            return len(self.picker.entries)
        if self.raw is not None:
            return len(self.raw)
        return len(self.visible)

    def current_row(self) -> VisibleRow | None:
        if self.raw is not None or self.picker is not None:
            return None
        if 0 <= self.selection < len(self.visible):
            return self.visible[self.selection]
        return None

    def _set_mode(self, mode: Mode) -> None:
        self.state = ModeState(mode)

    # -- Toast -------------------------------------------------------------

    def set_toast(self, message: str) -> None:
        self.toast = Toast(message, self.clock() + self.TOAST_SECONDS)

    def update_toast(self) -> None:
        if self.toast is not None and self.clock() >= self.toast.expires_at:
            self.toast = None

    # -- Rebuild -----------------------------------------------------------

    def rebuild_visible(self, select: NodePath | None = None) -> None:
        """Recompute the shadow tree, rows and matches from the model, then
        re-select *select* (default: the currently selected row's path)."""
        if select is None:
            row = self.current_row()
            select = row.path if row is not None else None
        self.tree_root = self.model.build_tree()
        self.visible = flatten_visible(self.tree_root, self.expanded, self.search_query)
        self.matches = find_matches(self.visible, self.search_query)
        if self.raw is None and self.picker is None:
            self.viewport.resolve(self.visible, select)

    def _load(self, result: LoadResult) -> None:
        self.model = result.model
        self.parse_error = result.parse_error
        self.raw = RawBuffer(result.raw_content) if result.raw_content is not None else None
        self.expanded = {""}
        self.search_query = None
        self.viewport.reset()
        self.rebuild_visible()

    def update_hit_map(self, hits: list[RowHit]) -> None:
        self.hit_map = hits

    # -- Key events --------------------------------------------------------

    def handle_key(self, event, height: int) -> bool:
        """Process one key event. Returns True when the editor should exit."""
        # Terminals often paste on right click; drop stray a/r that follow.
        if (
            self.mode is Mode.NORMAL
            and event.key in ("a", "r")
            and self.right_click_ignore_until is not None
            and self.clock() < self.right_click_ignore_until
        ):
            return False
        self.right_click_ignore_until = None

        try:
            if self.picker is not None:
                return self._handle_picker_key(event, height)
            key_action = self.vim.handle_key(self.mode, event)
            if key_action is None:
                return False
            return self.apply_action(key_action, height)
        except (ModelError, OSError, UnicodeDecodeError) as exc:
            self.set_toast(str(exc))
            return False

    def _handle_picker_key(self, event, height: int) -> bool:
        key = event.key
        char = event.character or ""
        if key == "enter":
            self.picker_enter_selected()
        elif char == "q" or key == "escape":
            return True
        elif char == "j" or key == "down":
            self.viewport.move(1, self.visible_len(), height)
        elif char == "k" or key == "up":
            self.viewport.move(-1, self.visible_len(), height)
        return False

    def apply_action(self, key_action: KeyAction, height: int) -> bool:
        action = key_action.action
        length = self.visible_len()
        raw_mode = self.raw is not None

        if action is Action.QUIT:
            if not self.dirty:
                return True
            self._set_mode(Mode.CONFIRM_QUIT)
        elif action is Action.SAVE:
            if raw_mode:
                self.save_raw_and_reparse()
            else:
                self.save()
        elif action is Action.MOVE_UP:
            self.viewport.move(-1, length, height)
        elif action is Action.MOVE_DOWN:
            self.viewport.move(1, length, height)
        elif action is Action.JUMP_TOP:
            self.viewport.jump_top()
        elif action is Action.JUMP_BOTTOM:
            self.viewport.jump_bottom(length)
        elif action is Action.PAGE_UP:
            self.viewport.page(-1, length, height)
        elif action is Action.PAGE_DOWN:
            self.viewport.page(1, length, height)
        elif action is Action.JUMP_LEFT:
            self.viewport.reset_horizontal()
        elif action is Action.COLLAPSE:
            self._set_expanded(False)
        elif action is Action.EXPAND:
            self._set_expanded(True)
        elif action is Action.TOGGLE_EXPAND:
            self.toggle_expand()
        elif action is Action.EDIT_VALUE:
            if raw_mode:
                self._start_raw_edit_line()
            else:
                self._start_edit_value()
        elif action is Action.RENAME_KEY:
            if raw_mode:
                self.set_toast("Key rename: fix parse errors or save to use tree view")
            else:
                self._start_rename_key()
        elif action is Action.ADD_CHILD:
            if raw_mode:
                self.set_toast("Add child: fix parse errors or save to use tree view")
            else:
                self._start_add_child()
        elif action is Action.ADD_MAP_TO_SEQUENCE:
            if raw_mode:
                self.set_toast("Add object: fix parse errors or save to use tree view")
            else:
                self._start_add_map_to_sequence()
        elif action is Action.DELETE_NODE:
            if raw_mode:
                self._start_raw_delete_line()
            else:
                self._start_delete_node()
        elif action is Action.DELETE_LINE:
            if raw_mode:
                self._start_raw_delete_line()
        elif action is Action.COPY_PATH:
            self.copy_current_path()
        elif action is Action.CONFIRM_YES:
            if self._confirm_yes():
                return True
        elif action is Action.CONFIRM_NO:
            self._set_mode(Mode.NORMAL)
        elif action is Action.OPEN_ANOTHER:
            if self.dirty:
                self._set_mode(Mode.CONFIRM_OPEN_ANOTHER)
            else:
                self.switch_to_file_picker()
        elif action is Action.START_SEARCH:
            self._set_mode(Mode.SEARCH_INPUT)
            self.input.set("")
        elif action is Action.SEARCH_NEXT:
            idx = next_match(self.matches, self.selection)
            if idx is not None:
                self.selection = idx
        elif action is Action.SEARCH_PREV:
            idx = prev_match(self.matches, self.selection)
            if idx is not None:
                self.selection = idx
        elif action is Action.CANCEL:
            self._cancel_mode()
        elif action is Action.INPUT_CHAR:
            self.input.insert_char(key_action.char)
        elif action is Action.INPUT_BACKSPACE:
            self.input.backspace()
        elif action is Action.INPUT_DELETE:
            self.input.delete()
        elif action is Action.INPUT_LEFT:
            self.input.move_left()
        elif action is Action.INPUT_RIGHT:
            self.input.move_right()
        elif action is Action.INPUT_HOME:
            self.input.move_home()
        elif action is Action.INPUT_END:
            self.input.move_end()
        elif action is Action.INPUT_COMMIT:
            self._commit_input()

        self.viewport.ensure_visible(self.visible_len(), height)
        return False

    # -- Expand / collapse -------------------------------------------------

    def _set_expanded(self, expand: bool) -> None:
        row = self.current_row()
        if row is None or not row.is_container:
            return
        dot = row.path.dot_path()
        if expand:
            self.expanded.add(dot)
        else:
            self.expanded.discard(dot)
        self.rebuild_visible()

    def _expand_to(self, path: NodePath) -> None:
        """Expand *path* and every ancestor of it."""
        segments = path.segments
        for depth in range(len(segments) + 1):
            self.expanded.add(NodePath(segments[:depth]).dot_path())

    def toggle_expand(self) -> None:
        row = self.current_row()
        if row is None:
            return
        if not row.is_container:
            self._start_edit_value()
            return
        self._set_expanded(row.path.dot_path() not in self.expanded)

    # -- Starting edits ----------------------------------------------------

    def _start_edit_value(self) -> None:
        row = self.current_row()
        if row is None or row.is_container:
            return
        self._set_mode(Mode.EDIT_VALUE)
        self.input.set(row.value_preview)

    def _start_rename_key(self) -> None:
        row = self.current_row()
        if row is None:
            return
        if isinstance(row.path.last, Key):
            self._set_mode(Mode.RENAME_KEY)
            self.input.set(row.display_key)
        elif row.path.is_root:
            self.set_toast("Root has no key to rename")
        else:
            self.set_toast("Cannot rename sequence item")

    def _start_add_child(self) -> None:
        row = self.current_row()
        if row is None:
            return
        if row.node_type is NodeType.MAP:
            self._set_mode(Mode.ADD_KEY)
        elif row.node_type is NodeType.SEQ:
            self.state = ModeState.add_value()
        elif isinstance(row.path.last, Key):
            self.model.convert_to_empty_map(row.path)
            self.dirty = True
            self.expanded.add(row.path.dot_path())
            self.rebuild_visible()
            self._set_mode(Mode.ADD_KEY)
        else:
            self.set_toast("Cannot add child to scalar")
            return
        self.input.set("")

    def _start_add_map_to_sequence(self) -> None:
        """Append ``{}`` to the selected sequence and start typing its first
        key."""
        row = self.current_row()
        if row is None:
            return
        if row.node_type is not NodeType.SEQ:
            self.set_toast("Shift+A: only on a sequence (list). Use 'a' to add a value.")
            return
        new_path = self.model.add_sequence_empty_map(row.path)
        self.dirty = True
        # A search filter would hide the new "{}" item, and the key typed next
        # must land on that item.
        self.search_query = None
        self._expand_to(row.path)
        self.rebuild_visible(select=new_path)
        self._set_mode(Mode.ADD_KEY)
        self.input.set("")

    def _start_delete_node(self) -> None:
        row = self.current_row()
        if row is None:
            return
        if row.path.is_root:
            self.set_toast("Cannot delete root")
            return
        self._set_mode(Mode.CONFIRM_DELETE)

    def _start_raw_edit_line(self) -> None:
        if self.raw is not None and 0 <= self.selection < len(self.raw):
            self._set_mode(Mode.RAW_EDIT_LINE)
            self.input.set(self.raw.lines[self.selection])

    def _start_raw_delete_line(self) -> None:
        if self.raw is not None and len(self.raw):
            self._set_mode(Mode.CONFIRM_RAW_DELETE_LINE)

    def copy_current_path(self) -> None:
        row = self.current_row()
        if row is None:
            return
        dot = row.path.dot_path()
        try:
            self.clipboard(dot)
        except ClipboardError as exc:
            logger.warning("clipboard copy failed: %s", exc)
            self.set_toast("Failed to copy path")
            return
        self.set_toast(f"Copied: {dot}")

    # -- Confirm / cancel / commit -----------------------------------------

    def _confirm_yes(self) -> bool:
        mode = self.mode
        self._set_mode(Mode.NORMAL)
        if mode is Mode.CONFIRM_QUIT:
            return True
        if mode is Mode.CONFIRM_DELETE:
            row = self.current_row()
            if row is not None:
                self.model.delete_node(row.path)
                self.dirty = True
                self.rebuild_visible()
        elif mode is Mode.CONFIRM_OPEN_ANOTHER:
            self.switch_to_file_picker()
        elif mode is Mode.CONFIRM_RAW_DELETE_LINE:
            self.raw_delete_line(self.selection)
        return False

    def _cancel_mode(self) -> None:
        if self.mode is Mode.SEARCH_INPUT:
            self.search_query = None
            self.rebuild_visible()
        self._set_mode(Mode.NORMAL)
        self.input.set("")

    def _commit_input(self) -> None:
        mode = self.mode
        text = self.input.text
        row = self.current_row()

        if mode is Mode.EDIT_VALUE:
            self._set_mode(Mode.NORMAL)
            if row is not None:
                self.model.edit_value(row.path, parse_user_text(text))
                self.dirty = True
            self.rebuild_visible()

        elif mode is Mode.RENAME_KEY:
            if row is None:
                self._set_mode(Mode.NORMAL)
                return
            new_key = text.strip()
            if not new_key:
                self.set_toast("Key cannot be empty")
                return
            try:
                self.model.rename_key(row.path, new_key)
            except ModelError as exc:
                self.set_toast(str(exc))
                return
            self.dirty = True
            self._set_mode(Mode.NORMAL)
            parent, _ = row.path.split_parent()
            self.rebuild_visible(select=parent.child_key(new_key))

        elif mode is Mode.ADD_KEY:
            new_key = text.strip()
            if not new_key:
                self.set_toast("Key cannot be empty")
                return
            self.state = ModeState.add_value(new_key)
            self.input.set("")

        elif mode is Mode.ADD_VALUE:
            self._commit_add_value(row, parse_user_text(text))

        elif mode is Mode.SEARCH_INPUT:
            query = text.strip()
            self.search_query = query or None
            self._set_mode(Mode.NORMAL)
            self.input.set("")
            self.rebuild_visible()
            if query and not self.matches:
                self.set_toast("No matches found")
            elif self.matches:
                self.selection = self.matches[0]

        elif mode is Mode.RAW_EDIT_LINE:
            if self.raw is not None:
                self.raw.replace_line(self.selection, text)
                self.dirty = True
            self._set_mode(Mode.NORMAL)

    def _commit_add_value(self, row: VisibleRow | None, value: object) -> None:
        if row is None:
            self._set_mode(Mode.NORMAL)
            return
        try:
            if row.node_type is NodeType.MAP:
                key = self.pending_key
                if key is None:
                    self._set_mode(Mode.NORMAL)
                    return
                self.model.add_mapping_child(row.path, key, value)
            elif row.node_type is NodeType.SEQ:
                self.model.add_sequence_value(row.path, value)
            else:
                self._set_mode(Mode.NORMAL)
                return
        except ModelError as exc:
            self.set_toast(str(exc))
            return
        self.dirty = True
        self._set_mode(Mode.NORMAL)
        self.input.set("")
        self.expanded.add(row.path.dot_path())
        self.rebuild_visible()

    # -- Raw fallback ------------------------------------------------------

    def raw_delete_line(self, index: int) -> None:
        if self.raw is None or not self.raw.delete_line(index):
            return
        self.dirty = True
        remaining = len(self.raw)
        if remaining == 0:
            self.selection = 0
        elif self.selection >= remaining:
            self.selection = remaining - 1

    def save_raw_and_reparse(self) -> None:
        """Write the raw lines back and parse again; back to the tree on
        success, stay in raw mode with the new error otherwise."""
        if self.raw is None:
            return
        path = self.model.file_path
        try:
            Path(path).write_text(self.raw.text(), encoding="utf-8")
            result = load_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("raw save failed for %s: %s", path, exc)
            self.set_toast(f"Save failed: {exc}")
            return
        self.dirty = False
        self.last_modified = _mtime(path)
        self.model = result.model
        self.parse_error = result.parse_error
        if result.parse_error is None:
            self.raw = None
            self.expanded = {""}
            self.viewport.reset()
            self.rebuild_visible()
            self.set_toast("Saved and parsed successfully")
        else:
            self.raw = RawBuffer(result.raw_content or "")
            self.viewport.clamp(len(self.raw))
            self.set_toast("Saved; parse still has errors")

    # -- Files -------------------------------------------------------------

    def save(self) -> None:
        if not self.model.file_path:
            self.set_toast("No file to save")
            return
        try:
            self.model.save()
        except OSError as exc:
            logger.warning("save failed for %s: %s", self.model.file_path, exc)
            self.set_toast(f"Save failed: {exc}")
            return
        self.dirty = False
        self.last_modified = _mtime(self.model.file_path)
        self.set_toast("Saved")

    def open_file(self, path: str | Path) -> None:
        result = load_document(path)
        self._load(result)
        self.picker = None
        self.hit_map = []
        self.dirty = False
        self._set_mode(Mode.NORMAL)
        self.toast = None
        self.input.set("")
        self.right_click_ignore_until = None
        self.hover_row = None
        self.last_modified = _mtime(str(path))
        self.last_file_check = None
        logger.debug("opened %s", path)

    def switch_to_file_picker(self) -> None:
        if self.model.file_path:
            directory = Path(self.model.file_path).resolve().parent
        else:
            directory = Path.cwd()
        self.picker = FilePickerState(directory, list_picker_entries(directory))
        self.viewport.reset()
        self._set_mode(Mode.NORMAL)

    def picker_enter_selected(self) -> None:
        """Open the selected picker entry: change directory or load a file."""
        picker = self.picker
        if picker is None or not 0 <= self.selection < len(picker.entries):
            return
        entry = picker.entries[self.selection]
        if entry.kind is EntryKind.FILE:
            try:
                self.open_file(entry.path)
            except (OSError, UnicodeDecodeError) as exc:
                self.set_toast(str(exc))
            return
        if entry.path.is_dir():
            try:
                entries = list_picker_entries(entry.path)
            except OSError as exc:
                logger.warning("cannot list %s: %s", entry.path, exc)
                self.set_toast(str(exc))
                return
            picker.entries = entries
            picker.current_dir = entry.path.resolve()
            self.viewport.reset()

    def check_and_reload_if_changed(self) -> None:
        """Reload the file if it changed on disk. Checks at most once per
        ``FILE_CHECK_INTERVAL`` and never while there are unsaved edits."""
        if self.picker is not None or not self.model.file_path or self.dirty:
            return
        now = self.clock()
        if (
            self.last_file_check is not None
            and now - self.last_file_check < self.FILE_CHECK_INTERVAL
        ):
            return
        self.last_file_check = now
        path = self.model.file_path
        modified = _mtime(path)
        if modified is None:
            return
        if self.last_modified is not None and modified <= self.last_modified:
            return
        self.last_modified = modified
        try:
            result = load_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("reload failed for %s: %s", path, exc)
            self.set_toast(str(exc))
            return
        self.model = result.model
        self.parse_error = result.parse_error
        self.raw = RawBuffer(result.raw_content) if result.raw_content is not None else None
        self.expanded = {""}
        self.rebuild_visible()
        self.viewport.clamp(self.visible_len())
        logger.debug("reloaded %s after external change", path)
        self.set_toast("File changed on disk, reloaded")

    # -- Mouse -------------------------------------------------------------

    def _hit_at(self, y: int) -> int | None:
        for hit in self.hit_map:
            if hit.y == y:
                return hit.row_index
        return None

    def handle_hover(self, y: int) -> None:
        self.hover_row = self._hit_at(y)

    def handle_right_click(self) -> None:
        self.right_click_ignore_until = self.clock() + self.RIGHT_CLICK_GUARD

    def handle_click(self, y: int, height: int) -> None:
        """Left click on screen line *y*: select the row under it and toggle
        it if it is a container."""
        index = self._hit_at(y)
        if index is None or index >= self.visible_len():
            return
        if self.picker is not None:
            self.selection = index
            self.picker_enter_selected()
            return
        if self.mode is not Mode.NORMAL:
            return
        self.selection = index
        row = self.current_row()
        if row is not None and row.is_container:
            self._set_expanded(row.path.dot_path() not in self.expanded)
        self.viewport.ensure_visible(self.visible_len(), height)

    def handle_scroll(self, delta: int, height: int) -> None:
        if self.picker is not None:
            self.viewport.move(delta, self.visible_len(), height)
            return
        self.viewport.scroll_by(delta, self.visible_len(), height)

    # -- Status ------------------------------------------------------------

    def status_fields(self) -> tuple[str, int, str, str]:
        """``(location, depth, kind, value)`` for the status line."""
        if self.raw is not None:
            if 0 <= self.selection < len(self.raw):
                line = self.raw.lines[self.selection]
                return f"Line {self.selection + 1}", self.selection, "raw", line[:40]
            return "", 0, "", ""
        row = self.current_row()
        if row is None:
            return "", 0, "", ""
        return (
            row.path.dot_path(),
            row.path.depth(),
            str(row.node_type),
            row.value_preview,
        )
