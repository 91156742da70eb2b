"""Textual widget that draws an :class:`EditorSession` and feeds it events."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from yed._input import Mode
from yed.session import EditorSession, RowHit

_PROMPTS = {
    Mode.EDIT_VALUE: "Value: ",
    Mode.RENAME_KEY: "Rename key: ",
    Mode.ADD_KEY: "New key: ",
    Mode.ADD_VALUE: "New value: ",
    Mode.SEARCH_INPUT: "/",
    Mode.RAW_EDIT_LINE: "Line: ",
}
_CONFIRMS = {
    Mode.CONFIRM_DELETE: "Delete this node? (y/n)",
    Mode.CONFIRM_QUIT: "Unsaved changes. Quit anyway? (y/n)",
    Mode.CONFIRM_OPEN_ANOTHER: "Unsaved changes. Open another file? (y/n)",
    Mode.CONFIRM_RAW_DELETE_LINE: "Delete this line? (y/n)",
}
_HELP = (
    "j/k move  h/l fold  e edit  r rename  a add  A add obj  d delete"
    "  / search  n/N next  y copy  ^S save  ^O open  q quit"
)


class YamlTreeView(Widget, can_focus=True):
    """Collapsible YAML tree with a status line and a prompt line.

    The bottom two lines are always the status bar and the prompt; every
    other line shows one row of the active list (tree rows, raw lines or
    picker entries).
    """

    DEFAULT_CSS = """
    YamlTreeView {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    _MODE_STYLE = {
        Mode.NORMAL: "bold white on dark_green",
        Mode.SEARCH_INPUT: "bold white on dark_magenta",
        Mode.RAW_EDIT_LINE: "bold white on dark_red",
    }
    _TYPE_STYLE = {
        "string": "green",
        "integer": "yellow",
        "float": "yellow",
        "bool": "magenta",
        "null": "dim magenta",
    }

    @dataclass
    class Quit(Message):
        pass

    def __init__(
        self,
        session: EditorSession,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.session = session

    def _rows_height(self) -> int:
        return max(1, self.content_region.height - 2)

    # -- Rendering -----------------------------------------------------------

    def render(self) -> Text:
        session = self.session
        width = self.content_region.width
        rows_height = self._rows_height()

        result = Text(no_wrap=True, overflow="ellipsis")
        if session.picker is not None:
            lines = self._picker_lines()
        elif session.raw is not None:
            lines = self._raw_lines()
        else:
            lines = self._tree_lines()

        hits: list[RowHit] = []
        start = session.scroll
        shown = lines[start : start + rows_height]
        for y, line in enumerate(shown):
            index = start + y
            hits.append(RowHit(index, y))
            if index == session.selection:
                line.stylize("reverse")
            elif index == session.hover_row:
                line.stylize("underline")
            result.append_text(line)
            result.append("\n")
        for _ in range(rows_height - len(shown)):
            result.append("~\n", style="dim blue")
        session.update_hit_map(hits)

        self._append_status(result, width)
        self._append_prompt(result)
        return result

    def _tree_lines(self) -> list[Text]:
        session = self.session
        matches = set(session.matches)
        searching = session.search_query is not None
        lines = []
        for idx, row in enumerate(session.visible):
            line = Text("  " * row.depth)
            if row.is_container:
                opened = (
                    row.path.is_root
                    or searching
                    or row.path.dot_path() in session.expanded
                )
                line.append("▾ " if opened else "▸ ", style="dim")
            else:
                line.append("  ")
            key_style = "bold yellow" if idx in matches else "cyan"
            line.append(row.display_key, style=key_style)
            if row.value_preview:
                line.append(": ")
                line.append(
                    row.value_preview,
                    style=self._TYPE_STYLE.get(str(row.node_type), "white"),
                )
            elif row.is_container:
                line.append(f"  {row.node_type}", style="dim italic")
            lines.append(line)
        return lines

    def _raw_lines(self) -> list[Text]:
        raw = self.session.raw
        width = max(3, len(str(len(raw))))
        return [
            Text.assemble((f"{i + 1:>{width}} ", "dim cyan"), line)
            for i, line in enumerate(raw.lines)
        ]

    def _picker_lines(self) -> list[Text]:
        return [
            Text(entry.label, style="bold blue" if entry.label.endswith("/") else "")
            for entry in self.session.picker.entries
        ]

    def _append_status(self, result: Text, width: int) -> None:
        session = self.session
        mode = session.mode
        label = f" {mode.name.replace('_', ' ')} "
        result.append(label, style=self._MODE_STYLE.get(mode, "bold white on dark_blue"))
        if session.dirty:
            result.append(" [+]", style="bold yellow")
        if session.picker is not None:
            info = f"  {session.picker.current_dir}"
        else:
            location, depth, kind, value = session.status_fields()
            info = f"  {location}  {kind}  {value}" if location else ""
            if session.parse_error:
                info = f"  parse error: {session.parse_error.splitlines()[0]}" + info
        result.append(info)
        if session.toast is not None:
            pad = max(2, width - len(label) - len(info) - len(session.toast.message) - 6)
            result.append(" " * pad)
            result.append(session.toast.message, style="bold")
        result.append("\n")

    def _append_prompt(self, result: Text) -> None:
        session = self.session
        mode = session.mode
        if mode in _PROMPTS:
            prompt = _PROMPTS[mode]
            if mode is Mode.ADD_VALUE and session.pending_key:
                prompt = f"Value for {session.pending_key}: "
            text = session.input.text
            cursor = session.input.cursor
            result.append(prompt, style="bold yellow")
            result.append(text[:cursor])
            result.append(text[cursor : cursor + 1] or " ", style="reverse")
            result.append(text[cursor + 1 :])
        elif mode in _CONFIRMS:
            result.append(_CONFIRMS[mode], style="bold red")
        else:
            result.append(_HELP, style="dim")

    # -- Events --------------------------------------------------------------

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        if self.session.handle_key(event, self._rows_height()):
            self.post_message(self.Quit())
        self.refresh()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button == 3:
            self.session.handle_right_click()
        elif event.button == 1:
            # Hit map lines are content lines; event.y includes the border.
            offset = event.get_content_offset(self)
            if offset is None:
                return
            self.session.handle_click(offset.y, self._rows_height())
        self.refresh()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        offset = event.get_content_offset(self)
        self.session.handle_hover(offset.y if offset is not None else -1)
        self.refresh()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self.session.handle_scroll(-1, self._rows_height())
        self.refresh()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self.session.handle_scroll(1, self._rows_height())
        self.refresh()
