"""Terminal YAML editor application."""

from __future__ import annotations

import argparse
import logging
import sys

from textual.app import App, ComposeResult
from textual.widgets import Header

from yed.clipboard import ClipboardError, copy_to_clipboard
from yed.session import EditorSession
from yed.widget import YamlTreeView


class YamlEditorApp(App):
    """TUI app that wraps the YamlTreeView widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #tree {
        height: 1fr;
        border: solid $accent;
    }
    """

    TITLE = "YAML Editor"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False
    POLL_INTERVAL = 0.1

    def __init__(self, session: EditorSession, **kwargs) -> None:
        super().__init__(**kwargs)
        self.session = session
        session.clipboard = self._copy_text

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield YamlTreeView(self.session, id="tree")

    def on_mount(self) -> None:
        self._update_title()
        self.query_one("#tree").focus()
        self.set_interval(self.POLL_INTERVAL, self._poll)

    def _update_title(self) -> None:
        session = self.session
        if session.is_file_picker:
            self.sub_title = "[open file]"
        else:
            dirty = " [+]" if session.dirty else ""
            self.sub_title = (session.model.file_path or "[new]") + dirty

    def _poll(self) -> None:
        self.session.update_toast()
        self.session.check_and_reload_if_changed()
        self._update_title()
        self.query_one("#tree").refresh()

    def _copy_text(self, text: str) -> None:
        try:
            copy_to_clipboard(text)
        except ClipboardError:
            # No system clipboard (e.g. over ssh): ask the terminal via OSC 52.
            self.copy_to_clipboard(text)

    def on_yaml_tree_view_quit(self, event: YamlTreeView.Quit) -> None:
        self.exit()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="yed",
        description="YAML tree editor in Textual",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="YAML file to open; without it a file picker is shown",
    )
    parser.add_argument(
        "--log-file",
        default="",
        help="write debug log to this file",
    )
    args = parser.parse_args()

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    if args.file:
        try:
            session = EditorSession.open(args.file)
        except (OSError, UnicodeDecodeError) as exc:
            print(f"yed: {exc}", file=sys.stderr)
            sys.exit(1)
    else:
        session = EditorSession.for_picker()

    app = YamlEditorApp(session)
    app.run()


if __name__ == "__main__":
    main()
