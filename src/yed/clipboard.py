"""System clipboard access."""

from __future__ import annotations

import pyperclip


class ClipboardError(Exception):
    pass


def copy_to_clipboard(text: str) -> None:
    """Put *text* on the system clipboard; raises :class:`ClipboardError`
    when no clipboard mechanism is available."""
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ClipboardError(str(exc)) from exc
