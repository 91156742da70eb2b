"""Editor modes and key-to-action mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class Mode(Enum):
    NORMAL = auto()
    EDIT_VALUE = auto()
    RENAME_KEY = auto()
    ADD_KEY = auto()
    ADD_VALUE = auto()
    CONFIRM_DELETE = auto()
    CONFIRM_QUIT = auto()
    CONFIRM_OPEN_ANOTHER = auto()
    CONFIRM_RAW_DELETE_LINE = auto()
    SEARCH_INPUT = auto()
    RAW_EDIT_LINE = auto()

    @property
    def is_text_entry(self) -> bool:
        return self in _TEXT_ENTRY

    @property
    def is_confirm(self) -> bool:
        return self in _CONFIRM


_TEXT_ENTRY = frozenset(
    {
        Mode.EDIT_VALUE,
        Mode.RENAME_KEY,
        Mode.ADD_KEY,
        Mode.ADD_VALUE,
        Mode.SEARCH_INPUT,
        Mode.RAW_EDIT_LINE,
    }
)
_CONFIRM = frozenset(
    {
        Mode.CONFIRM_DELETE,
        Mode.CONFIRM_QUIT,
        Mode.CONFIRM_OPEN_ANOTHER,
        Mode.CONFIRM_RAW_DELETE_LINE,
    }
)


@dataclass(frozen=True)
class ModeState:
    """Active mode. ``pending_key`` is the key typed in ADD_KEY, carried only
    by the ADD_VALUE state that follows it."""

    mode: Mode = Mode.NORMAL
    pending_key: str | None = None

    @classmethod
    def add_value(cls, pending_key: str | None = None) -> ModeState:
        return cls(Mode.ADD_VALUE, pending_key)


class Action(Enum):
    QUIT = auto()
    SAVE = auto()
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    JUMP_TOP = auto()
    JUMP_BOTTOM = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    JUMP_LEFT = auto()
    COLLAPSE = auto()
    EXPAND = auto()
    TOGGLE_EXPAND = auto()
    EDIT_VALUE = auto()
    RENAME_KEY = auto()
    ADD_CHILD = auto()
    ADD_MAP_TO_SEQUENCE = auto()
    DELETE_NODE = auto()
    DELETE_LINE = auto()
    COPY_PATH = auto()
    CONFIRM_YES = auto()
    CONFIRM_NO = auto()
    OPEN_ANOTHER = auto()
    START_SEARCH = auto()
    SEARCH_NEXT = auto()
    SEARCH_PREV = auto()
    CANCEL = auto()
    INPUT_CHAR = auto()
    INPUT_BACKSPACE = auto()
    INPUT_DELETE = auto()
    INPUT_LEFT = auto()
    INPUT_RIGHT = auto()
    INPUT_HOME = auto()
    INPUT_END = auto()
    INPUT_COMMIT = auto()


@dataclass(frozen=True)
class KeyAction:
    action: Action
    char: str = ""  # only for INPUT_CHAR


class InputLine:
    """Single-line text buffer with a cursor measured in characters."""

    def __init__(self, text: str = "") -> None:
        self.text: str = text
        self.cursor: int = len(text)

    def set(self, value: str) -> None:
        self.text = value
        self.cursor = len(value)

    def insert_char(self, ch: str) -> None:
        self.text = self.text[: self.cursor] + ch + self.text[self.cursor :]
        self.cursor += len(ch)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
        self.cursor -= 1

    def delete(self) -> None:
        if self.cursor >= len(self.text):
            return
        self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]

    def move_left(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_right(self) -> None:
        if self.cursor < len(self.text):
            self.cursor += 1

    def move_home(self) -> None:
        self.cursor = 0

    def move_end(self) -> None:
        self.cursor = len(self.text)


# NORMAL mode bindings. Characters are matched first, then key names.
_NORMAL_CHARS = {
    "q": Action.QUIT,
    "j": Action.MOVE_DOWN,
    "k": Action.MOVE_UP,
    "G": Action.JUMP_BOTTOM,
    "h": Action.COLLAPSE,
    "l": Action.EXPAND,
    "e": Action.EDIT_VALUE,
    "r": Action.RENAME_KEY,
    "a": Action.ADD_CHILD,
    "A": Action.ADD_MAP_TO_SEQUENCE,
    "d": Action.DELETE_NODE,
    "y": Action.COPY_PATH,
    "n": Action.SEARCH_NEXT,
    "N": Action.SEARCH_PREV,
    "/": Action.START_SEARCH,
    "0": Action.JUMP_LEFT,
}
_NORMAL_KEYS = {
    "ctrl+s": Action.SAVE,
    "ctrl+o": Action.OPEN_ANOTHER,
    "ctrl+u": Action.PAGE_UP,
    "ctrl+d": Action.PAGE_DOWN,
    "down": Action.MOVE_DOWN,
    "up": Action.MOVE_UP,
    "left": Action.COLLAPSE,
    "right": Action.EXPAND,
    "enter": Action.TOGGLE_EXPAND,
    "shift+delete": Action.DELETE_LINE,
}
_TEXT_KEYS = {
    "escape": Action.CANCEL,
    "enter": Action.INPUT_COMMIT,
    "left": Action.INPUT_LEFT,
    "right": Action.INPUT_RIGHT,
    "home": Action.INPUT_HOME,
    "end": Action.INPUT_END,
    "backspace": Action.INPUT_BACKSPACE,
    "delete": Action.INPUT_DELETE,
}


class VimInputHandler:
    """Turns key events into :class:`KeyAction`s for the current mode.

    Holds no document state. The only memory is the pending ``g`` of the
    ``gg`` binding, which is dropped by any other key or mode.
    """

    def __init__(self) -> None:
        self.pending_g: bool = False

    def handle_key(self, mode: Mode, event) -> KeyAction | None:
        key = event.key
        char = event.character or ""

        if mode.is_text_entry:
            self.pending_g = False
            return self._handle_text_entry(key, char)
        if mode.is_confirm:
            self.pending_g = False
            return self._handle_confirm(key, char)
        return self._handle_normal(key, char)

    def _handle_normal(self, key: str, char: str) -> KeyAction | None:
        # Control keys carry control characters, so key names go first.
        action = _NORMAL_KEYS.get(key)
        if action is None and char == "g":
            if self.pending_g:
                self.pending_g = False
                return KeyAction(Action.JUMP_TOP)
            self.pending_g = True
            return None
        self.pending_g = False
        if action is None:
            action = _NORMAL_CHARS.get(char)
        return KeyAction(action) if action is not None else None

    def _handle_text_entry(self, key: str, char: str) -> KeyAction | None:
        action = _TEXT_KEYS.get(key)
        if action is not None:
            return KeyAction(action)
        if char and char.isprintable():
            return KeyAction(Action.INPUT_CHAR, char)
        return None

    def _handle_confirm(self, key: str, char: str) -> KeyAction | None:
        if key == "escape" or char == "n":
            return KeyAction(Action.CONFIRM_NO)
        if char == "y":
            return KeyAction(Action.CONFIRM_YES)
        return None
