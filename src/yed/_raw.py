"""Line buffer used when the document does not parse."""

from __future__ import annotations


class RawBuffer:
    def __init__(self, text: str) -> None:
        self.lines: list[str] = text.splitlines()

    def __len__(self) -> int:
        return len(self.lines)

    def text(self) -> str:
        return "\n".join(self.lines)

    def replace_line(self, index: int, text: str) -> None:
        """Replace line *index* with the first line of *text*; out-of-range
        indices are ignored."""
        if 0 <= index < len(self.lines):
            parts = text.splitlines()
            self.lines[index] = parts[0] if parts else ""

    def delete_line(self, index: int) -> bool:
        if 0 <= index < len(self.lines):
            del self.lines[index]
            return True
        return False
