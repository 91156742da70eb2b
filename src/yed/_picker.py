"""Directory listing for choosing a YAML file."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path

YAML_SUFFIXES = (".yaml", ".yml")


class EntryKind(Enum):
    PARENT = auto()
    DIR = auto()
    FILE = auto()


@dataclass(frozen=True)
class PickerEntry:
    kind: EntryKind
    path: Path

    @property
    def label(self) -> str:
        if self.kind is EntryKind.PARENT:
            return ".."
        if self.kind is EntryKind.DIR:
            return self.path.name + "/"
        return self.path.name


@dataclass
class FilePickerState:
    current_dir: Path
    entries: list[PickerEntry] = field(default_factory=list)


def list_picker_entries(directory: Path) -> list[PickerEntry]:
    """``..`` first (unless at the filesystem root), then sub-directories,
    then YAML files, each group sorted by name."""
    directory = directory.resolve()
    entries: list[PickerEntry] = []
    if directory.parent != directory:
        entries.append(PickerEntry(EntryKind.PARENT, directory.parent))
    dirs: list[Path] = []
    files: list[Path] = []
    for child in directory.iterdir():
        if child.is_dir():
            dirs.append(child)
        elif child.is_file() and child.suffix.lower() in YAML_SUFFIXES:
            files.append(child)
    entries.extend(PickerEntry(EntryKind.DIR, p) for p in sorted(dirs, key=lambda p: p.name))
    entries.extend(PickerEntry(EntryKind.FILE, p) for p in sorted(files, key=lambda p: p.name))
    return entries
