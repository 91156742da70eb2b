"""Node addressing: key/index segments from the document root."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Key:
    name: str


@dataclass(frozen=True)
class Index:
    index: int


PathSegment = Union[Key, Index]


@dataclass(frozen=True)
class NodePath:
    """Ordered segments addressing a node. The empty path is the root."""

    segments: tuple[PathSegment, ...] = ()

    @classmethod
    def root(cls) -> NodePath:
        return cls(())

    @classmethod
    def from_dot(cls, dot: str) -> NodePath:
        """Build a path from ``a.0.b``; all-digit parts become indices."""
        segments: list[PathSegment] = []
        for part in dot.split("."):
            if not part:
                continue
            if part.isdigit():
                segments.append(Index(int(part)))
            else:
                segments.append(Key(part))
        return cls(tuple(segments))

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def last(self) -> PathSegment | None:
        return self.segments[-1] if self.segments else None

    def dot_path(self) -> str:
        # Keys are joined verbatim: "a.b" as one key equals the path a -> b.
        parts = []
        for seg in self.segments:
            if isinstance(seg, Key):
                parts.append(seg.name)
            else:
                parts.append(str(seg.index))
        return ".".join(parts)

    def depth(self) -> int:
        return len(self.segments)

    def child_key(self, name: str) -> NodePath:
        return NodePath(self.segments + (Key(name),))

    def child_index(self, index: int) -> NodePath:
        return NodePath(self.segments + (Index(index),))

    def split_parent(self) -> tuple[NodePath, PathSegment]:
        if not self.segments:
            raise ValueError("root path has no parent")
        return NodePath(self.segments[:-1]), self.segments[-1]

    def __str__(self) -> str:
        return self.dot_path()
