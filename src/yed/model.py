"""In-memory YAML document with path-addressed mutations."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from yed._path import Index, Key, NodePath
from yed._scalar import preview

logger = logging.getLogger(__name__)

NON_STRING_KEY = "<non-string>"
_KEY_PREVIEW_MAX = 40


# -- Errors ----------------------------------------------------------------


class ModelError(Exception):
    """Base class for rejected mutations; the message is shown to the user."""


class NotFoundError(ModelError):
    pass


class InvalidTargetError(ModelError):
    pass


class DuplicateKeyError(ModelError):
    pass


# -- Shadow tree -----------------------------------------------------------


class NodeType(Enum):
    MAP = "map"
    SEQ = "seq"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    NULL = "null"
    UNKNOWN = "unknown"

    @property
    def is_container(self) -> bool:
        return self in (NodeType.MAP, NodeType.SEQ)

    def __str__(self) -> str:
        return self.value


def node_type(value: object) -> NodeType:
    if isinstance(value, dict):
        return NodeType.MAP
    if isinstance(value, list):
        return NodeType.SEQ
    if isinstance(value, str):
        return NodeType.STRING
    # bool before int: True is an int too
    if isinstance(value, bool):
        return NodeType.BOOL
    if isinstance(value, int):
        return NodeType.INTEGER
    if isinstance(value, float):
        return NodeType.FLOAT
    if value is None:
        return NodeType.NULL
    return NodeType.UNKNOWN


@dataclass
class TreeNode:
    """Read-only view of one document node."""

    path: NodePath
    key: str
    node_type: NodeType
    value_preview: str
    children: list[TreeNode] = field(default_factory=list)


def _scalar_preview(value: object) -> str:
    if node_type(value) is NodeType.UNKNOWN:
        return str(value)
    return preview(value)


def _sequence_item_label(value: object) -> str:
    """Label for a list item: first key of a map, else the value preview."""
    if isinstance(value, dict):
        for k in value:
            return k if isinstance(k, str) else NON_STRING_KEY
        return "{}"
    if isinstance(value, list):
        return _sequence_item_label(value[0]) if value else "[]"
    text = _scalar_preview(value)
    if len(text) > _KEY_PREVIEW_MAX:
        return text[: _KEY_PREVIEW_MAX - 1] + "…"
    return text


def _build_node(path: NodePath, key: str, value: object) -> TreeNode:
    kind = node_type(value)
    if kind is NodeType.MAP:
        children = []
        for k, v in value.items():
            name = k if isinstance(k, str) else NON_STRING_KEY
            children.append(_build_node(path.child_key(name), name, v))
        return TreeNode(path, key, kind, "", children)
    if kind is NodeType.SEQ:
        children = [
            _build_node(path.child_index(i), _sequence_item_label(item), item)
            for i, item in enumerate(value)
        ]
        return TreeNode(path, key, kind, "", children)
    return TreeNode(path, key, kind, _scalar_preview(value))


# -- Codec boundary ----------------------------------------------------------


_BOOL_TAG = "tag:yaml.org,2002:bool"


class _Yaml12Loader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans: only true/false, so keys such as
    ``on`` or ``yes`` stay strings."""


_Yaml12Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_Yaml12Loader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def parse_yaml(text: str) -> object:
    """Parse the first document of *text*. A stream with no document at all
    (blank or comments only) gives an empty mapping.

    Raises ``yaml.YAMLError`` on malformed input.
    """
    for doc in yaml.load_all(text, Loader=_Yaml12Loader):
        return doc
    return {}


def dump_yaml(value: object) -> str:
    return yaml.safe_dump(
        value, sort_keys=False, allow_unicode=True, default_flow_style=False
    )


# -- Model -------------------------------------------------------------------


@dataclass
class LoadResult:
    model: DocumentModel
    parse_error: str | None = None
    raw_content: str | None = None


def load_document(path: str | Path) -> LoadResult:
    """Read and parse *path*. A parse failure is returned, not raised, with
    an empty model and the raw text so the file can still be edited.

    ``OSError`` from reading propagates.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        value = parse_yaml(text)
    except yaml.YAMLError as exc:
        logger.debug("parse failed for %s: %s", path, exc)
        return LoadResult(DocumentModel({}, str(path)), str(exc), text)
    logger.debug("loaded %s", path)
    return LoadResult(DocumentModel(value, str(path)))


class DocumentModel:
    """Owns the document value and the file it came from."""

    def __init__(self, value: object = None, file_path: str = "") -> None:
        self.value: object = value
        self.file_path: str = file_path

    @classmethod
    def empty(cls) -> DocumentModel:
        return cls({}, "")

    # -- Reads ---------------------------------------------------------------

    def build_tree(self) -> TreeNode:
        return _build_node(NodePath.root(), "", self.value)

    def value_at(self, path: NodePath) -> object:
        node = self.value
        for seg in path.segments:
            if isinstance(seg, Key):
                if not isinstance(node, dict):
                    raise NotFoundError("Expected mapping")
                if seg.name not in node:
                    raise NotFoundError(f"Key not found: {seg.name}")
                node = node[seg.name]
            else:
                if not isinstance(node, list):
                    raise NotFoundError("Expected sequence")
                if not 0 <= seg.index < len(node):
                    raise NotFoundError("Index out of bounds")
                node = node[seg.index]
        return node

    # -- Mutations -----------------------------------------------------------

    def _replace(self, path: NodePath, value: object) -> None:
        self.value_at(path)
        if path.is_root:
            self.value = value
            return
        parent_path, last = path.split_parent()
        parent = self.value_at(parent_path)
        if isinstance(last, Key):
            parent[last.name] = value
        else:
            parent[last.index] = value

    def edit_value(self, path: NodePath, value: object) -> None:
        self._replace(path, value)

    def convert_to_empty_map(self, path: NodePath) -> None:
        self._replace(path, {})

    def rename_key(self, path: NodePath, new_name: str) -> None:
        if not isinstance(path.last, Key):
            raise InvalidTargetError("Not a mapping key")
        parent_path, last = path.split_parent()
        parent = self.value_at(parent_path)
        if not isinstance(parent, dict):
            raise InvalidTargetError("Parent is not a mapping")
        if new_name in parent:
            raise DuplicateKeyError("Key already exists")
        if last.name not in parent:
            raise NotFoundError("Key not found")
        parent[new_name] = parent.pop(last.name)

    def add_mapping_child(self, path: NodePath, key: str, value: object) -> None:
        node = self.value_at(path)
        if not isinstance(node, dict):
            raise InvalidTargetError("Node is not a mapping")
        if key in node:
            raise DuplicateKeyError("Key already exists")
        node[key] = value

    def add_sequence_value(self, path: NodePath, value: object) -> None:
        node = self.value_at(path)
        if not isinstance(node, list):
            raise InvalidTargetError("Node is not a sequence")
        node.append(value)

    def add_sequence_empty_map(self, path: NodePath) -> NodePath:
        """Append ``{}`` to the sequence at *path*; return the new item's path."""
        node = self.value_at(path)
        if not isinstance(node, list):
            raise InvalidTargetError("Node is not a sequence")
        node.append({})
        return path.child_index(len(node) - 1)

    def delete_node(self, path: NodePath) -> None:
        """Remove the node at *path*. Later items of a sequence shift down, so
        their old paths now address different values."""
        if path.is_root:
            raise InvalidTargetError("Cannot delete root")
        parent_path, last = path.split_parent()
        parent = self.value_at(parent_path)
        if isinstance(parent, dict) and isinstance(last, Key):
            if last.name not in parent:
                raise NotFoundError(f"Key not found: {last.name}")
            del parent[last.name]
        elif isinstance(parent, list) and isinstance(last, Index):
            if not 0 <= last.index < len(parent):
                raise NotFoundError("Index out of bounds")
            del parent[last.index]
        else:
            raise InvalidTargetError("Invalid delete target")

    # -- Persistence ---------------------------------------------------------

    def save(self) -> None:
        Path(self.file_path).write_text(dump_yaml(self.value), encoding="utf-8")
        logger.debug("saved %s", self.file_path)
