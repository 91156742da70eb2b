"""Flatten the shadow tree into the rows that are shown and addressable."""

from __future__ import annotations

from dataclasses import dataclass

from yed._path import NodePath
from yed.model import NodeType, TreeNode

ROOT_LABEL = "(root)"


@dataclass
class VisibleRow:
    path: NodePath
    depth: int
    display_key: str
    value_preview: str
    node_type: NodeType
    is_container: bool


def node_matches(node: TreeNode, query: str) -> bool:
    q = query.lower()
    return q in node.path.dot_path().lower() or q in node.key.lower()


def _collect_match_ancestors(node: TreeNode, query: str, ancestors: set[str]) -> bool:
    """Record the dot path of every non-root node that matches or has a
    matching descendant. Returns whether *node* is such a node."""
    matched = node_matches(node, query)
    for child in node.children:
        if _collect_match_ancestors(child, query, ancestors):
            matched = True
    if matched and not node.path.is_root:
        ancestors.add(node.path.dot_path())
    return matched


def flatten_visible(
    tree: TreeNode,
    expanded: set[str],
    query: str | None = None,
) -> list[VisibleRow]:
    """Pre-order list of visible rows.

    Without a query, children are shown for the root and for nodes whose dot
    path is in *expanded*. With a query, only matches and their ancestors are
    shown, and every ancestor of a match is expanded regardless of
    *expanded*.
    """
    rows: list[VisibleRow] = []
    ancestors: set[str] = set()
    if query:
        query = query.lower()
        _collect_match_ancestors(tree, query, ancestors)
    else:
        query = None
    _walk(tree, expanded, query, ancestors, 0, rows)
    return rows


def _walk(
    node: TreeNode,
    expanded: set[str],
    query: str | None,
    ancestors: set[str],
    depth: int,
    rows: list[VisibleRow],
) -> None:
    is_root = node.path.is_root
    if is_root:
        # A scalar root has no row; a container root is where top-level
        # keys and items get added.
        if node.node_type.is_container:
            rows.append(
                VisibleRow(node.path, 0, ROOT_LABEL, "", node.node_type, True)
            )
    else:
        dot = node.path.dot_path()
        if query is not None and dot not in ancestors and not node_matches(node, query):
            return
        rows.append(
            VisibleRow(
                node.path,
                depth,
                node.key,
                node.value_preview,
                node.node_type,
                node.node_type.is_container,
            )
        )

    if query is not None:
        descend = is_root or node.path.dot_path() in ancestors
    else:
        descend = is_root or node.path.dot_path() in expanded
    if descend:
        for child in node.children:
            _walk(child, expanded, query, ancestors, depth + 1, rows)


def visible_row_by_path(rows: list[VisibleRow], path: NodePath) -> int | None:
    for idx, row in enumerate(rows):
        if row.path == path:
            return idx
    return None
