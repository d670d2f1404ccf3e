"""Hierarchical component-tag tree (``"UI>Browser>Accessibility"``).

Selection is owned by the caller: the view receives the selected paths and a
toggle callback, so checked items survive a rebuild when the option catalog
refreshes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

DELIMITER = ">"


@dataclass
class TagNode:
    """One tree node. ``full_path`` is its unique identity."""

    label: str
    full_path: str
    _children: dict[str, TagNode] = field(default_factory=dict, repr=False)

    @property
    def children(self) -> list[TagNode]:
        """Children sorted lexicographically by segment label."""
        return [self._children[key] for key in sorted(self._children)]

    @property
    def has_children(self) -> bool:
        return bool(self._children)

    def child(self, label: str) -> TagNode | None:
        return self._children.get(label)

    def add_path(self, path: str) -> None:
        segments = split_path(path)
        node = self
        walked: list[str] = []
        for segment in segments:
            walked.append(segment)
            existing = node._children.get(segment)
            if existing is None:
                existing = TagNode(label=segment, full_path=DELIMITER.join(walked))
                node._children[segment] = existing
            node = existing

    def walk(self) -> Iterator[tuple[TagNode, int]]:
        """Depth-first ``(node, depth)`` pairs in sorted order, excluding self."""
        for child in self.children:
            yield child, 0
            for node, depth in child.walk():
                yield node, depth + 1

    def find(self, path: str) -> TagNode | None:
        node: TagNode | None = self
        for segment in split_path(path):
            node = node.child(segment) if node else None
        return node if node is not self else None

    def search(self, term: str) -> list[str]:
        """Full paths of every node whose path contains ``term`` (case-insensitive)."""
        needle = term.lower()
        return [node.full_path for node, _ in self.walk() if needle in node.full_path.lower()]


def split_path(path: str) -> list[str]:
    """Split on ``>``, stripping whitespace and skipping empty segments."""
    return [part.strip() for part in path.split(DELIMITER) if part.strip()]


def build_tree(paths: Iterable[str]) -> TagNode:
    root = TagNode(label="", full_path="")
    for path in paths:
        if path:
            root.add_path(path)
    return root


def search_paths(options: Iterable[str], term: str) -> list[str]:
    """Flat, case-insensitive substring filter over option paths, in option order.

    Paths are normalized the same way tree nodes are, so a component keeps one
    identity whether or not a search term is active.
    """
    needle = term.lower()
    matches: list[str] = []
    for option in options:
        path = DELIMITER.join(split_path(option))
        if path and needle in path.lower() and path not in matches:
            matches.append(path)
    return matches


class ExpansionState:
    """Expand/collapse map keyed by full path. Everything starts collapsed."""

    def __init__(self, expanded: Iterable[str] = ()):
        self._expanded: dict[str, bool] = {path: True for path in expanded}

    def is_expanded(self, path: str) -> bool:
        return self._expanded.get(path, False)

    def expand(self, path: str) -> None:
        self._expanded[path] = True

    def collapse(self, path: str) -> None:
        self._expanded[path] = False

    def toggle(self, path: str) -> None:
        self._expanded[path] = not self.is_expanded(path)

    def expand_all(self, root: TagNode) -> None:
        for node, _ in root.walk():
            if node.has_children:
                self.expand(node.full_path)

    @property
    def expanded(self) -> list[str]:
        return sorted(path for path, is_open in self._expanded.items() if is_open)


@dataclass(frozen=True)
class TagRow:
    path: str
    label: str
    depth: int = 0
    has_children: bool = False
    expanded: bool = False
    selected: bool = False


class TagTreeView:
    """Visible rows of the component filter for a given search term."""

    def __init__(
        self,
        options: Iterable[str],
        selected: set[str],
        on_toggle: Callable[[str], None],
        expansion: ExpansionState | None = None,
    ):
        self.options = list(options)
        self.selected = selected
        self.on_toggle = on_toggle
        self.expansion = expansion or ExpansionState()
        self.root = build_tree(self.options)

    def rebuild(self, options: Iterable[str]) -> None:
        """Swap the option catalog; selection and expansion are untouched."""
        self.options = list(options)
        self.root = build_tree(self.options)

    def toggle(self, path: str) -> None:
        self.on_toggle(path)

    def rows(self, term: str = "") -> list[TagRow]:
        if term:
            # Search results are a flat list, not a filtered tree.
            return [
                TagRow(path=path, label=path, selected=path in self.selected)
                for path in search_paths(self.options, term)
            ]
        rows: list[TagRow] = []
        self._collect(self.root, 0, rows)
        return rows

    def _collect(self, node: TagNode, depth: int, rows: list[TagRow]) -> None:
        for child in node.children:
            expanded = self.expansion.is_expanded(child.full_path)
            rows.append(TagRow(
                path=child.full_path,
                label=child.label,
                depth=depth,
                has_children=child.has_children,
                expanded=expanded,
                selected=child.full_path in self.selected,
            ))
            if child.has_children and expanded:
                self._collect(child, depth + 1, rows)
