"""
Arena-backed document tree.

Nodes are stored in a flat list and addressed by their integer index. Each
node keeps an ordered list of child indices and a non-owning parent index,
so the tree can be walked in both directions without reference cycles and
node identity is simply index equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from html import escape
from typing import Iterator


class NodeKind(str, Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    RAW = "raw"


VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})
WHITESPACE_PRESERVING_ELEMENTS = frozenset({"pre", "textarea"})


@dataclass
class Node:
    """A single arena entry.

    Attributes:
        index: Position of this node in its tree's arena
        kind: Node type
        tag: Element name (empty for non-element nodes)
        attrs: Ordered (key, value) pairs; duplicates are kept
        text: Character data for text, comment, doctype and raw nodes
        parent: Index of the owning parent, None for the root
        children: Ordered child indices in document order
    """

    index: int
    kind: NodeKind
    tag: str = ""
    attrs: list[tuple[str, str]] = field(default_factory=list)
    text: str = ""
    parent: int | None = None
    children: list[int] = field(default_factory=list)

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    @property
    def is_text(self) -> bool:
        return self.kind is NodeKind.TEXT


class DocumentTree:
    """Ordered, attributed node tree with exclusive parent ownership."""

    def __init__(self, root_kind: NodeKind = NodeKind.DOCUMENT, root_tag: str = "") -> None:
        self._nodes: list[Node] = [Node(index=0, kind=root_kind, tag=root_tag)]

    @property
    def root(self) -> int:
        return 0

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        return self._nodes[index]

    def append(
        self,
        parent: int,
        kind: NodeKind,
        tag: str = "",
        attrs: list[tuple[str, str]] | None = None,
        text: str = "",
    ) -> int:
        """Create a node as the last child of `parent` and return its index."""
        if not 0 <= parent < len(self._nodes):
            raise IndexError(f"unknown parent index {parent}")
        index = len(self._nodes)
        self._nodes.append(
            Node(
                index=index,
                kind=kind,
                tag=tag,
                attrs=list(attrs or []),
                text=text,
                parent=parent,
            )
        )
        self._nodes[parent].children.append(index)
        return index

    def element(self, parent: int, tag: str, attrs: list[tuple[str, str]] | None = None) -> int:
        return self.append(parent, NodeKind.ELEMENT, tag=tag, attrs=attrs)

    def text(self, parent: int, data: str) -> int:
        return self.append(parent, NodeKind.TEXT, text=data)

    def children(self, index: int) -> list[int]:
        return list(self._nodes[index].children)

    def parent(self, index: int) -> int | None:
        return self._nodes[index].parent

    def ancestors(self, index: int) -> Iterator[int]:
        """Yield ancestors of `index`, nearest first."""
        current = self._nodes[index].parent
        while current is not None:
            yield current
            current = self._nodes[current].parent

    def next_siblings(self, index: int) -> Iterator[int]:
        parent = self._nodes[index].parent
        if parent is None:
            return
        siblings = self._nodes[parent].children
        position = siblings.index(index)
        yield from siblings[position + 1 :]

    def descendants(self, index: int) -> Iterator[int]:
        """Yield `index` and all of its descendants in pre-order."""
        stack = [index]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(self._nodes[current].children))

    def text_nodes(self, index: int) -> Iterator[Node]:
        for i in self.descendants(index):
            node = self._nodes[i]
            if node.is_text:
                yield node

    def get_attr(self, index: int, key: str) -> str | None:
        """Return the first value for `key`, or None."""
        for name, value in self._nodes[index].attrs:
            if name == key:
                return value
        return None

    def text_content(self, index: int) -> str:
        return "".join(node.text for node in self.text_nodes(index))


def render(tree: DocumentTree, index: int | None = None) -> str:
    """Serialize the subtree rooted at `index` (default: the root) to HTML."""
    parts: list[str] = []
    # (index, inside script/style, closing tag pending)
    stack: list[tuple[int, bool, bool]] = [(tree.root if index is None else index, False, False)]
    while stack:
        current, raw_text, closing = stack.pop()
        node = tree[current]
        if closing:
            parts.append(f"</{node.tag}>")
        elif node.kind is NodeKind.DOCUMENT:
            stack.extend((child, False, False) for child in reversed(node.children))
        elif node.kind is NodeKind.TEXT:
            parts.append(node.text if raw_text else escape(node.text, quote=False))
        elif node.kind is NodeKind.COMMENT:
            parts.append(f"<!--{node.text}-->")
        elif node.kind is NodeKind.DOCTYPE:
            parts.append(f"<!DOCTYPE {node.text}>")
        elif node.kind is NodeKind.RAW:
            parts.append(node.text)
        else:
            parts.append(f"<{node.tag}")
            for key, value in node.attrs:
                parts.append(f' {key}="{escape(value, quote=True)}"')
            parts.append(">")
            if node.tag in VOID_ELEMENTS and not node.children:
                continue
            stack.append((current, False, True))
            in_raw = node.tag in RAW_TEXT_ELEMENTS
            stack.extend((child, in_raw, False) for child in reversed(node.children))
    return "".join(parts)
