"""
Subtree selection: filtered copies of a DocumentTree.

A projection keeps every node the relevance test accepts, every ancestor of
such a node, and every text child of a kept element. The result is a new
arena that can be rendered on its own and shares no mutable state with the
source tree.

Two relevance modes are supported:
- predicate mode: any callable taking a Node
- designated-set mode: an explicit collection of node indices; a node is
  relevant when it or one of its ancestors is designated
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence, Union

from .tree import WHITESPACE_PRESERVING_ELEMENTS, DocumentTree, Node, NodeKind


Predicate = Callable[[Node], bool]
Relevance = Union[Predicate, Iterable[int]]

_ASCII_SPACES = " \t\n\r\f"


def ALWAYS(node: Node) -> bool:
    return True


def NEVER(node: Node) -> bool:
    return False


class SubtreeSelector:
    """Projection engine bound to one document.

    Pre-order spans and ancestor chains are memoized per node index the first
    time they are needed and reused by every later designated-set query on
    the same document. In-place edits of text or attributes keep the memo
    valid; appending nodes invalidates it.
    """

    def __init__(self, tree: DocumentTree) -> None:
        self.tree = tree
        self._size = -1
        self._position: list[int] = []
        self._end: list[int] = []
        self._by_position: list[int] = []
        self._chains: dict[int, tuple[int, ...]] = {}

    def project(self, relevance: Relevance) -> DocumentTree:
        if callable(relevance):
            return self.project_predicate(relevance)
        return self.project_nodes(relevance)

    def project_predicate(self, predicate: Predicate) -> DocumentTree:
        tree = self.tree
        keep = [False] * len(tree)
        # Children precede parents in reversed pre-order.
        for index in reversed(list(tree.descendants(tree.root))):
            node = tree[index]
            keep[index] = predicate(node) or any(keep[child] for child in node.children)
        return self._copy(keep)

    def project_nodes(self, nodes: Iterable[int]) -> DocumentTree:
        self._ensure_spans()
        keep = [False] * len(self.tree)
        for member in nodes:
            for position in range(self._position[member], self._end[member]):
                keep[self._by_position[position]] = True
            for ancestor in self.ancestor_chain(member):
                if keep[ancestor]:
                    break
                keep[ancestor] = True
        return self._copy(keep)

    def ancestor_chain(self, index: int) -> tuple[int, ...]:
        """Return the ancestors of `index`, nearest first (memoized)."""
        pending: list[int] = []
        current = index
        while current not in self._chains:
            parent = self.tree.parent(current)
            if parent is None:
                self._chains[current] = ()
                break
            pending.append(current)
            current = parent
        for node in reversed(pending):
            parent = self.tree.parent(node)
            self._chains[node] = (parent,) + self._chains[parent]
        return self._chains[index]

    def _ensure_spans(self) -> None:
        tree = self.tree
        if self._size == len(tree):
            return
        size = len(tree)
        self._position = [0] * size
        self._end = [0] * size
        self._by_position = list(tree.descendants(tree.root))
        for position, index in enumerate(self._by_position):
            self._position[index] = position
        for index in reversed(self._by_position):
            children = tree[index].children
            self._end[index] = self._end[children[-1]] if children else self._position[index] + 1
        self._chains = {}
        self._size = size

    def _copy(self, keep: Sequence[bool]) -> DocumentTree:
        source = self.tree
        source_root = source[source.root]
        projected = DocumentTree(root_kind=source_root.kind, root_tag=source_root.tag)
        projected[projected.root].attrs = list(source_root.attrs)
        projected[projected.root].text = source_root.text

        stack = [(source.root, projected.root, False)]
        while stack:
            src, dst, preserve = stack.pop()
            parent_is_element = source[src].is_element
            pending = []
            last_text = None
            dropped = False
            merged = set()
            for child in source[src].children:
                node = source[child]
                if not (keep[child] or (node.is_text and parent_is_element)):
                    dropped = True
                    continue
                # Text left adjacent by a dropped sibling becomes one node, as on reparse.
                if node.is_text and last_text is not None and dropped:
                    projected[last_text].text += node.text
                    merged.add(last_text)
                    continue
                copied = projected.append(
                    dst,
                    node.kind,
                    tag=node.tag,
                    attrs=list(node.attrs),
                    text=node.text,
                )
                last_text = copied if node.is_text else None
                dropped = False
                pending.append(
                    (child, copied, preserve or node.tag in WHITESPACE_PRESERVING_ELEMENTS)
                )
            if not preserve:
                for index in merged:
                    projected[index].text = collapse_whitespace(projected[index].text)
            stack.extend(reversed(pending))
        return projected


def collapse_whitespace(text: str) -> str:
    """Reduce whitespace-only text to one newline or space, like the HTML parser.

    Text with any other character is returned unchanged.
    """
    if text.strip(_ASCII_SPACES):
        return text
    return "\n" if "\n" in text else " "


def project(tree: DocumentTree, relevance: Relevance) -> DocumentTree:
    """Project `tree` under a predicate or a designated set of node indices."""
    return SubtreeSelector(tree).project(relevance)


def is_insignificant(node: Node) -> bool:
    """Whitespace-only text and comments carry no content between blocks."""
    if node.kind is NodeKind.COMMENT:
        return True
    return node.is_text and not node.text.strip()


def trailing_paragraphs(
    tree: DocumentTree,
    index: int,
    paragraph_tags: Iterable[str] = ("p",),
) -> list[int]:
    """Collect paragraph siblings that directly follow `index`.

    Insignificant siblings are skipped; collection stops at the first other
    sibling that is not a paragraph.
    """
    tags = set(paragraph_tags)
    collected: list[int] = []
    for sibling in tree.next_siblings(index):
        node = tree[sibling]
        if is_insignificant(node):
            continue
        if node.is_element and node.tag in tags:
            collected.append(sibling)
            continue
        break
    return collected
