"""
HTML parsing into the arena tree.

BeautifulSoup (html.parser backend) does the tokenizing and owns CSS
selection through soupsieve. The parsed soup is mirrored into a
DocumentTree, and selector results are mapped back to arena indices so the
rest of the pipeline only ever deals with the arena.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from .tree import DocumentTree, NodeKind


class HtmlDocument:
    """A parsed page: the arena tree plus a CSS query front-end."""

    def __init__(self, soup: BeautifulSoup) -> None:
        self.soup = soup
        self.tree = DocumentTree()
        self._index_of: dict[int, int] = {id(soup): self.tree.root}
        self._element_at: dict[int, Tag] = {self.tree.root: soup}
        self._mirror()

    def _mirror(self) -> None:
        stack: list[tuple[int, PageElement]] = [
            (self.tree.root, child) for child in reversed(self.soup.contents)
        ]
        while stack:
            parent, element = stack.pop()
            index = self._append(parent, element)
            if index is None or not isinstance(element, Tag):
                continue
            self._index_of[id(element)] = index
            self._element_at[index] = element
            stack.extend((index, child) for child in reversed(element.contents))

    def _append(self, parent: int, element: PageElement) -> int | None:
        tree = self.tree
        if isinstance(element, Tag):
            attrs = [(key, _attr_value(value)) for key, value in element.attrs.items()]
            return tree.element(parent, element.name, attrs)
        if isinstance(element, Doctype):
            return tree.append(parent, NodeKind.DOCTYPE, text=str(element))
        if isinstance(element, Comment):
            return tree.append(parent, NodeKind.COMMENT, text=str(element))
        if isinstance(element, PreformattedString):
            return tree.append(parent, NodeKind.RAW, text=element.output_ready(formatter="minimal"))
        if isinstance(element, NavigableString):
            return tree.text(parent, str(element))
        return None

    def select(self, selector: str, scope: int | None = None) -> list[int]:
        """Run a CSS selector and return matching element indices in document order.

        Args:
            selector: CSS selector understood by soupsieve
            scope: Restrict matching to descendants of this element index

        Returns:
            Arena indices of the matched elements
        """
        base = self._element_at[self.tree.root if scope is None else scope]
        return [self._index_of[id(tag)] for tag in base.select(selector)]


def parse_html(markup: str | bytes) -> HtmlDocument:
    """Parse markup into an HtmlDocument."""
    soup = BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)
    return HtmlDocument(soup)


def _attr_value(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return "" if value is None else str(value)
