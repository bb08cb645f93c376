"""
Card extraction from package documentation pages.

One fetched page yields cards in four categories, always emitted in the
same order:

1. variables: each declaration block plus its trailing paragraphs
2. constants: same as variables
3. functions: header on the front, the whole container on the back
4. types: same as functions

Identifiers are prefixed with the bucket's namespace path so that cards
from different packages stay distinguishable once they sit in one deck.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable

from bs4.builder import ParserRejectedMarkup

from ..core.parser import HtmlDocument, parse_html
from ..core.selection import SubtreeSelector, trailing_paragraphs
from ..core.tree import render
from ..core.types import Card, Task, namespace_path
from ..errors import StructureError, StructureMismatchError, StructurePairingError
from ..logging_utils import log_event
from .links import normalize_links

logger = logging.getLogger("docdeck.extract")

SOURCE_LINK_SELECTOR = "a.Documentation-source"


@dataclass(frozen=True)
class BlockCategory:
    """Declaration blocks whose identifiers live in marked spans."""

    name: str
    blocks: str
    identifiers: str


@dataclass(frozen=True)
class HeaderCategory:
    """Declaration containers that each carry exactly one header."""

    name: str
    containers: str
    headers: str


VARIABLES = BlockCategory(
    name="variables",
    blocks="section.Documentation-variables div.Documentation-declaration",
    identifiers="span[data-kind='variable']",
)
CONSTANTS = BlockCategory(
    name="constants",
    blocks="section.Documentation-constants div.Documentation-declaration",
    identifiers="span[data-kind='constant']",
)
FUNCTIONS = HeaderCategory(
    name="functions",
    containers="div.Documentation-function",
    headers="div.Documentation-function h4.Documentation-functionHeader",
)
TYPES = HeaderCategory(
    name="types",
    containers="div.Documentation-type",
    headers="div.Documentation-type h4.Documentation-typeHeader",
)

BLOCK_CATEGORIES = (VARIABLES, CONSTANTS)
HEADER_CATEGORIES = (FUNCTIONS, TYPES)


def extract_cards(
    document: HtmlDocument | str,
    source: str,
    bucket: str,
    paragraph_tags: Iterable[str] = ("p",),
) -> list[Card]:
    """Turn one documentation page into an ordered list of cards.

    The document tree is rewritten in place (links, identifier prefixes),
    so callers must pass a document they own.

    Args:
        document: Parsed page, or raw HTML to parse
        source: URL the page was fetched from; base for relative links
        bucket: Destination bucket; its namespace path prefixes identifiers
        paragraph_tags: Tags collected after variable/constant blocks

    Returns:
        Cards for variables, constants, functions and types, in that order

    Raises:
        StructureMismatchError: If a function/type category has a different
            number of containers and headers
        StructurePairingError: If a header is not inside the container it
            is paired with by position
        StructureError: If an identifier span has no id or a header has no
            source link
    """
    if isinstance(document, str):
        document = parse_html(document)
    tree = document.tree
    normalize_links(tree, source)
    namespace = namespace_path(bucket)
    selector = SubtreeSelector(tree)
    paragraph_tags = tuple(paragraph_tags)

    cards: list[Card] = []
    counts: dict[str, int] = {}

    for category in BLOCK_CATEGORIES:
        blocks = document.select(category.blocks)
        counts[category.name] = len(blocks)
        for block in blocks:
            for span in document.select(category.identifiers, scope=block):
                _prefix_identifier(document, span, namespace, source)
            designated = [block] + trailing_paragraphs(tree, block, paragraph_tags)
            fragment = render(selector.project_nodes(designated))
            cards.append(Card(front=fragment, back=fragment))

    for category in HEADER_CATEGORIES:
        containers = document.select(category.containers)
        headers = document.select(category.headers)
        if len(containers) != len(headers):
            raise StructureMismatchError(category.name, len(containers), len(headers), source)
        counts[category.name] = len(containers)
        for position, (container, header) in enumerate(zip(containers, headers)):
            if container not in selector.ancestor_chain(header):
                raise StructurePairingError(category.name, position, source)
            _prefix_source_link(document, header, namespace, source)
            front = render(selector.project_nodes([header]))
            back = render(selector.project_nodes([container]))
            cards.append(Card(front=front, back=back))

    log_event(
        logger,
        f"'{bucket}' found {counts['variables']} variables, {counts['constants']} constants, "
        f"{counts['functions']} functions, {counts['types']} types. Generated {len(cards)} cards",
        event="extract_summary",
        bucket=bucket,
        url=source,
        cards=len(cards),
        **counts,
    )
    return cards


def process_task(task: Task, paragraph_tags: Iterable[str] = ("p",)) -> Task:
    """Attach extracted cards to a fetched task.

    Tasks that already carry an error are returned untouched. A payload the
    parser rejects becomes the task's error.
    """
    if task.error is not None:
        return task
    if task.payload is None:
        task.error = "ValueError: task reached extraction without a payload"
        return task
    try:
        document = parse_html(task.payload)
    except ParserRejectedMarkup as exc:
        task.error = f"{type(exc).__name__}: {exc}"
        return task
    task.cards = extract_cards(document, task.source, task.bucket, paragraph_tags)
    return task


def _prefix_identifier(document: HtmlDocument, span: int, namespace: str, source: str) -> None:
    tree = document.tree
    identifier = tree.get_attr(span, "id")
    if not identifier:
        raise StructureError(f"identifier span without id in {source}")
    qualified = f"{namespace}.{identifier}"
    for node in tree.text_nodes(span):
        node.text = node.text.replace(identifier, qualified)


def _prefix_source_link(document: HtmlDocument, header: int, namespace: str, source: str) -> None:
    tree = document.tree
    links = document.select(SOURCE_LINK_SELECTOR, scope=header)
    if not links:
        raise StructureError(f"header without source link in {source}: {tree.text_content(header)!r}")
    for link in links:
        text = next(tree.text_nodes(link), None)
        if text is None:
            raise StructureError(f"empty source link in {source}")
        text.text = f"{namespace}.{text.text}"
