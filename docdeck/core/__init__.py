"""
Core domain models.

This package contains the document tree, the subtree selection engine and
the data types shared by every pipeline stage.
"""

from .parser import HtmlDocument, parse_html
from .selection import ALWAYS, NEVER, SubtreeSelector, project, trailing_paragraphs
from .tree import DocumentTree, Node, NodeKind, render
from .types import Card, Task, namespace_path

__all__ = [
    "ALWAYS",
    "NEVER",
    "Card",
    "DocumentTree",
    "HtmlDocument",
    "Node",
    "NodeKind",
    "SubtreeSelector",
    "Task",
    "namespace_path",
    "parse_html",
    "project",
    "render",
    "trailing_paragraphs",
]
