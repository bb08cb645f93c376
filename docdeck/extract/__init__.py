"""
Card extraction.

This package turns fetched documentation pages into flashcards.
"""

from .extractor import extract_cards, process_task
from .links import normalize_links

__all__ = [
    "extract_cards",
    "normalize_links",
    "process_task",
]
