"""
docdeck - documentation pages into Anki flashcards.

This package scrapes package reference pages, extracts one card per
declaration (variables, constants, functions, types) and uploads them to
Anki through AnkiConnect.

Main entry point is the CLI via `docdeck run` command.

Example:
    $ docdeck run -t urls.txt
"""

__all__ = ["__version__", "Card", "Pipeline", "Task", "extract_cards", "project"]
__version__ = "0.1.0"

from .core.selection import project
from .core.types import Card, Task
from .extract.extractor import extract_cards
from .runner import Pipeline
