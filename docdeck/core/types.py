"""
Core data types passed between pipeline stages.

- Card: one flashcard built from projected page fragments
- Task: one (bucket, source) pair travelling through fetch, extract and upload
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import TaskListError


BUCKET_SEPARATOR = "::"
MIN_BUCKET_SEGMENTS = 3


@dataclass(frozen=True)
class Card:
    """A flashcard.

    Attributes:
        front: Rendered fragment shown as the question
        back: Rendered fragment shown as the answer (may equal front)
        implementation: Optional extra fragment, empty when absent
    """

    front: str
    back: str
    implementation: str = ""


@dataclass
class Task:
    """Unit of work handed from stage to stage.

    Exactly one stage holds a Task at a time; ownership moves with the queue
    handoff, so stages mutate it without locking.

    Attributes:
        source: URL of the documentation page
        bucket: Destination bucket (deck) name, `::`-separated
        payload: Page HTML, set once the fetch succeeds
        cards: Extracted cards in emission order, set by the extract stage
        error: Terminal per-task error, `"<Type>: <message>"`
    """

    source: str
    bucket: str
    payload: str | None = None
    cards: list[Card] | None = None
    error: str | None = None

    def __str__(self) -> str:
        return f"Task{{ bucket: {self.bucket}, error: {self.error} }}"


def bucket_segments(bucket: str, separator: str = BUCKET_SEPARATOR) -> list[str]:
    """Split a bucket name, requiring at least three segments."""
    segments = bucket.split(separator)
    if len(segments) < MIN_BUCKET_SEGMENTS or not all(segments):
        raise TaskListError(
            f"bucket '{bucket}' needs at least {MIN_BUCKET_SEGMENTS} non-empty "
            f"'{separator}'-separated segments"
        )
    return segments


def namespace_path(bucket: str, separator: str = BUCKET_SEPARATOR) -> str:
    """Derive the dotted identifier prefix for a bucket.

    Example:
        >>> namespace_path("Root::pkg::example::sub")
        'example.sub'
    """
    return ".".join(segment.lower() for segment in bucket_segments(bucket, separator)[2:])
