"""
Exception hierarchy.

Per-task failures (transport errors, unparseable payloads) are attached to
the Task as strings and travel downstream. Everything raised from here is
either a configuration problem or a run-wide fatal condition.
"""

from __future__ import annotations


class DocdeckError(Exception):
    """Base class for all errors raised by docdeck."""


class TaskListError(DocdeckError):
    """A task-list line is malformed or names an invalid bucket."""

    def __init__(self, message: str, line_number: int | None = None, line: str | None = None) -> None:
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class StructureError(DocdeckError):
    """The page layout no longer matches what the extractor expects."""


class StructureMismatchError(StructureError):
    """Containers and headers of a category could not be paired."""

    def __init__(self, category: str, container_count: int, header_count: int, source: str | None = None) -> None:
        self.category = category
        self.container_count = container_count
        self.header_count = header_count
        self.source = source
        super().__init__(
            f"found {container_count} {category} containers and {header_count} headers"
            + (f" in {source}" if source else "")
        )


class StructurePairingError(StructureError):
    """A header does not sit inside the container it is paired with."""

    def __init__(self, category: str, position: int, source: str | None = None) -> None:
        self.category = category
        self.position = position
        self.source = source
        super().__init__(
            f"{category} header #{position + 1} is not inside container #{position + 1}"
            + (f" in {source}" if source else "")
        )


class FetchStatusError(DocdeckError):
    """The document server answered with a status that is neither 200 nor 429."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"unexpected status {status_code} for {url}")


class RetryExhaustedError(DocdeckError):
    """A retry loop hit its configured attempt cap."""

    def __init__(self, what: str, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"{what} still failing after {attempts} attempts")


class DestinationError(DocdeckError):
    """The note service could not be reached or refused a bucket operation."""


class UploadError(DocdeckError):
    """A note was rejected with a non-transient failure."""

    def __init__(self, message: str, note_dump: str) -> None:
        self.note_dump = note_dump
        super().__init__(f"{message}\nNote:\n{note_dump}")


class PipelineError(DocdeckError):
    """Raised by Pipeline.join() when a stage hit a fatal error."""

    def __init__(self, stage: str, error: BaseException) -> None:
        self.stage = stage
        self.error = error
        super().__init__(f"{stage} stage failed: {type(error).__name__}: {error}")
