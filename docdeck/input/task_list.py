"""
Task-list parser.

The task list is plain text with one `<bucket> <url>` pair per line:

    Go::StdLib::io https://pkg.go.dev/io@go1.22.0
    Go::StdLib::io::fs https://pkg.go.dev/io/fs@go1.22.0

Blank lines are ignored. Every other line must hold exactly two
whitespace-separated fields and the bucket must have at least three
`::`-separated segments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ..core.types import Task, bucket_segments
from ..errors import TaskListError


def parse_task_list(lines: Iterable[str]) -> list[Task]:
    """Parse task-list lines into Task objects.

    Args:
        lines: Raw lines of the task list

    Returns:
        Tasks in file order

    Raises:
        TaskListError: On the first malformed line
    """
    tasks: list[Task] = []
    for line_number, line in enumerate(lines, start=1):
        fields = line.split()
        if not fields:
            continue
        if len(fields) != 2:
            raise TaskListError(
                f"expected '<bucket> <url>', got {len(fields)} field(s)",
                line_number=line_number,
                line=line.rstrip("\n"),
            )
        bucket, source = fields
        try:
            bucket_segments(bucket)
        except TaskListError as exc:
            raise TaskListError(str(exc), line_number=line_number, line=line.rstrip("\n")) from exc
        tasks.append(Task(source=source, bucket=bucket))
    return tasks


def load_task_list(path: str | Path) -> list[Task]:
    """Read and parse a task-list file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_task_list(f)
    except OSError as exc:
        raise TaskListError(f"cannot read task list {path}: {exc}") from exc
