"""
Upload consumer.

Persists each task's cards to the destination, one card at a time and in
order. Runs single-threaded, which is what makes the bucket snapshot safe:
the set of known buckets is read once and then only grown by this consumer.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable

from ..config import UploadConfig
from ..core.types import Card, Task
from ..errors import RetryExhaustedError, UploadError
from ..logging_utils import log_event
from .anki import AddNoteStatus, Destination

logger = logging.getLogger("docdeck.output")


class Uploader:
    """Uploads task cards, creating buckets on first use."""

    def __init__(
        self,
        destination: Destination,
        cfg: UploadConfig,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.destination = destination
        self.cfg = cfg
        self._sleep = sleep
        self._known_buckets: set[str] | None = None
        self.created_buckets: list[str] = []

    def prime(self) -> None:
        """Snapshot the existing buckets. Raises DestinationError if unreachable."""
        self._known_buckets = set(self.destination.list_buckets())
        log_event(
            logger,
            f"Destination has {len(self._known_buckets)} buckets",
            event="buckets_loaded",
            count=len(self._known_buckets),
        )

    def upload(self, task: Task) -> int:
        """Upload every card of `task`; returns the number of notes added."""
        if task.error is not None:
            log_event(
                logger,
                f"'{task.source}' skipped: {task.error}",
                level=logging.WARNING,
                event="upload_skipped",
                url=task.source,
                bucket=task.bucket,
                error=task.error,
            )
            return 0

        self._ensure_bucket(task.bucket)
        cards = task.cards or []
        if not cards:
            log_event(
                logger,
                f"'{task.bucket}' contains no cards!",
                level=logging.WARNING,
                event="upload_empty",
                bucket=task.bucket,
                url=task.source,
            )
        for card in cards:
            self._add(task.bucket, card)
        log_event(
            logger,
            f"'{task.bucket}' added {len(cards)} notes",
            event="upload_done",
            bucket=task.bucket,
            url=task.source,
            notes=len(cards),
        )
        return len(cards)

    def _ensure_bucket(self, bucket: str) -> None:
        if self._known_buckets is None:
            self.prime()
        if bucket in self._known_buckets:
            return
        self.destination.create_bucket(bucket)
        self._known_buckets.add(bucket)
        self.created_buckets.append(bucket)
        log_event(logger, f"'{bucket}' created bucket", event="bucket_created", bucket=bucket)

    def _add(self, bucket: str, card: Card) -> None:
        attempt = 0
        while True:
            attempt += 1
            result = self.destination.add_note(bucket, card.front, card.back, card.implementation)
            if result.status is AddNoteStatus.OK:
                return
            if result.status is not AddNoteStatus.TRANSIENT:
                raise UploadError(f"note rejected: {result.error}", dump_note(bucket, card))
            if self.cfg.max_attempts is not None and attempt >= self.cfg.max_attempts:
                exhausted = RetryExhaustedError(f"upload to '{bucket}' ({result.error})", attempt)
                raise UploadError(str(exhausted), dump_note(bucket, card)) from exhausted
            log_event(
                logger,
                f"'{bucket}' transient upload failure, retrying: {result.error}",
                level=logging.DEBUG,
                event="upload_retry",
                bucket=bucket,
                attempt=attempt,
            )
            self._sleep(self.cfg.retry_delay_seconds)


def dump_note(bucket: str, card: Card) -> str:
    """Render a note as indented JSON for diagnostics."""
    return json.dumps(
        {
            "bucket": bucket,
            "front": card.front,
            "back": card.back,
            "implementation": card.implementation,
        },
        indent="\t",
        ensure_ascii=False,
    )
