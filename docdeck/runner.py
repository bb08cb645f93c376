"""
Pipeline orchestration.

Wires the stages together with bounded queues:

    source -> fetch queue -> [fetch workers] -> extract queue
           -> [extract workers] -> upload queue -> [uploader]

Each stage runs in its own daemon threads. A full downstream queue blocks
its producers, so a slow uploader throttles extraction, fetching and finally
the source without dropping tasks. Tasks are handed over through the queues
and only ever held by one worker at a time.

Stages drain with stop sentinels: the source sends one per fetch worker, the
last fetch worker to stop sends one per extract worker, and the last extract
worker sends one to the uploader. Any exception escaping a worker is fatal
for the run and is re-raised from `Pipeline.join()`.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import queue
import threading
from typing import Callable, Iterable, Protocol

from .config import AppConfig
from .core.types import Task
from .errors import PipelineError
from .extract.extractor import process_task
from .fetch.fetcher import FetchResult
from .logging_utils import log_event
from .output.uploader import Uploader

logger = logging.getLogger("docdeck.runner")

_STOP = object()


class DocumentFetcher(Protocol):
    def fetch(self, url: str) -> FetchResult: ...


@dataclass
class RunStats:
    """Counters for a finished run.

    Attributes:
        tasks: Tasks emitted by the source
        uploaded: Tasks whose cards reached the destination
        failed: Tasks that arrived at the uploader carrying an error
        cards: Notes added to the destination
        buckets_created: Buckets created during the run
    """
    tasks: int = 0
    uploaded: int = 0
    failed: int = 0
    cards: int = 0
    buckets_created: int = 0


class Pipeline:
    """Owns the stage queues and worker threads of one run."""

    def __init__(
        self,
        cfg: AppConfig,
        fetcher: DocumentFetcher,
        uploader: Uploader,
        extract: Callable[..., Task] = process_task,
    ) -> None:
        self.cfg = cfg
        self.fetcher = fetcher
        self.uploader = uploader
        self._extract = extract
        self.fetch_workers = max(1, int(cfg.fetch.workers))
        self.extract_workers = max(1, int(cfg.extract.workers))
        self.fetch_queue: queue.Queue = queue.Queue(maxsize=cfg.fetch.queue_size)
        self.extract_queue: queue.Queue = queue.Queue(maxsize=cfg.extract.queue_size)
        self.upload_queue: queue.Queue = queue.Queue(maxsize=cfg.upload.queue_size)
        self.completed: list[Task] = []
        self.stats = RunStats()
        self.threads: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
        self._alive = {"fetch": self.fetch_workers, "extract": self.extract_workers}
        self._finished = threading.Event()
        self._failure: tuple[str, BaseException] | None = None
        self._started = False

    def start(self, tasks: Iterable[Task]) -> None:
        """Snapshot destination buckets and launch every stage.

        Raises:
            DestinationError: If the bucket snapshot cannot be taken
        """
        if self._started:
            raise RuntimeError("pipeline already started")
        self._started = True
        self.uploader.prime()

        self._spawn("source", self._source, tasks)
        for i in range(self.fetch_workers):
            self._spawn(f"fetch-{i}", self._fetch_worker)
        for i in range(self.extract_workers):
            self._spawn(f"extract-{i}", self._extract_worker)
        self._spawn("upload", self._upload_worker)
        log_event(
            logger,
            f"Pipeline started with {self.fetch_workers} fetch and {self.extract_workers} extract workers",
            event="pipeline_start",
            fetch_workers=self.fetch_workers,
            extract_workers=self.extract_workers,
        )

    def join(self, timeout: float | None = None) -> RunStats:
        """Wait until the uploader has drained or a stage failed.

        Raises:
            PipelineError: Wrapping the first fatal error of the run
            TimeoutError: If `timeout` elapses first
        """
        if not self._finished.wait(timeout):
            raise TimeoutError(f"pipeline still running after {timeout}s")
        if self._failure is not None:
            stage, error = self._failure
            raise PipelineError(stage, error) from error
        for thread in self.threads.values():
            thread.join()
        return self.stats

    def run(self, tasks: Iterable[Task], timeout: float | None = None) -> RunStats:
        self.start(tasks)
        return self.join(timeout)

    def _spawn(self, name: str, target: Callable[..., None], *args) -> None:
        thread = threading.Thread(
            target=self._guard,
            args=(name.split("-")[0], target, *args),
            name=name,
            daemon=True,
        )
        self.threads[name] = thread
        thread.start()

    def _guard(self, stage: str, target: Callable[..., None], *args) -> None:
        try:
            target(*args)
        except Exception as exc:  # noqa: BLE001
            self._fail(stage, exc)

    def _fail(self, stage: str, error: BaseException) -> None:
        with self._lock:
            if self._failure is None:
                self._failure = (stage, error)
        logger.error(
            "%s stage failed: %s: %s",
            stage,
            type(error).__name__,
            error,
            exc_info=error,
            extra={"event": "stage_failed", "stage": stage},
        )
        self._finished.set()

    def _retire(self, stage: str, downstream: queue.Queue, count: int) -> None:
        with self._lock:
            self._alive[stage] -= 1
            last = self._alive[stage] == 0
        if last:
            for _ in range(count):
                downstream.put(_STOP)

    def _source(self, tasks: Iterable[Task]) -> None:
        count = 0
        for task in tasks:
            self.fetch_queue.put(task)
            count += 1
        self.stats.tasks = count
        log_event(logger, f"Source emitted {count} tasks", event="source_done", tasks=count)
        for _ in range(self.fetch_workers):
            self.fetch_queue.put(_STOP)

    def _fetch_worker(self) -> None:
        while True:
            task = self.fetch_queue.get()
            if task is _STOP:
                self._retire("fetch", self.extract_queue, self.extract_workers)
                return
            result = self.fetcher.fetch(task.source)
            if result.error is not None:
                task.error = result.error
                log_event(
                    logger,
                    f"'{task.source}' download failed: {result.error}",
                    level=logging.WARNING,
                    event="fetch_failed",
                    url=task.source,
                    error=result.error,
                )
            else:
                task.payload = result.text
                log_event(
                    logger,
                    f"'{task.source}' downloaded documentation ({len(result.text or '')} chars)",
                    event="fetch_done",
                    url=task.source,
                    attempts=result.attempts,
                )
            self.extract_queue.put(task)

    def _extract_worker(self) -> None:
        paragraph_tags = tuple(self.cfg.extract.paragraph_tags)
        while True:
            task = self.extract_queue.get()
            if task is _STOP:
                self._retire("extract", self.upload_queue, 1)
                return
            self._extract(task, paragraph_tags)
            # Only cards travel past extraction.
            task.payload = None
            self.upload_queue.put(task)

    def _upload_worker(self) -> None:
        while True:
            task = self.upload_queue.get()
            if task is _STOP:
                self.stats.buckets_created = len(self.uploader.created_buckets)
                log_event(
                    logger,
                    f"Pipeline complete: {self.stats.uploaded} tasks uploaded, "
                    f"{self.stats.failed} failed, {self.stats.cards} cards",
                    event="pipeline_complete",
                    uploaded=self.stats.uploaded,
                    failed=self.stats.failed,
                    cards=self.stats.cards,
                )
                self._finished.set()
                return
            if task.error is not None:
                self.stats.failed += 1
            else:
                self.stats.uploaded += 1
            self.stats.cards += self.uploader.upload(task)
            self.completed.append(task)
