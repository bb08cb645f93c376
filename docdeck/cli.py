"""
Command-line interface for docdeck.

Uses Typer to provide a CLI with options for the main configuration
settings. Loads a .env file so the AnkiConnect key can live outside the
config file.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console

from .config import load_config
from .errors import DocdeckError
from .fetch.fetcher import Fetcher
from .input.task_list import load_task_list
from .logging_utils import log_event, setup_logging
from .output.anki import AnkiConnectClient
from .output.uploader import Uploader
from .runner import Pipeline

app = typer.Typer(add_completion=False)
console = Console()


@app.command()
def run(
    tasks: Path | None = typer.Option(
        None, "--tasks", "-t", help="Task list of '<bucket> <url>' lines (overrides config)."
    ),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    fetch_workers: int | None = typer.Option(None, "--fetch-workers", min=1),
    extract_workers: int | None = typer.Option(None, "--extract-workers", min=1),
    anki_url: str | None = typer.Option(None, "--anki-url", help="AnkiConnect endpoint."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_format: str | None = typer.Option(
        None, "--log-format", help="Log file format: jsonl or plain."
    ),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        envvar="ANKICONNECT_API_KEY",
        help="AnkiConnect key (or set ANKICONNECT_API_KEY / .env).",
    ),
):
    """Scrape documentation pages into Anki cards.

    Reads the task list, fetches every page, extracts one card per
    variable block, constant block, function and type, and adds the
    cards to the bucket (deck) named on each line.

    Args:
        tasks: Path to the task list
        config: Optional path to YAML config file
        fetch_workers: Number of concurrent fetch workers
        extract_workers: Number of concurrent extract workers
        anki_url: AnkiConnect endpoint URL
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log file format (jsonl, plain)
        log_file: Enable/disable file logging
        api_key: Override AnkiConnect API key
    """
    load_dotenv()

    cfg = load_config(str(config) if config else None)

    if tasks is not None:
        cfg.input.tasks_file = str(tasks)
    if fetch_workers is not None:
        cfg.fetch.workers = fetch_workers
    if extract_workers is not None:
        cfg.extract.workers = extract_workers
    if anki_url:
        cfg.anki.url = anki_url
    if api_key:
        cfg.anki.api_key = api_key
    if log_level:
        cfg.logging.level = log_level
    if log_format:
        cfg.logging.format = log_format
    if log_file is not None:
        cfg.logging.file = log_file

    logger = setup_logging(cfg.logging)

    try:
        task_list = load_task_list(cfg.input.tasks_file)
        log_event(
            logger,
            f"'{cfg.input.tasks_file}' loaded file, {len(task_list)} tasks created",
            event="tasks_loaded",
            tasks=len(task_list),
        )
        with AnkiConnectClient(cfg.anki) as client, Fetcher(cfg.fetch) as fetcher:
            version = client.ping()
            log_event(logger, f"Connected to AnkiConnect v{version}", event="destination_connected")
            pipeline = Pipeline(cfg, fetcher, Uploader(client, cfg.upload))
            stats = pipeline.run(task_list)
    except DocdeckError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"Uploaded {stats.cards} cards from {stats.uploaded} pages "
        f"({stats.failed} failed, {stats.buckets_created} buckets created)"
    )


if __name__ == "__main__":
    app()
