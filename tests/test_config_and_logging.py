from __future__ import annotations

import json
import logging

from typer.testing import CliRunner

from docdeck.cli import app
from docdeck.config import AppConfig, LoggingConfig, load_config
from docdeck.logging_utils import log_event, setup_logging


def test_load_config_without_path_returns_defaults():
    cfg = load_config(None)

    assert cfg == AppConfig()
    assert cfg.fetch.workers == 5
    assert cfg.extract.workers == 10
    assert cfg.fetch.rate_limit_delay_seconds == 0.5
    assert cfg.upload.retry_delay_seconds == 0.1
    assert cfg.fetch.max_attempts is None


def test_load_config_merges_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "fetch:\n"
        "  workers: 3\n"
        "  max_attempts: 20\n"
        "anki:\n"
        "  model_name: Basic\n"
        "unknown_section:\n"
        "  ignored: true\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.fetch.workers == 3
    assert cfg.fetch.max_attempts == 20
    assert cfg.fetch.timeout_seconds == 20.0
    assert cfg.anki.model_name == "Basic"
    assert cfg.anki.front_field == "Identifier"
    assert cfg.extract.paragraph_tags == ["p"]


def test_jsonl_log_file_carries_event_fields(tmp_path):
    cfg = LoggingConfig(console=False, file=True, format="jsonl", filename="run.jsonl")
    logger = setup_logging(cfg, log_dir=tmp_path)

    log_event(logging.getLogger("docdeck.fetch"), "downloaded", event="fetch_done", url="https://x")
    for handler in logger.handlers:
        handler.flush()

    (line,) = (tmp_path / "run.jsonl").read_text(encoding="utf-8").splitlines()
    record = json.loads(line)
    assert record["message"] == "downloaded"
    assert record["event"] == "fetch_done"
    assert record["url"] == "https://x"
    assert record["logger"] == "docdeck.fetch"


def test_cli_reports_bad_task_list(tmp_path):
    tasks = tmp_path / "urls.txt"
    tasks.write_text("Go::io https://pkg.go.dev/io\n", encoding="utf-8")

    result = CliRunner().invoke(app, ["--tasks", str(tasks)])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "line 1" in result.output
