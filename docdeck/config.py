"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- InputConfig: Task-list location
- FetchConfig: HTTP fetching settings and rate-limit retry
- ExtractConfig: Extraction worker pool settings
- UploadConfig: Upload queue and transient-failure retry
- AnkiConfig: AnkiConnect endpoint and note model
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

import yaml


@dataclass
class InputConfig:
    """Configuration for the task list.

    Attributes:
        tasks_file: Path of the newline-delimited `<bucket> <url>` file
    """

    tasks_file: str = "./urls.txt"


@dataclass
class FetchConfig:
    """Configuration for HTTP document fetching.

    Attributes:
        workers: Number of concurrent fetch workers
        queue_size: Capacity of the queue feeding the fetch workers
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        rate_limit_delay_seconds: Wait before retrying a 429 response
        max_attempts: Attempt cap for rate-limited requests, None for unbounded
    """

    workers: int = 5
    queue_size: int = 1000
    timeout_seconds: float = 20.0
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    rate_limit_delay_seconds: float = 0.5
    max_attempts: int | None = None


@dataclass
class ExtractConfig:
    """Configuration for the extraction stage.

    Attributes:
        workers: Number of concurrent extract workers
        queue_size: Capacity of the queue feeding the extract workers
        paragraph_tags: Sibling tags collected after a variable/constant block
    """

    workers: int = 10
    queue_size: int = 100
    paragraph_tags: list[str] = field(default_factory=lambda: ["p"])


@dataclass
class UploadConfig:
    """Configuration for the upload consumer.

    Attributes:
        queue_size: Capacity of the queue feeding the uploader
        retry_delay_seconds: Wait before retrying a transient note failure
        max_attempts: Attempt cap per note, None for unbounded
    """

    queue_size: int = 100
    retry_delay_seconds: float = 0.1
    max_attempts: int | None = None


@dataclass
class AnkiConfig:
    """Configuration for the AnkiConnect destination.

    Attributes:
        url: AnkiConnect endpoint
        version: AnkiConnect API version
        timeout_seconds: Request timeout
        api_key_env: Environment variable holding the AnkiConnect key
        api_key: Optional inline key (overrides env var)
        model_name: Note type used for new notes
        front_field: Note field receiving the card front
        back_field: Note field receiving the card back
        implementation_field: Note field receiving the implementation fragment
        allow_duplicate: Ask AnkiConnect to accept duplicate notes
    """

    url: str = "http://127.0.0.1:8765"
    version: int = 6
    timeout_seconds: float = 30.0
    api_key_env: str = "ANKICONNECT_API_KEY"
    api_key: str | None = None
    model_name: str = "Golang"
    front_field: str = "Identifier"
    back_field: str = "Declaration"
    implementation_field: str = "Implementation"
    allow_duplicate: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        directory: Directory for the log file
        filename: Name of the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    directory: str = "logs"
    filename: str = "run.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    input: InputConfig = field(default_factory=InputConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    extract: ExtractConfig = field(default_factory=ExtractConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    anki: AnkiConfig = field(default_factory=AnkiConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        input=InputConfig(**data["input"]),
        fetch=FetchConfig(**data["fetch"]),
        extract=ExtractConfig(**data["extract"]),
        upload=UploadConfig(**data["upload"]),
        anki=AnkiConfig(**data["anki"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_api_key(cfg: AnkiConfig) -> str | None:
    """Get API key from inline config or environment variable."""
    if cfg.api_key:
        return cfg.api_key
    return os.getenv(cfg.api_key_env)
