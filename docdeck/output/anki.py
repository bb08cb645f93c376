"""
AnkiConnect destination.

Talks to the AnkiConnect add-on over its JSON-over-HTTP API. Every request
is a POST of `{"action", "version", "params"}` and every answer is
`{"result", "error"}`.

Bucket operations (`deckNames`, `createDeck`) raise DestinationError on any
failure, since a run cannot proceed without them. `addNote` classifies its
outcome instead, so the uploader can retry transient failures:

- transport errors and HTTP 5xx answers are transient
- an AnkiConnect `error` (duplicate note, unknown model, ...) is fatal
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import httpx

from ..config import AnkiConfig, get_api_key
from ..errors import DestinationError


class AddNoteStatus(str, Enum):
    OK = "ok"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass
class AddNoteResult:
    """Outcome of a single addNote call.

    Attributes:
        status: ok, transient or fatal
        error: Failure description, None on success
        note_id: Id of the created note on success
    """

    status: AddNoteStatus
    error: str | None = None
    note_id: int | None = None


class Destination(Protocol):
    def list_buckets(self) -> set[str]: ...

    def create_bucket(self, name: str) -> None: ...

    def add_note(self, bucket: str, front: str, back: str, implementation: str) -> AddNoteResult: ...


class AnkiConnectClient:
    """Destination implementation backed by AnkiConnect."""

    def __init__(self, cfg: AnkiConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.cfg = cfg
        self._api_key = get_api_key(cfg)
        self._client = httpx.Client(timeout=cfg.timeout_seconds, trust_env=False, transport=transport)

    def ping(self) -> int:
        """Return the AnkiConnect API version, raising if Anki is unreachable."""
        return int(self._invoke("version"))

    def list_buckets(self) -> set[str]:
        return set(self._invoke("deckNames") or [])

    def create_bucket(self, name: str) -> None:
        self._invoke("createDeck", deck=name)

    def build_note(self, bucket: str, front: str, back: str, implementation: str) -> dict[str, Any]:
        return {
            "deckName": bucket,
            "modelName": self.cfg.model_name,
            "fields": {
                self.cfg.front_field: front,
                self.cfg.back_field: back,
                self.cfg.implementation_field: implementation,
            },
            "options": {"allowDuplicate": self.cfg.allow_duplicate},
        }

    def add_note(self, bucket: str, front: str, back: str, implementation: str) -> AddNoteResult:
        note = self.build_note(bucket, front, back, implementation)
        try:
            resp = self._client.post(self.cfg.url, json=self._request("addNote", note=note))
        except httpx.TransportError as exc:
            return AddNoteResult(AddNoteStatus.TRANSIENT, error=f"{type(exc).__name__}: {exc}")
        if resp.status_code >= 500:
            return AddNoteResult(AddNoteStatus.TRANSIENT, error=f"HTTP {resp.status_code}")
        if resp.status_code != 200:
            return AddNoteResult(AddNoteStatus.FATAL, error=f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as exc:
            return AddNoteResult(AddNoteStatus.FATAL, error=f"invalid AnkiConnect response: {exc}")
        if not isinstance(body, dict):
            return AddNoteResult(AddNoteStatus.FATAL, error=f"unexpected AnkiConnect response: {body!r}")
        if body.get("error") is not None:
            return AddNoteResult(AddNoteStatus.FATAL, error=str(body["error"]))
        return AddNoteResult(AddNoteStatus.OK, note_id=body.get("result"))

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "AnkiConnectClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, action: str, **params: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {"action": action, "version": self.cfg.version, "params": params}
        if self._api_key:
            payload["key"] = self._api_key
        return payload

    def _invoke(self, action: str, **params: Any) -> Any:
        try:
            resp = self._client.post(self.cfg.url, json=self._request(action, **params))
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise DestinationError(f"AnkiConnect {action} failed: {type(exc).__name__}: {exc}") from exc
        if not isinstance(body, dict) or set(body) != {"result", "error"}:
            raise DestinationError(f"AnkiConnect {action} returned an unexpected response: {body!r}")
        if body["error"] is not None:
            raise DestinationError(f"AnkiConnect {action} failed: {body['error']}")
        return body["result"]
