"""Tests for the AnkiConnect destination, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from docdeck.config import AnkiConfig
from docdeck.errors import DestinationError
from docdeck.output.anki import AddNoteStatus, AnkiConnectClient


class _FakeAnki:
    """Answers AnkiConnect actions and records the requests it saw."""

    def __init__(self, decks=None, add_note=None):
        self.decks = list(decks or [])
        self.requests: list[dict] = []
        self._add_note = add_note or (lambda payload: httpx.Response(200, json={"result": 1, "error": None}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        action = payload["action"]
        if action == "version":
            return httpx.Response(200, json={"result": 6, "error": None})
        if action == "deckNames":
            return httpx.Response(200, json={"result": self.decks, "error": None})
        if action == "createDeck":
            self.decks.append(payload["params"]["deck"])
            return httpx.Response(200, json={"result": 42, "error": None})
        if action == "addNote":
            return self._add_note(payload)
        return httpx.Response(200, json={"result": None, "error": "unsupported action"})


def _client(fake, **cfg) -> AnkiConnectClient:
    return AnkiConnectClient(AnkiConfig(**cfg), transport=httpx.MockTransport(fake))


def test_ping_and_bucket_operations():
    fake = _FakeAnki(decks=["Default"])
    client = _client(fake)

    assert client.ping() == 6
    assert client.list_buckets() == {"Default"}
    client.create_bucket("Go::StdLib::io")
    assert client.list_buckets() == {"Default", "Go::StdLib::io"}
    assert all(r["version"] == 6 for r in fake.requests)


def test_add_note_maps_card_to_model_fields():
    fake = _FakeAnki()
    client = _client(fake, model_name="Basic", allow_duplicate=True)

    result = client.add_note("Go::StdLib::io", "<b>front</b>", "<i>back</i>", "")

    assert result.status is AddNoteStatus.OK
    assert result.note_id == 1
    note = fake.requests[-1]["params"]["note"]
    assert note == {
        "deckName": "Go::StdLib::io",
        "modelName": "Basic",
        "fields": {"Identifier": "<b>front</b>", "Declaration": "<i>back</i>", "Implementation": ""},
        "options": {"allowDuplicate": True},
    }


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("ANKICONNECT_API_KEY", "secret")
    fake = _FakeAnki()

    _client(fake).ping()

    assert fake.requests[-1]["key"] == "secret"


def test_server_error_is_transient():
    fake = _FakeAnki(add_note=lambda payload: httpx.Response(503))

    result = _client(fake).add_note("D::e::ck", "f", "b", "")

    assert result.status is AddNoteStatus.TRANSIENT


def test_transport_error_is_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = AnkiConnectClient(AnkiConfig(), transport=httpx.MockTransport(handler))

    result = client.add_note("D::e::ck", "f", "b", "")

    assert result.status is AddNoteStatus.TRANSIENT
    assert "ConnectError" in result.error


def test_anki_error_is_fatal():
    fake = _FakeAnki(
        add_note=lambda payload: httpx.Response(
            200, json={"result": None, "error": "cannot create note because it is a duplicate"}
        )
    )

    result = _client(fake).add_note("D::e::ck", "f", "b", "")

    assert result.status is AddNoteStatus.FATAL
    assert "duplicate" in result.error


def test_bucket_listing_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = AnkiConnectClient(AnkiConfig(), transport=httpx.MockTransport(handler))

    with pytest.raises(DestinationError):
        client.list_buckets()


def test_bucket_creation_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": None, "error": "deck name invalid"})

    client = AnkiConnectClient(AnkiConfig(), transport=httpx.MockTransport(handler))

    with pytest.raises(DestinationError, match="deck name invalid"):
        client.create_bucket("x::y::z")
