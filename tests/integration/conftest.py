"""Integration-test fixtures for deterministic speech endpoint behavior."""

from __future__ import annotations

from collections.abc import Iterator
from urllib.parse import parse_qs, urlsplit

import pytest


class _EndpointResponse:
    """Minimal streaming response returned by the fake endpoint."""

    def __init__(self, status_code: int, body: bytes) -> None:
        """Initialize status and body."""

        self.status_code = status_code
        self.content = body

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        """Yield the body as a single chunk."""

        _ = chunk_size
        yield self.content

    def close(self) -> None:
        """Nothing to release."""


class FakeSpeechEndpoint:
    """Stand-in for the remote speech endpoint reached through `requests.get`.

    `statuses` maps fragment text to a list of status codes returned in order;
    once exhausted, every request answers HTTP 200 with `b"mp3:<text>"`.
    """

    def __init__(self) -> None:
        """Initialize request log and scripted statuses."""

        self.texts: list[str] = []
        self.voices: list[str] = []
        self.statuses: dict[str, list[int]] = {}

    def get(self, url: str, **kwargs: object) -> _EndpointResponse:
        """Answer one GET request."""

        _ = kwargs
        query = parse_qs(urlsplit(url).query)
        text = query["text"][0]
        self.texts.append(text)
        self.voices.append(query["voice"][0])
        scripted = self.statuses.get(text)
        if scripted:
            status_code = scripted.pop(0)
            return _EndpointResponse(status_code, f"status {status_code}".encode("utf-8"))
        return _EndpointResponse(200, f"mp3:{text}".encode("utf-8"))


@pytest.fixture(autouse=True)
def speech_endpoint(monkeypatch: pytest.MonkeyPatch) -> FakeSpeechEndpoint:
    """Route every speech request to an in-process fake endpoint."""

    endpoint = FakeSpeechEndpoint()
    monkeypatch.setattr("deckvoice.tts.client.requests.get", endpoint.get)
    return endpoint
