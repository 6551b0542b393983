"""Unit tests for the speech endpoint client."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import requests

from deckvoice.errors import HttpStatusError, ThrottledError, TransportError
from deckvoice.tts.client import SpeechFetchClient, encode_uri_component


class _MockStreamResponse:
    """Minimal streaming requests response mock."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        chunks: list[object] | None = None,
        content: bytes = b"",
    ) -> None:
        """Initialize response status, body chunks and error body."""

        self.status_code = status_code
        self.chunks = chunks if chunks is not None else [b"ID3", b"AUDIO"]
        self.content = content
        self.closed = False

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        """Yield chunks, raising scripted exceptions in place."""

        _ = chunk_size
        for chunk in self.chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk  # type: ignore[misc]

    def close(self) -> None:
        """Record that the connection was released."""

        self.closed = True


def _install_get(
    monkeypatch: pytest.MonkeyPatch, response: object, calls: list[dict[str, object]]
) -> None:
    """Route `requests.get` inside the client module to a scripted response."""

    def _mock_get(url: str, **kwargs: object) -> object:
        """Record call arguments and return or raise the scripted response."""

        calls.append({"url": url, **kwargs})
        if isinstance(response, BaseException):
            raise response
        return response

    monkeypatch.setattr("deckvoice.tts.client.requests.get", _mock_get)


def test_encode_uri_component_matches_javascript_rules() -> None:
    """Spaces, slashes, ampersands and non-ASCII text are percent-encoded."""

    assert encode_uri_component("a b/c&d") == "a%20b%2Fc%26d"
    assert encode_uri_component("it's (fine)!~*") == "it's%20(fine)!~*"
    assert encode_uri_component("ねこ") == "%E3%81%AD%E3%81%93"


def test_build_url_uses_fixed_voice_and_encoded_text() -> None:
    """The request URL carries the voice and the encoded fragment."""

    client = SpeechFetchClient(base_url="https://example.test/_functions/tts", voice="sage")

    assert client.build_url("Hello, world?") == (
        "https://example.test/_functions/tts?voice=sage&text=Hello%2C%20world%3F"
    )


def test_build_url_appends_to_existing_query() -> None:
    """A base URL with a query string gets the parameters appended with `&`."""

    client = SpeechFetchClient(base_url="https://example.test/tts?key=abc", voice="sage")

    assert client.build_url("hi") == "https://example.test/tts?key=abc&voice=sage&text=hi"


def test_fetch_returns_streamed_body(monkeypatch: pytest.MonkeyPatch) -> None:
    """HTTP 200 streams the whole body using one streaming GET."""

    calls: list[dict[str, object]] = []
    response = _MockStreamResponse()
    _install_get(monkeypatch, response, calls)

    audio = SpeechFetchClient(base_url="https://example.test/tts").fetch("cat")

    assert audio == b"ID3AUDIO"
    assert len(calls) == 1
    assert calls[0]["stream"] is True
    assert calls[0]["timeout"] is None
    assert response.closed


def test_timeout_is_forwarded_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    """An explicit timeout reaches the transport."""

    calls: list[dict[str, object]] = []
    _install_get(monkeypatch, _MockStreamResponse(), calls)

    SpeechFetchClient(base_url="https://example.test/tts", timeout_seconds=12.5).fetch("cat")

    assert calls[0]["timeout"] == 12.5


def test_status_429_raises_throttled(monkeypatch: pytest.MonkeyPatch) -> None:
    """Throttling is reported as its own error kind."""

    response = _MockStreamResponse(status_code=429)
    _install_get(monkeypatch, response, [])

    with pytest.raises(ThrottledError) as exc_info:
        SpeechFetchClient(base_url="https://example.test/tts").fetch("cat")

    assert exc_info.value.status_code == 429
    assert exc_info.value.failure_kind == "throttled"
    assert response.closed


@pytest.mark.parametrize("status_code", [201, 404, 500, 503])
def test_other_statuses_raise_http_status_error(
    monkeypatch: pytest.MonkeyPatch, status_code: int
) -> None:
    """Any non-200, non-429 status is an HTTP status failure."""

    response = _MockStreamResponse(status_code=status_code, content=b"upstream  broke\n")
    _install_get(monkeypatch, response, [])

    with pytest.raises(HttpStatusError, match=f"HTTP {status_code}") as exc_info:
        SpeechFetchClient(base_url="https://example.test/tts").fetch("cat")

    assert exc_info.value.status_code == status_code
    assert "upstream broke" in str(exc_info.value)


def test_connection_failure_raises_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Transport failures before a response become transport errors."""

    _install_get(monkeypatch, requests.ConnectionError("connection refused"), [])

    with pytest.raises(TransportError, match="connection refused") as exc_info:
        SpeechFetchClient(base_url="https://example.test/tts").fetch("cat")

    assert exc_info.value.failure_kind == "transport"


def test_timeout_failure_is_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    """Timeouts are transport errors with the `timeout` kind."""

    _install_get(monkeypatch, requests.Timeout("read timed out"), [])

    with pytest.raises(TransportError) as exc_info:
        SpeechFetchClient(base_url="https://example.test/tts").fetch("cat")

    assert exc_info.value.failure_kind == "timeout"


def test_mid_stream_failure_raises_transport_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """A body that breaks off after some bytes is a transport error."""

    response = _MockStreamResponse(
        chunks=[b"ID3", requests.exceptions.ChunkedEncodingError("connection reset")]
    )
    _install_get(monkeypatch, response, [])
    client = SpeechFetchClient(base_url="https://example.test/tts")

    received: list[bytes] = []
    with pytest.raises(TransportError, match="mid-stream"):
        for chunk in client.stream("cat"):
            received.append(chunk)

    assert received == [b"ID3"]
    assert response.closed
