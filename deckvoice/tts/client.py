"""HTTP client for the remote speech synthesis endpoint.

Responsibilities:
- Build request URLs with the fixed voice and percent-encoded fragment text.
- Issue exactly one synchronous GET per call and stream the audio body.
- Classify failures as throttled, transport, or HTTP status errors.
"""

from __future__ import annotations

from collections.abc import Generator
import socket
from urllib.parse import quote, urlsplit

import requests

from ..config import DEFAULT_BASE_URL, DEFAULT_VOICE
from ..errors import FetchError, HttpStatusError, ThrottledError, TransportError

# Characters `encodeURIComponent` leaves untouched besides ASCII alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(text: str) -> str:
    """Percent-encode text as a single URI query component."""

    return quote(text, safe=_URI_COMPONENT_SAFE)


class SpeechFetchClient:
    """Minimal requests-based client for `<base>?voice=<voice>&text=<text>`."""

    _MAX_ERROR_MESSAGE_CHARS = 180
    _STREAM_CHUNK_BYTES = 64 * 1024

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        voice: str = DEFAULT_VOICE,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize endpoint settings.

        `timeout_seconds=None` leaves the transport default in place.
        """

        self.base_url = base_url.strip()
        self.voice = voice.strip()
        self.timeout_seconds = timeout_seconds

    def build_url(self, text: str) -> str:
        """Return the request URL for one fragment."""

        separator = "&" if urlsplit(self.base_url).query else "?"
        return (
            f"{self.base_url}{separator}voice={encode_uri_component(self.voice)}"
            f"&text={encode_uri_component(text)}"
        )

    def fetch(self, text: str) -> bytes:
        """Return the full audio payload for one fragment."""

        return b"".join(self.stream(text))

    def stream(self, text: str) -> Generator[bytes, None, None]:
        """Yield audio body chunks for one fragment.

        Raises:
            ThrottledError: On HTTP 429.
            HttpStatusError: On any other non-200 status.
            TransportError: On connection failures, timeouts, or a body that
                breaks off mid-stream.
        """

        url = self.build_url(text)
        try:
            response = requests.get(url, stream=True, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise self._transport_error(url, exc) from exc

        try:
            status_code = response.status_code
            if status_code == 429:
                raise ThrottledError(
                    "Speech endpoint throttled the request (HTTP 429).",
                    url=url,
                    status_code=status_code,
                )
            if status_code != 200:
                raise HttpStatusError(
                    f"Speech request failed (HTTP {status_code})"
                    f"{self._error_body_suffix(response)}",
                    url=url,
                    status_code=status_code,
                )
            try:
                for chunk in response.iter_content(chunk_size=self._STREAM_CHUNK_BYTES):
                    if chunk:
                        yield chunk
            except requests.RequestException as exc:
                raise self._transport_error(url, exc, mid_stream=True) from exc
        finally:
            response.close()

    @classmethod
    def _transport_error(
        cls, url: str, exc: BaseException, *, mid_stream: bool = False
    ) -> FetchError:
        """Map a requests exception to a transport error with a short message."""

        failure_kind = cls._classify_transport_failure(exc)
        if failure_kind == "timeout":
            detail = "Speech request timed out"
        elif mid_stream:
            detail = "Speech response broke off mid-stream"
        else:
            detail = "Speech request transport error"
        message = cls._short_message(str(exc))
        if message:
            detail = f"{detail}: {message}"
        return TransportError(detail, url=url, failure_kind=failure_kind)

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into deterministic diagnostic kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _error_body_suffix(cls, response: requests.Response) -> str:
        """Return a short `: <body>` suffix for textual error responses."""

        try:
            body = bytes(response.content).decode("utf-8", errors="replace")
        except (requests.RequestException, TypeError):
            return ""
        message = cls._short_message(body)
        return f": {message}" if message else "."

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing error message length."""

        compact = " ".join(text.split())
        if len(compact) <= cls._MAX_ERROR_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_ERROR_MESSAGE_CHARS - 1]}..."
