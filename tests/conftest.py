"""Shared pytest fixtures for the full Deckvoice test suite."""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest


class FakeSpeechClient:
    """Scripted speech client that records every requested text.

    Each script entry is either audio bytes, a list of chunks, or an exception
    instance. Texts without a script entry return `b"audio:<text>"`.
    """

    def __init__(self, scripts: dict[str, list[object]] | None = None) -> None:
        """Initialize per-text response scripts."""

        self.scripts = {text: list(steps) for text, steps in (scripts or {}).items()}
        self.requests: list[str] = []

    def build_url(self, text: str) -> str:
        """Return a stable fake URL."""

        return f"https://tts.invalid/speak?voice=test&text={text}"

    def stream(self, text: str) -> Generator[bytes, None, None]:
        """Yield scripted chunks or raise the scripted error."""

        self.requests.append(text)
        steps = self.scripts.get(text)
        step: object = steps.pop(0) if steps else f"audio:{text}".encode("utf-8")
        if isinstance(step, BaseException):
            raise step
        chunks = step if isinstance(step, list) else [step]
        for chunk in chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk


@pytest.fixture
def fake_client_factory() -> Callable[..., FakeSpeechClient]:
    """Provide the fake client class for scripted fetch scenarios."""

    return FakeSpeechClient


@pytest.fixture
def sleeps() -> list[float]:
    """Collect requested sleep durations instead of sleeping."""

    return []


@pytest.fixture
def write_deck(tmp_path: Path) -> Callable[..., Path]:
    """Write a deck page with `const NAME = [...]` sections and return its path."""

    def _write(name: str, sections: dict[str, list[str]], directory: Path | None = None) -> Path:
        """Render sections as JS arrays of `{ jp: ..., en: ... }` objects."""

        target_dir = directory if directory is not None else tmp_path / "decks"
        target_dir.mkdir(parents=True, exist_ok=True)
        blocks = []
        for section, texts in sections.items():
            rows = "\n".join(
                f'    {{ jp: "ことば{index}", en: "{text}" }},' for index, text in enumerate(texts)
            )
            blocks.append(f"  const {section} = [\n{rows}\n  ];")
        body = "\n".join(blocks)
        path = target_dir / name
        path.write_text(
            f"<html><body><script>\n{body}\n</script></body></html>\n",
            encoding="utf-8",
        )
        return path

    return _write
