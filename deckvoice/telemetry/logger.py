"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic phase-level and per-item runtime logs.
- Route all output through `loguru` with a plain message format.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic phase and item logs for CLI-observable pipeline activity."""

    def __init__(self, sink: TextIO | None = None, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stdout
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[phase] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def log_stage_start(self, stage: str) -> None:
        """Emit a stage-start runtime event."""

        self._emit("INFO", "start", stage)

    def log_stage_complete(self, stage: str, **context: object) -> None:
        """Emit a stage-complete runtime event."""

        self._emit("INFO", "complete", stage, **context)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a stage-failure runtime event without sensitive payload details."""

        self._emit("ERROR", "failure", stage, error_type=error_type)

    def log_document(self, document: object, fragment_count: int) -> None:
        """Emit one scan event per deck document."""

        self._emit("INFO", "scan", "extract", document=document, fragments=fragment_count)

    def log_throttled(self, artifact_name: str, attempt: int, wait_seconds: float) -> None:
        """Emit a throttled-wait event before the cool-down starts."""

        self._emit(
            "WARNING",
            "throttled",
            "fetch",
            artifact=artifact_name,
            attempt=attempt,
            wait_seconds=f"{wait_seconds:g}",
        )

    def log_item(self, outcome: str, text: str, level: str = "INFO", **context: object) -> None:
        """Emit one per-fragment outcome line followed by the raw fragment text.

        Structured tokens come first so they stay parseable; the free-form
        text is only separated by ` | `.
        """

        line = f"[item] outcome={outcome}{_format_context(context)} | {text}"
        _loguru_logger.log(level, line)
