"""Core datatypes shared across Deckvoice modules.

Responsibilities:
- Represent immutable records exchanged between pipeline stages.
- Provide explicit typing for per-item reporting and run summaries.

Key types:
- `Fragment`, `FragmentKey`, `FetchAttempt`, `ItemOutcome`, `ItemReport`,
  and `RunSummary`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Fragment:
    """One piece of deck text to be voiced.

    Attributes:
        category: Deck array name the text was found in (e.g. `VOCAB`).
        text: Source text as written in the deck, trimmed.
        source: Document the fragment was extracted from, when known.
    """

    category: str
    text: str
    source: Path | None = None


@dataclass(frozen=True, slots=True)
class FragmentKey:
    """Lookup identity derived from fragment text.

    Attributes:
        dedup_key: Trimmed lowercase text used for in-batch deduplication.
        artifact_name: Filesystem-safe cache file name.
    """

    dedup_key: str
    artifact_name: str


class FetchOutcome(str, Enum):
    """Result of one outbound synthesis request."""

    SUCCESS = "success"
    THROTTLED = "throttled"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FetchAttempt:
    """Transient record of one request; never persisted."""

    text: str
    url: str
    outcome: FetchOutcome


class ItemOutcome(str, Enum):
    """Terminal state of one fragment within a run."""

    DUPLICATE_SKIP = "duplicate_skip"
    CACHE_HIT = "cache_hit"
    DONE = "done"
    FAILED = "failed"
    INVALID = "invalid"
    PENDING = "pending"


@dataclass(frozen=True, slots=True)
class ItemReport:
    """Per-fragment outcome reported by the pipeline.

    Attributes:
        fragment: Fragment the report is about.
        key: Derived key, or `None` for invalid fragments.
        outcome: Terminal state reached.
        attempts: Requests issued for this fragment, in order.
        error: Short failure description for `failed` items.
        error_kind: Failure classification such as `throttled` or `http_error`.
        status_code: HTTP status of the failing response, when there was one.
    """

    fragment: Fragment
    key: FragmentKey | None
    outcome: ItemOutcome
    attempts: tuple[FetchAttempt, ...] = field(default_factory=tuple)
    error: str | None = None
    error_kind: str | None = None
    status_code: int | None = None


@dataclass(slots=True)
class RunSummary:
    """Aggregate record of one pipeline run."""

    output_dir: Path
    documents: list[Path] = field(default_factory=list)
    items: list[ItemReport] = field(default_factory=list)
    throttle_waits: int = 0
    dry_run: bool = False

    @property
    def fragment_count(self) -> int:
        """Return the number of fragments seen, duplicates included."""

        return len(self.items)

    @property
    def request_count(self) -> int:
        """Return the number of requests issued across all fragments."""

        return sum(len(item.attempts) for item in self.items)

    def count(self, outcome: ItemOutcome) -> int:
        """Return how many items ended in `outcome`."""

        return sum(1 for item in self.items if item.outcome is outcome)

    def outcome_counts(self) -> dict[str, int]:
        """Return counts for every outcome, in declaration order."""

        return {outcome.value: self.count(outcome) for outcome in ItemOutcome}

    def as_payload(self) -> dict[str, object]:
        """Serialize the summary into a JSON-ready mapping."""

        return {
            "output_dir": str(self.output_dir),
            "dry_run": self.dry_run,
            "documents": [str(path) for path in self.documents],
            "fragments": self.fragment_count,
            "requests": self.request_count,
            "throttle_waits": self.throttle_waits,
            "outcomes": self.outcome_counts(),
            "items": [
                {
                    "category": item.fragment.category,
                    "text": item.fragment.text,
                    "source": str(item.fragment.source) if item.fragment.source else None,
                    "artifact_name": item.key.artifact_name if item.key else None,
                    "outcome": item.outcome.value,
                    "attempts": len(item.attempts),
                    "error": item.error,
                    "error_kind": item.error_kind,
                    "status_code": item.status_code,
                }
                for item in self.items
            ],
        }
