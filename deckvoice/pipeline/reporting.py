"""Run report persistence.

Responsibilities:
- Serialize a `RunSummary` into deterministic JSON for auditing a run.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..models.datatypes import RunSummary


def write_run_report(summary: RunSummary, path: Path) -> Path:
    """Write the run summary as pretty-printed JSON and return the path."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(summary.as_payload(), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return path
