"""Shared typed data models for Deckvoice.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    FetchAttempt,
    FetchOutcome,
    Fragment,
    FragmentKey,
    ItemOutcome,
    ItemReport,
    RunSummary,
)

__all__ = [
    "FetchAttempt",
    "FetchOutcome",
    "Fragment",
    "FragmentKey",
    "ItemOutcome",
    "ItemReport",
    "RunSummary",
]
