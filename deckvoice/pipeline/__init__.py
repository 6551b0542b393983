"""Deckvoice pipeline package.

This package contains orchestration of the batch fetch flow and run report
persistence.
"""

from .orchestrator import DeckvoicePipeline, SpeechClient
from .reporting import write_run_report

__all__ = ["DeckvoicePipeline", "SpeechClient", "write_run_report"]
