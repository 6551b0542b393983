"""Telemetry and observability helpers.

This package emits deterministic run events for CLI-observable diagnostics.
"""

from .logger import RunLogger

__all__ = ["RunLogger"]
