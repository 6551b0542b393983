"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
run summaries, and scan listings.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import ItemOutcome, RunSummary


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def echo_run_summary(summary: RunSummary) -> None:
    """Print run-level counts and the output directory."""

    typer.echo(f"Documents scanned: {len(summary.documents)}")
    typer.echo(f"Fragments found: {summary.fragment_count}")
    typer.echo(f"Generated: {summary.count(ItemOutcome.DONE)}")
    typer.echo(f"Already cached: {summary.count(ItemOutcome.CACHE_HIT)}")
    typer.echo(f"Duplicates skipped: {summary.count(ItemOutcome.DUPLICATE_SKIP)}")
    typer.echo(f"Failed: {summary.count(ItemOutcome.FAILED)}")
    typer.echo(f"Throttle waits: {summary.throttle_waits}")
    typer.echo(f"Finished. Audio saved in {summary.output_dir}")


def echo_scan_listing(summary: RunSummary) -> None:
    """Print one row per unique fragment with its cache status."""

    for item in summary.items:
        if item.key is None or item.outcome is ItemOutcome.DUPLICATE_SKIP:
            continue
        status = "cached" if item.outcome is ItemOutcome.CACHE_HIT else "pending"
        typer.echo(f"{status}\t{item.key.artifact_name}\t{item.fragment.text}")
    cached = summary.count(ItemOutcome.CACHE_HIT)
    pending = summary.count(ItemOutcome.PENDING)
    duplicates = summary.count(ItemOutcome.DUPLICATE_SKIP)
    typer.echo(
        f"Unique fragments: {cached + pending} "
        f"(cached {cached}, pending {pending}, duplicates {duplicates})"
    )
