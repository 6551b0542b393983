"""Command-line interface for Deckvoice.

Responsibilities:
- Expose user-facing commands for generation and dry-run scanning.
- Convert CLI arguments into `DeckvoiceConfig` and execute the pipeline.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

from .cli_rendering import echo_run_summary, echo_scan_listing, exit_with_command_error
from .config import ConfigLoader, DeckvoiceConfig
from .errors import PipelineStageError
from .pipeline import DeckvoicePipeline, write_run_report
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="deckvoice",
    no_args_is_help=True,
    help="Deckvoice CLI: cache speech audio for lesson deck fragments.",
)


def _load_yaml_config(config_path: Path | None) -> DeckvoiceConfig | None:
    """Load a YAML config file when requested and map failures to stage errors."""

    if config_path is None:
        return None

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config schema/values and rerun.",
        ) from exc
    except OSError as exc:
        raise PipelineStageError(
            stage="config",
            detail=f"Failed to load config file `{config_path}`: {exc}",
            hint="Verify file permissions.",
        ) from exc


def _resolve_command_config(
    config_file: Path | None, overrides: dict[str, Any]
) -> DeckvoiceConfig:
    """Resolve effective command config from YAML defaults and explicit CLI overrides."""

    loaded_config = _load_yaml_config(config_file)
    base_config = loaded_config if loaded_config is not None else DeckvoiceConfig()
    try:
        return ConfigLoader.apply_overrides(base_config, overrides)
    except ValueError as exc:
        raise PipelineStageError(
            stage="config",
            detail=str(exc),
            hint="Fix the command options and rerun.",
        ) from exc


InputsArgument = Annotated[
    list[Path] | None,
    typer.Argument(
        help="Deck files or directories to scan. Defaults to the config value or `.`.",
    ),
]
OutOption = Annotated[
    Path | None,
    typer.Option("--out", help="Audio output directory (overrides config file value)."),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file with command defaults."),
]
PatternOption = Annotated[
    str | None,
    typer.Option("--pattern", help="Glob used to find decks inside directories."),
]


@app.command("generate")
def generate_command(
    inputs: InputsArgument = None,
    out: OutOption = None,
    config_file: ConfigOption = None,
    pattern: PatternOption = None,
    base_url: Annotated[
        str | None, typer.Option("--base-url", help="Speech endpoint base URL.")
    ] = None,
    voice: Annotated[str | None, typer.Option("--voice", help="Voice identifier.")] = None,
    delay: Annotated[
        float | None,
        typer.Option("--delay", help="Seconds to wait after every request."),
    ] = None,
    cooldown: Annotated[
        float | None,
        typer.Option("--cooldown", help="Seconds to wait after HTTP 429 before retrying."),
    ] = None,
    max_throttle_retries: Annotated[
        int | None,
        typer.Option(
            "--max-throttle-retries",
            help="Give up on a fragment after this many throttled retries (default: never).",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout", help="Per-request timeout in seconds; 0 disables it (default: none)."
        ),
    ] = None,
    report: Annotated[
        Path | None,
        typer.Option("--report", help="Write a JSON run report to this path."),
    ] = None,
) -> None:
    """Synthesize and cache audio for every unique deck fragment."""

    try:
        config = _resolve_command_config(
            config_file,
            {
                "inputs": inputs,
                "output_dir": out,
                "document_pattern": pattern,
                "base_url": base_url,
                "voice": voice,
                "request_delay_seconds": delay,
                "throttle_cooldown_seconds": cooldown,
                "max_throttle_retries": max_throttle_retries,
                "request_timeout_seconds": timeout,
            },
        )
        pipeline = DeckvoicePipeline(run_logger=RunLogger())
        summary = pipeline.run(config)
        if report is not None:
            write_run_report(summary, report)
    except Exception as exc:
        exit_with_command_error("generate", exc)

    echo_run_summary(summary)
    if report is not None:
        typer.echo(f"Report: {report}")


@app.command("scan")
def scan_command(
    inputs: InputsArgument = None,
    out: OutOption = None,
    config_file: ConfigOption = None,
    pattern: PatternOption = None,
) -> None:
    """List unique deck fragments and whether their audio is already cached."""

    try:
        config = _resolve_command_config(
            config_file,
            {
                "inputs": inputs,
                "output_dir": out,
                "document_pattern": pattern,
            },
        )
        summary = DeckvoicePipeline().scan(config)
    except Exception as exc:
        exit_with_command_error("scan", exc)

    echo_scan_listing(summary)


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
