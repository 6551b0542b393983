"""Basic smoke tests for project wiring."""

from pathlib import Path

from typer.testing import CliRunner

from deckvoice import DeckvoicePipeline, __version__
from deckvoice.cli import app
from deckvoice.config import DeckvoiceConfig


def test_pipeline_can_be_instantiated() -> None:
    """Pipeline class should be constructible."""

    pipeline = DeckvoicePipeline()
    assert pipeline is not None


def test_config_dataclass_defaults() -> None:
    """Config should keep the expected output location and pacing."""

    config = DeckvoiceConfig()
    assert config.output_dir == Path("assets") / "audio"
    assert config.request_delay_seconds > 0
    assert __version__


def test_cli_lists_commands() -> None:
    """The CLI exposes the generate and scan commands."""

    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "generate" in result.output
    assert "scan" in result.output
