"""Module entrypoint for running Deckvoice as ``python -m deckvoice``."""

from __future__ import annotations

from deckvoice.cli import main


if __name__ == "__main__":
    main()
