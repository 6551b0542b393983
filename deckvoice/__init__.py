"""Top-level package for Deckvoice.

This package extracts English fragments from lesson deck pages and caches one
synthesized speech file per unique fragment. The main orchestration entry
point is `DeckvoicePipeline`.
"""

from .pipeline import DeckvoicePipeline

__all__ = ["DeckvoicePipeline", "__version__"]

__version__ = "0.1.0"
