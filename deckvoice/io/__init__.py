"""Input/output stage components for Deckvoice.

This package contains deck discovery and extraction, the audio cache store,
and the output directory run lock.
"""

from .deck_extractor import DeckExtractor, discover_documents
from .run_lock import RunLockError, output_dir_lock
from .storage import AudioCacheStore, PendingArtifact

__all__ = [
    "AudioCacheStore",
    "DeckExtractor",
    "PendingArtifact",
    "RunLockError",
    "discover_documents",
    "output_dir_lock",
]
