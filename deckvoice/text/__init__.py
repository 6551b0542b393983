"""Text normalization helpers for fragment identity."""

from .normalizer import artifact_name, dedup_key, is_blank, normalize

__all__ = ["artifact_name", "dedup_key", "is_blank", "normalize"]
