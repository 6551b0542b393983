"""Fragment key normalization.

Responsibilities:
- Derive the in-batch deduplication key for a fragment.
- Derive the deterministic, filesystem-safe artifact name for a fragment.
- Keep both derivations pure so the cache acts as a memo across runs.
"""

from __future__ import annotations

import re

from ..errors import InvalidFragmentError
from ..models.datatypes import FragmentKey

# ASCII word characters plus Hiragana, Katakana, common CJK ideographs and
# full-width digits.
_DISALLOWED_NAME_CHARACTERS = re.compile(r"[^A-Za-z0-9_ぁ-んァ-ン一-龯０-９]")

MAX_NAME_CHARS = 100
AUDIO_EXTENSION = ".mp3"


def is_blank(text: str) -> bool:
    """Return whether text is empty after trimming."""

    return not text.strip()


def dedup_key(text: str) -> str:
    """Return the trimmed lowercase key used to detect duplicate fragments."""

    return text.strip().lower()


def artifact_name(
    text: str,
    max_chars: int = MAX_NAME_CHARS,
    extension: str = AUDIO_EXTENSION,
) -> str:
    """Return the cache file name for fragment text.

    Distinct texts can truncate to the same name; callers treat the later one
    as already cached.
    """

    stem = _DISALLOWED_NAME_CHARACTERS.sub("", text.lower())
    return f"{stem[:max_chars]}{extension}"


def normalize(
    text: str,
    max_chars: int = MAX_NAME_CHARS,
    extension: str = AUDIO_EXTENSION,
) -> FragmentKey:
    """Map fragment text to its dedup key and artifact name.

    Raises:
        InvalidFragmentError: If the text is empty after trimming.
    """

    if is_blank(text):
        raise InvalidFragmentError("Fragment text is empty after trimming.")
    return FragmentKey(
        dedup_key=dedup_key(text),
        artifact_name=artifact_name(text, max_chars=max_chars, extension=extension),
    )
