"""Deck document discovery and fragment extraction.

Responsibilities:
- Expand input paths into an ordered list of deck documents.
- Extract English fragments from whitelisted deck arrays, in occurrence order.
- Never yield fragments from excluded (quiz/test) arrays.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
import re

from ..config import (
    DEFAULT_DOCUMENT_PATTERN,
    DEFAULT_EXCLUDE_CATEGORIES,
    DEFAULT_INCLUDE_CATEGORIES,
)
from ..errors import DocumentReadError
from ..models.datatypes import Fragment

_ENGLISH_FIELD_PATTERN = re.compile(r'\ben\s*:\s*"([^"]+)"')


def discover_documents(
    paths: Iterable[Path], pattern: str = DEFAULT_DOCUMENT_PATTERN
) -> list[Path]:
    """Return deck documents for the given files and directories.

    Files are kept in the given order; each directory contributes its direct
    children matching `pattern`, sorted by name. Repeated paths are dropped.

    Raises:
        FileNotFoundError: If an input path does not exist.
    """

    documents: list[Path] = []
    seen: set[Path] = set()
    for path in paths:
        if path.is_dir():
            candidates = sorted(
                (child for child in path.glob(pattern) if child.is_file()),
                key=lambda child: child.name,
            )
        elif path.is_file():
            candidates = [path]
        else:
            raise FileNotFoundError(f"Input path not found: `{path}`.")

        for candidate in candidates:
            identity = candidate.resolve()
            if identity in seen:
                continue
            seen.add(identity)
            documents.append(candidate)
    return documents


class DeckExtractor:
    """Extract fragments from `const NAME = [ ... ];` arrays in deck pages."""

    def __init__(
        self,
        include_categories: Sequence[str] = DEFAULT_INCLUDE_CATEGORIES,
        exclude_categories: Sequence[str] = DEFAULT_EXCLUDE_CATEGORIES,
    ) -> None:
        """Initialize the category whitelist; excluded names always win."""

        excluded = set(exclude_categories)
        self.categories = tuple(name for name in include_categories if name not in excluded)
        self._section_pattern = self._compile_section_pattern(self.categories)

    def extract(self, path: Path) -> list[Fragment]:
        """Extract fragments from one deck document.

        Raises:
            DocumentReadError: If the document cannot be read as UTF-8 text.
        """

        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentReadError(f"Failed to read deck document `{path}`: {exc}") from exc
        return self.extract_text(raw, source=path)

    def extract_text(self, raw: str, source: Path | None = None) -> list[Fragment]:
        """Extract fragments from raw document text."""

        if self._section_pattern is None:
            return []

        fragments: list[Fragment] = []
        for section in self._section_pattern.finditer(raw):
            category = section.group("name")
            for match in _ENGLISH_FIELD_PATTERN.finditer(section.group(0)):
                text = match.group(1).strip()
                if text:
                    fragments.append(Fragment(category=category, text=text, source=source))
        return fragments

    @staticmethod
    def _compile_section_pattern(categories: Sequence[str]) -> re.Pattern[str] | None:
        """Build the array-declaration pattern for the allowed category names."""

        if not categories:
            return None
        names = "|".join(re.escape(name) for name in categories)
        return re.compile(
            rf"const\s+(?P<name>{names})\s*=\s*\[.*?\];",
            re.DOTALL,
        )
