"""Configuration model and loaders for Deckvoice.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Provide loader entry points for file- and environment-based configuration.
- Apply explicit CLI overrides on top of loaded values.

Key types:
- `DeckvoiceConfig`: normalized runtime settings for a generation run.
- `ConfigLoader`: static construction helpers for `DeckvoiceConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import os
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlsplit

import yaml

from .parsing import (
    normalize_optional_string,
    parse_non_negative_float,
    parse_positive_int,
    parse_string_list,
)


DEFAULT_BASE_URL = "https://bryanharper.tokyo/_functions/tts"
DEFAULT_VOICE = "sage"
DEFAULT_OUTPUT_DIR = Path("assets") / "audio"
DEFAULT_REQUEST_DELAY_SECONDS = 8.0
DEFAULT_THROTTLE_COOLDOWN_SECONDS = 300.0
DEFAULT_INCLUDE_CATEGORIES = ("VOCAB", "SENTENCES", "QUESTIONS")
DEFAULT_EXCLUDE_CATEGORIES = ("QUIZ",)
DEFAULT_DOCUMENT_PATTERN = "*.html"
DEFAULT_MAX_NAME_CHARS = 100
DEFAULT_AUDIO_EXTENSION = ".mp3"
PARTIAL_SUFFIX = ".part"


@dataclass(slots=True)
class DeckvoiceConfig:
    """Runtime configuration for one generation run.

    Attributes:
        inputs: Deck documents or directories to scan, in processing order.
        output_dir: Audio cache directory; created when missing.
        base_url: Speech endpoint URL without the `voice`/`text` query.
        voice: Voice identifier sent with every request.
        request_delay_seconds: Pause after every fetch, whatever its outcome.
        throttle_cooldown_seconds: Pause before retrying a throttled fragment.
        max_throttle_retries: Optional cap on throttled retries per fragment;
            `None` retries until the endpoint stops throttling.
        request_timeout_seconds: Optional per-request timeout; `None` keeps the
            transport default.
        include_categories: Deck array names whose fragments are voiced.
        exclude_categories: Deck array names that are never voiced.
        document_pattern: Glob used to find documents inside directories.
        max_name_chars: Maximum artifact name stem length.
        audio_extension: Extension appended to artifact names.
    """

    inputs: list[Path] = field(default_factory=lambda: [Path(".")])
    output_dir: Path = DEFAULT_OUTPUT_DIR
    base_url: str = DEFAULT_BASE_URL
    voice: str = DEFAULT_VOICE
    request_delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS
    throttle_cooldown_seconds: float = DEFAULT_THROTTLE_COOLDOWN_SECONDS
    max_throttle_retries: int | None = None
    request_timeout_seconds: float | None = None
    include_categories: tuple[str, ...] = DEFAULT_INCLUDE_CATEGORIES
    exclude_categories: tuple[str, ...] = DEFAULT_EXCLUDE_CATEGORIES
    document_pattern: str = DEFAULT_DOCUMENT_PATTERN
    max_name_chars: int = DEFAULT_MAX_NAME_CHARS
    audio_extension: str = DEFAULT_AUDIO_EXTENSION

    def validate(self) -> None:
        """Validate runtime configuration values before pipeline execution."""

        if not self.inputs:
            raise ValueError("`inputs` must list at least one document or directory.")
        self._require_non_empty(self.voice, "voice")
        self._require_non_empty(self.document_pattern, "document_pattern")
        self._validate_base_url(self.base_url)
        if self.request_delay_seconds < 0.0:
            raise ValueError("`request_delay_seconds` must be a non-negative number.")
        if self.throttle_cooldown_seconds < 0.0:
            raise ValueError("`throttle_cooldown_seconds` must be a non-negative number.")
        if self.max_throttle_retries is not None and self.max_throttle_retries <= 0:
            raise ValueError("`max_throttle_retries` must be a positive integer.")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0.0:
            raise ValueError("`request_timeout_seconds` must be a positive number.")
        if not self.include_categories:
            raise ValueError("`include_categories` must name at least one category.")
        for category in (*self.include_categories, *self.exclude_categories):
            self._require_non_empty(category, "categories")
        if self.max_name_chars <= 0:
            raise ValueError("`max_name_chars` must be a positive integer.")
        if not self.audio_extension.startswith(".") or len(self.audio_extension) < 2:
            raise ValueError("`audio_extension` must start with `.`, for example `.mp3`.")
        if self.audio_extension.lower().endswith(PARTIAL_SUFFIX):
            raise ValueError(
                f"`audio_extension` must not end with `{PARTIAL_SUFFIX}`, "
                "which marks unfinished downloads."
            )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that runtime string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")

    @staticmethod
    def _validate_base_url(value: str) -> None:
        """Validate that the endpoint is an absolute http(s) URL."""

        DeckvoiceConfig._require_non_empty(value, "base_url")
        parts = urlsplit(value.strip())
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ValueError(f"`base_url` must be an absolute http(s) URL, got `{value}`.")


class ConfigLoader:
    """Factory methods for creating `DeckvoiceConfig` from external sources."""

    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "inputs",
            "output_dir",
            "base_url",
            "voice",
            "request_delay_seconds",
            "throttle_cooldown_seconds",
            "max_throttle_retries",
            "request_timeout_seconds",
            "include_categories",
            "exclude_categories",
            "document_pattern",
            "max_name_chars",
            "audio_extension",
        }
    )
    _ENV_KEYS = {
        "inputs": "DECKVOICE_INPUTS",
        "output_dir": "DECKVOICE_OUTPUT_DIR",
        "base_url": "DECKVOICE_BASE_URL",
        "voice": "DECKVOICE_VOICE",
        "request_delay_seconds": "DECKVOICE_REQUEST_DELAY_SECONDS",
        "throttle_cooldown_seconds": "DECKVOICE_THROTTLE_COOLDOWN_SECONDS",
        "max_throttle_retries": "DECKVOICE_MAX_THROTTLE_RETRIES",
        "request_timeout_seconds": "DECKVOICE_REQUEST_TIMEOUT_SECONDS",
        "include_categories": "DECKVOICE_INCLUDE_CATEGORIES",
        "exclude_categories": "DECKVOICE_EXCLUDE_CATEGORIES",
        "document_pattern": "DECKVOICE_DOCUMENT_PATTERN",
    }

    @staticmethod
    def from_yaml(path: Path) -> DeckvoiceConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        try:
            payload = yaml.safe_load(path_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> DeckvoiceConfig:
        """Create a validated config from `DECKVOICE_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for key, env_key in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is None:
                continue
            if key == "inputs":
                payload[key] = list(parse_string_list(value, separator=os.pathsep))
            else:
                payload[key] = value
        return ConfigLoader._build_config_from_mapping(payload, source_label="Environment")

    @staticmethod
    def apply_overrides(
        config: DeckvoiceConfig, overrides: Mapping[str, object]
    ) -> DeckvoiceConfig:
        """Return a validated copy of `config` with non-`None` overrides applied.

        Empty input lists count as "not provided" so that CLI calls without
        positional paths keep the configured inputs.
        A zero request timeout disables the timeout, as in config files.
        """

        known = {config_field.name for config_field in fields(DeckvoiceConfig)}
        unknown = sorted(set(overrides).difference(known))
        if unknown:
            raise ValueError(f"Unsupported override key(s): {', '.join(unknown)}.")

        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "inputs":
                paths = [Path(item) for item in value]  # type: ignore[union-attr]
                if not paths:
                    continue
                changes[key] = paths
            elif key == "request_timeout_seconds" and value == 0:
                changes[key] = None
            elif key in {"include_categories", "exclude_categories"}:
                changes[key] = parse_string_list(value)
            else:
                changes[key] = value

        updated = replace(config, **changes)
        updated.validate()
        return updated

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> DeckvoiceConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_keys(payload, source_label)
        defaults = DeckvoiceConfig()

        try:
            config = DeckvoiceConfig(
                inputs=ConfigLoader._optional_path_list(payload, "inputs", source_label)
                or list(defaults.inputs),
                output_dir=ConfigLoader._optional_path(payload, "output_dir")
                or defaults.output_dir,
                base_url=normalize_optional_string(payload.get("base_url"))
                or defaults.base_url,
                voice=normalize_optional_string(payload.get("voice")) or defaults.voice,
                request_delay_seconds=ConfigLoader._optional_seconds(
                    payload, "request_delay_seconds", defaults.request_delay_seconds
                ),
                throttle_cooldown_seconds=ConfigLoader._optional_seconds(
                    payload, "throttle_cooldown_seconds", defaults.throttle_cooldown_seconds
                ),
                max_throttle_retries=ConfigLoader._optional_positive_int(
                    payload, "max_throttle_retries", None
                ),
                request_timeout_seconds=ConfigLoader._optional_timeout(payload),
                include_categories=ConfigLoader._optional_categories(
                    payload, "include_categories", defaults.include_categories
                ),
                exclude_categories=ConfigLoader._optional_categories(
                    payload, "exclude_categories", defaults.exclude_categories
                ),
                document_pattern=normalize_optional_string(payload.get("document_pattern"))
                or defaults.document_pattern,
                max_name_chars=ConfigLoader._optional_positive_int(
                    payload, "max_name_chars", defaults.max_name_chars
                )
                or defaults.max_name_chars,
                audio_extension=normalize_optional_string(payload.get("audio_extension"))
                or defaults.audio_extension,
            )
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config

    @staticmethod
    def _validate_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Reject unknown keys so typos never silently fall back to defaults."""

        unknown = sorted(
            str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS)
        )
        if unknown:
            key_list = ", ".join(unknown)
            raise ValueError(f"{source_label} includes unsupported key(s): {key_list}.")

    @staticmethod
    def _optional_path(payload: Mapping[str, Any], key: str) -> Path | None:
        """Read an optional non-empty path field."""

        value = normalize_optional_string(payload.get(key))
        if value is None:
            return None
        return Path(value)

    @staticmethod
    def _optional_path_list(
        payload: Mapping[str, Any], key: str, source_label: str
    ) -> list[Path] | None:
        """Read a path or a list of paths."""

        if key not in payload or payload[key] is None:
            return None
        raw = payload[key]
        if isinstance(raw, Mapping):
            raise ValueError(f"{source_label} field `{key}` must be a path or a list of paths.")
        if isinstance(raw, str):
            raw = [raw]
        return [Path(item) for item in parse_string_list(raw)]

    @staticmethod
    def _optional_seconds(payload: Mapping[str, Any], key: str, default: float) -> float:
        """Read a non-negative duration in seconds."""

        if key not in payload or payload[key] is None:
            return default
        return parse_non_negative_float(payload[key], key)

    @staticmethod
    def _optional_timeout(payload: Mapping[str, Any]) -> float | None:
        """Read the optional request timeout; zero or blank disables it."""

        key = "request_timeout_seconds"
        if key not in payload or normalize_optional_string(payload[key]) is None:
            return None
        parsed = parse_non_negative_float(payload[key], key)
        return parsed if parsed > 0.0 else None

    @staticmethod
    def _optional_positive_int(
        payload: Mapping[str, Any], key: str, default: int | None
    ) -> int | None:
        """Read an optional positive integer field."""

        if key not in payload or normalize_optional_string(payload[key]) is None:
            return default
        return parse_positive_int(payload[key], key)

    @staticmethod
    def _optional_categories(
        payload: Mapping[str, Any], key: str, default: tuple[str, ...]
    ) -> tuple[str, ...]:
        """Read a category list given as a YAML list or a comma-separated string."""

        if key not in payload or payload[key] is None:
            return default
        return parse_string_list(payload[key])
