"""Pipeline orchestration for Deckvoice.

Responsibilities:
- Discover deck documents and extract fragments in document order.
- Deduplicate fragments across the whole batch, first occurrence wins.
- Drive cache checks, fetches, throttling retries and pacing one fragment at a time.
- Report every item outcome and return a run summary.

Key types:
- `DeckvoicePipeline`: orchestration facade.
- `SpeechClient`: protocol satisfied by `SpeechFetchClient` and test doubles.
"""

from __future__ import annotations

from collections.abc import Generator, Iterable
from contextlib import closing
from pathlib import Path
from time import sleep
from typing import Callable, Protocol

from ..config import DeckvoiceConfig
from ..errors import DocumentReadError, FetchError, PipelineStageError, ThrottledError
from ..io.deck_extractor import DeckExtractor, discover_documents
from ..io.run_lock import RunLockError, output_dir_lock
from ..io.storage import AudioCacheStore
from ..models.datatypes import (
    FetchAttempt,
    FetchOutcome,
    Fragment,
    FragmentKey,
    ItemOutcome,
    ItemReport,
    RunSummary,
)
from ..telemetry.logger import RunLogger
from ..text.normalizer import is_blank, normalize
from ..tts.client import SpeechFetchClient
from ..tts.pacing import RequestPacer


class SpeechClient(Protocol):
    """Protocol for speech endpoint clients used by the fetch stage."""

    def build_url(self, text: str) -> str:
        """Return the request URL for fragment text."""

    def stream(self, text: str) -> Generator[bytes, None, None]:
        """Yield audio bytes for fragment text or raise a `FetchError`."""


class DeckvoicePipeline:
    """Coordinate extraction, deduplication, caching and fetching for one run."""

    def __init__(
        self,
        run_logger: RunLogger | None = None,
        client: SpeechClient | None = None,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        """Initialize optional logging, an injected client, and the sleep hook."""

        self._run_logger = run_logger
        self._client = client
        self._sleeper = sleeper

    def run(self, config: DeckvoiceConfig) -> RunSummary:
        """Generate audio for every unique fragment of the configured decks."""

        self._validate_config(config)
        store = AudioCacheStore(config.output_dir)
        documents = self._discover(config)
        self._prepare_output_dir(store)

        try:
            with output_dir_lock(store.root):
                removed = store.purge_partials()
                if removed and self._run_logger is not None:
                    self._run_logger.log_stage_complete("cache", purged_partials=len(removed))
                summary = RunSummary(output_dir=store.root, documents=documents)
                fragments = self._extract(documents, config)
                return self.process(
                    fragments,
                    config,
                    store,
                    client=self._resolve_client(config),
                    pacer=self._build_pacer(config),
                    summary=summary,
                )
        except RunLockError as exc:
            raise PipelineStageError(
                stage="lock",
                detail=str(exc),
                hint="Wait for the other run to finish or choose another `--out` directory.",
            ) from exc

    def scan(self, config: DeckvoiceConfig) -> RunSummary:
        """Report what a run would do without touching the network or the cache."""

        self._validate_config(config)
        store = AudioCacheStore(config.output_dir)
        documents = self._discover(config)
        summary = RunSummary(output_dir=store.root, documents=documents, dry_run=True)
        fragments = self._extract(documents, config)
        return self.process(fragments, config, store, summary=summary, dry_run=True)

    def process(
        self,
        fragments: Iterable[Fragment],
        config: DeckvoiceConfig,
        store: AudioCacheStore,
        *,
        client: SpeechClient | None = None,
        pacer: RequestPacer | None = None,
        summary: RunSummary | None = None,
        dry_run: bool = False,
    ) -> RunSummary:
        """Run the per-fragment state machine over an ordered fragment sequence."""

        if summary is None:
            summary = RunSummary(output_dir=store.root, dry_run=dry_run)
        if not dry_run:
            client = client if client is not None else self._resolve_client(config)
            pacer = pacer if pacer is not None else self._build_pacer(config)

        self._stage_start("fetch")
        seen_keys: set[str] = set()
        for fragment in fragments:
            if is_blank(fragment.text):
                summary.items.append(ItemReport(fragment, None, ItemOutcome.INVALID))
                continue

            key = normalize(
                fragment.text,
                max_chars=config.max_name_chars,
                extension=config.audio_extension,
            )
            if key.dedup_key in seen_keys:
                self._record(summary, ItemReport(fragment, key, ItemOutcome.DUPLICATE_SKIP))
                continue
            seen_keys.add(key.dedup_key)

            if store.exists(key.artifact_name):
                self._record(summary, ItemReport(fragment, key, ItemOutcome.CACHE_HIT))
                continue

            if dry_run:
                self._record(summary, ItemReport(fragment, key, ItemOutcome.PENDING))
                continue

            assert client is not None and pacer is not None
            report = self._fetch_item(fragment, key, store, client, pacer, config, summary)
            self._record(summary, report)
            pacer.pause()

        self._stage_complete(summary)
        return summary

    def _fetch_item(
        self,
        fragment: Fragment,
        key: FragmentKey,
        store: AudioCacheStore,
        client: SpeechClient,
        pacer: RequestPacer,
        config: DeckvoiceConfig,
        summary: RunSummary,
    ) -> ItemReport:
        """Fetch one fragment, retrying the same fragment while throttled."""

        attempts: list[FetchAttempt] = []
        throttled_count = 0
        while True:
            url = client.build_url(fragment.text)
            try:
                self._download(fragment, key, store, client)
            except ThrottledError as exc:
                attempts.append(FetchAttempt(fragment.text, url, FetchOutcome.THROTTLED))
                throttled_count += 1
                if (
                    config.max_throttle_retries is not None
                    and throttled_count > config.max_throttle_retries
                ):
                    return ItemReport(
                        fragment,
                        key,
                        ItemOutcome.FAILED,
                        attempts=tuple(attempts),
                        error=f"{exc} Gave up after {config.max_throttle_retries} retries.",
                        error_kind=exc.failure_kind,
                        status_code=exc.status_code,
                    )
                summary.throttle_waits += 1
                if self._run_logger is not None:
                    self._run_logger.log_throttled(
                        key.artifact_name,
                        attempt=len(attempts),
                        wait_seconds=pacer.throttle_cooldown_seconds,
                    )
                pacer.cool_down()
                continue
            except FetchError as exc:
                attempts.append(FetchAttempt(fragment.text, url, FetchOutcome.FAILED))
                return ItemReport(
                    fragment,
                    key,
                    ItemOutcome.FAILED,
                    attempts=tuple(attempts),
                    error=str(exc),
                    error_kind=exc.failure_kind,
                    status_code=exc.status_code,
                )
            except FileExistsError:
                attempts.append(FetchAttempt(fragment.text, url, FetchOutcome.SUCCESS))
                return ItemReport(fragment, key, ItemOutcome.CACHE_HIT, attempts=tuple(attempts))

            attempts.append(FetchAttempt(fragment.text, url, FetchOutcome.SUCCESS))
            return ItemReport(fragment, key, ItemOutcome.DONE, attempts=tuple(attempts))

    def _download(
        self,
        fragment: Fragment,
        key: FragmentKey,
        store: AudioCacheStore,
        client: SpeechClient,
    ) -> Path:
        """Stream one response into a staged artifact and commit it.

        The staged artifact is deleted on any failure, so an interrupted
        download never leaves a file behind for `key.artifact_name`.
        """

        try:
            sink = store.begin_write(key.artifact_name)
        except OSError as exc:
            raise self._cache_write_error(store, exc) from exc

        try:
            with closing(client.stream(fragment.text)) as chunks:
                for chunk in chunks:
                    sink.write(chunk)
        except FetchError:
            store.abort_and_delete(sink)
            raise
        except OSError as exc:
            store.abort_and_delete(sink)
            raise self._cache_write_error(store, exc) from exc
        except BaseException:
            store.abort_and_delete(sink)
            raise

        try:
            return store.commit(sink)
        except FileExistsError:
            raise
        except OSError as exc:
            store.abort_and_delete(sink)
            raise self._cache_write_error(store, exc) from exc

    def _record(self, summary: RunSummary, report: ItemReport) -> None:
        """Append an item report and log it."""

        summary.items.append(report)
        if self._run_logger is None:
            return
        context: dict[str, object] = {}
        if report.key is not None:
            context["artifact"] = report.key.artifact_name
        if report.attempts:
            context["attempts"] = len(report.attempts)
        if report.error_kind is not None:
            context["kind"] = report.error_kind
        if report.status_code is not None:
            context["status"] = report.status_code
        level = "INFO"
        text = report.fragment.text
        if report.outcome is ItemOutcome.FAILED:
            level = "ERROR"
            text = f"{text} -> {report.error}"
        self._run_logger.log_item(report.outcome.value, text, level=level, **context)

    def _validate_config(self, config: DeckvoiceConfig) -> None:
        """Validate top-level configuration and map failures to stage-aware error."""

        try:
            config.validate()
        except ValueError as exc:
            raise PipelineStageError(
                stage="config",
                detail=str(exc),
                hint="Update the config file or command options and rerun the command.",
            ) from exc

    def _discover(self, config: DeckvoiceConfig) -> list[Path]:
        """Resolve input paths into deck documents."""

        try:
            return discover_documents(config.inputs, pattern=config.document_pattern)
        except FileNotFoundError as exc:
            raise PipelineStageError(
                stage="discover",
                detail=str(exc),
                hint="Pass existing deck files or directories.",
            ) from exc

    def _extract(self, documents: list[Path], config: DeckvoiceConfig) -> list[Fragment]:
        """Extract fragments from every document, in document order."""

        self._stage_start("extract")
        extractor = DeckExtractor(
            include_categories=config.include_categories,
            exclude_categories=config.exclude_categories,
        )
        fragments: list[Fragment] = []
        for document in documents:
            try:
                document_fragments = extractor.extract(document)
            except DocumentReadError as exc:
                if self._run_logger is not None:
                    self._run_logger.log_stage_failure("extract", type(exc).__name__)
                raise PipelineStageError(
                    stage="extract",
                    detail=str(exc),
                    hint="Check that the deck file is readable UTF-8 text.",
                ) from exc
            if self._run_logger is not None:
                self._run_logger.log_document(document, len(document_fragments))
            fragments.extend(document_fragments)
        if self._run_logger is not None:
            self._run_logger.log_stage_complete(
                "extract", documents=len(documents), fragments=len(fragments)
            )
        return fragments

    def _prepare_output_dir(self, store: AudioCacheStore) -> None:
        """Create the output directory or stop the run."""

        try:
            store.ensure_root()
        except OSError as exc:
            raise PipelineStageError(
                stage="output",
                detail=f"Cannot create output directory `{store.root}`: {exc}",
                hint="Choose a writable `--out` directory.",
            ) from exc

    def _resolve_client(self, config: DeckvoiceConfig) -> SpeechClient:
        """Return the injected client or build one from config."""

        if self._client is not None:
            return self._client
        return SpeechFetchClient(
            base_url=config.base_url,
            voice=config.voice,
            timeout_seconds=config.request_timeout_seconds,
        )

    def _build_pacer(self, config: DeckvoiceConfig) -> RequestPacer:
        """Build the request pacer for one run."""

        return RequestPacer(
            request_delay_seconds=config.request_delay_seconds,
            throttle_cooldown_seconds=config.throttle_cooldown_seconds,
            sleeper=self._sleeper,
        )

    @staticmethod
    def _cache_write_error(store: AudioCacheStore, exc: OSError) -> PipelineStageError:
        """Map a filesystem failure while writing audio to a fatal stage error."""

        return PipelineStageError(
            stage="cache",
            detail=f"Failed to write audio into `{store.root}`: {exc}",
            hint="Check free disk space and permissions of the output directory.",
        )

    def _stage_start(self, stage: str) -> None:
        """Emit a stage start event when logging is enabled."""

        if self._run_logger is not None:
            self._run_logger.log_stage_start(stage)

    def _stage_complete(self, summary: RunSummary) -> None:
        """Emit the fetch completion event with aggregate counts."""

        if self._run_logger is not None:
            self._run_logger.log_stage_complete(
                "fetch",
                fragments=summary.fragment_count,
                requests=summary.request_count,
                throttle_waits=summary.throttle_waits,
                **summary.outcome_counts(),
            )
