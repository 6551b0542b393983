"""Unit tests for the audio cache store."""

from __future__ import annotations

from pathlib import Path

import pytest

from deckvoice.io.storage import AudioCacheStore


def test_commit_publishes_staged_bytes(tmp_path: Path) -> None:
    """A committed artifact appears under its final name with all written bytes."""

    store = AudioCacheStore(tmp_path / "audio")
    store.ensure_root()

    sink = store.begin_write("hello.mp3")
    sink.write(b"ID3")
    sink.write(b"DATA")
    assert not store.exists("hello.mp3")

    path = store.commit(sink)

    assert path == tmp_path / "audio" / "hello.mp3"
    assert path.read_bytes() == b"ID3DATA"
    assert store.exists("hello.mp3")
    assert sink.bytes_written == 7
    assert list((tmp_path / "audio").glob("*.part")) == []


def test_abort_leaves_nothing_behind(tmp_path: Path) -> None:
    """Aborting a write removes the sidecar and never creates the final file."""

    store = AudioCacheStore(tmp_path)
    sink = store.begin_write("partial.mp3")
    sink.write(b"trunc")

    store.abort_and_delete(sink)

    assert not store.exists("partial.mp3")
    assert list(tmp_path.iterdir()) == []


def test_commit_never_overwrites_existing_entry(tmp_path: Path) -> None:
    """An existing cache entry is kept and the staged bytes are discarded."""

    store = AudioCacheStore(tmp_path)
    (tmp_path / "taken.mp3").write_bytes(b"original")
    sink = store.begin_write("taken.mp3")
    sink.write(b"replacement")

    with pytest.raises(FileExistsError):
        store.commit(sink)

    assert (tmp_path / "taken.mp3").read_bytes() == b"original"
    assert not (tmp_path / "taken.mp3.part").exists()


def test_sidecars_do_not_count_as_entries(tmp_path: Path) -> None:
    """Only final names mark a fragment as done."""

    store = AudioCacheStore(tmp_path)
    (tmp_path / "stale.mp3.part").write_bytes(b"half")

    assert not store.exists("stale.mp3")


def test_directory_at_artifact_name_counts_as_entry(tmp_path: Path) -> None:
    """Any filesystem entry under the final name marks the fragment as done."""

    store = AudioCacheStore(tmp_path)
    (tmp_path / "cat.mp3").mkdir()

    assert store.exists("cat.mp3")


def test_purge_partials_removes_stale_sidecars(tmp_path: Path) -> None:
    """Sidecars from a killed run are cleaned up; real entries stay."""

    store = AudioCacheStore(tmp_path)
    (tmp_path / "stale.mp3.part").write_bytes(b"half")
    (tmp_path / "kept.mp3").write_bytes(b"full")

    removed = store.purge_partials()

    assert removed == [tmp_path / "stale.mp3.part"]
    assert sorted(path.name for path in tmp_path.iterdir()) == ["kept.mp3"]


def test_purge_partials_tolerates_missing_root(tmp_path: Path) -> None:
    """Purging a directory that does not exist yet is a no-op."""

    assert AudioCacheStore(tmp_path / "missing").purge_partials() == []


def test_ensure_root_creates_nested_directories(tmp_path: Path) -> None:
    """The output directory is created with parents."""

    root = AudioCacheStore(tmp_path / "assets" / "audio").ensure_root()

    assert root.is_dir()
