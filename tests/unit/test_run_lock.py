"""Unit tests for the output directory run lock."""

from __future__ import annotations

from pathlib import Path

import pytest

from deckvoice.io.run_lock import LOCK_FILE_NAME, RunLockError, output_dir_lock


def test_second_lock_on_same_directory_is_refused(tmp_path: Path) -> None:
    """Only one run may hold the output directory at a time."""

    with output_dir_lock(tmp_path) as lock_path:
        assert lock_path == tmp_path / LOCK_FILE_NAME
        with pytest.raises(RunLockError, match="Another run"):
            with output_dir_lock(tmp_path):
                pass


def test_lock_is_released_after_block(tmp_path: Path) -> None:
    """The lock can be taken again once the holder exits."""

    with output_dir_lock(tmp_path):
        pass
    with output_dir_lock(tmp_path):
        pass
