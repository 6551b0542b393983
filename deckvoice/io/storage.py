"""Audio cache storage.

Responsibilities:
- Treat the presence of a file in the output directory as "already done".
- Stage writes in a `.part` sidecar and publish them with an atomic rename.
- Guarantee that aborted writes never leave a file under the final name.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
import os
from pathlib import Path
from typing import BinaryIO

from ..config import PARTIAL_SUFFIX


@dataclass(slots=True)
class PendingArtifact:
    """Writable sink for one artifact that is not yet visible in the cache."""

    name: str
    final_path: Path
    partial_path: Path
    handle: BinaryIO
    bytes_written: int = 0

    def write(self, data: bytes) -> None:
        """Append a chunk of audio bytes to the staged artifact."""

        self.handle.write(data)
        self.bytes_written += len(data)

    def close(self) -> None:
        """Close the staging handle if still open."""

        if not self.handle.closed:
            self.handle.close()


class AudioCacheStore:
    """Filesystem-backed cache of synthesized audio keyed by artifact name."""

    def __init__(self, root: Path) -> None:
        """Initialize the store with its output directory."""

        self.root = root

    def ensure_root(self) -> Path:
        """Create the output directory, parents included, and return it."""

        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def path_for(self, artifact_name: str) -> Path:
        """Return the final cache path for an artifact name."""

        return self.root / artifact_name

    def exists(self, artifact_name: str) -> bool:
        """Return whether any entry already occupies this artifact name."""

        return self.path_for(artifact_name).exists()

    def begin_write(self, artifact_name: str) -> PendingArtifact:
        """Open a staging sidecar for a new artifact."""

        final_path = self.path_for(artifact_name)
        partial_path = final_path.with_name(final_path.name + PARTIAL_SUFFIX)
        handle = partial_path.open("wb")
        return PendingArtifact(
            name=artifact_name,
            final_path=final_path,
            partial_path=partial_path,
            handle=handle,
        )

    def commit(self, sink: PendingArtifact) -> Path:
        """Publish a staged artifact under its final name.

        Raises:
            FileExistsError: If an artifact was committed under the same name
                in the meantime; the staged bytes are discarded.
        """

        sink.handle.flush()
        os.fsync(sink.handle.fileno())
        sink.close()
        if sink.final_path.exists():
            self._remove_partial(sink)
            raise FileExistsError(f"Cache entry already exists: `{sink.final_path}`.")
        os.replace(sink.partial_path, sink.final_path)
        return sink.final_path

    def abort_and_delete(self, sink: PendingArtifact) -> None:
        """Discard a staged artifact so nothing is left behind for its name."""

        sink.close()
        self._remove_partial(sink)

    def purge_partials(self) -> list[Path]:
        """Remove stale sidecars left by interrupted runs and return them."""

        if not self.root.is_dir():
            return []
        removed: list[Path] = []
        for partial_path in sorted(self.root.glob(f"*{PARTIAL_SUFFIX}")):
            with contextlib.suppress(FileNotFoundError):
                partial_path.unlink()
                removed.append(partial_path)
        return removed

    @staticmethod
    def _remove_partial(sink: PendingArtifact) -> None:
        """Delete the staging file if it is still present."""

        with contextlib.suppress(FileNotFoundError):
            sink.partial_path.unlink()
