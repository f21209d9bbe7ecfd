"""Write-ahead staging area for in-flight submissions.

Each accepted submission is written to its own artifact before it is
merged into the record store and deleted right after. An artifact that
survives a restart therefore marks a submission that was staged but may
not have been merged.

Artifact names are ``<source-tag>_<arrival-ms>_<token>.json``: the source
tag lets the sweeper find a source's leftovers without reading them, and
the random token keeps concurrent submissions from colliding.
"""

from __future__ import annotations

import hashlib
import logging
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from pyagg._constants import STAGING_SUFFIX
from pyagg._redact import summarize_for_log
from pyagg.codec import parse_reading, serialize_reading
from pyagg.exceptions import AggStorageError
from pyagg.models.reading import Reading

_logger = logging.getLogger(__name__)


def source_tag(source_id: str) -> str:
    """Filesystem-safe, fixed-length tag for a source id."""
    return hashlib.md5(source_id.encode("utf-8")).hexdigest()[:16]  # noqa: S324


@dataclass(frozen=True)
class StagingArtifact:
    """A staged submission on disk."""

    path: Path
    modified_at: float

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def source_tag(self) -> str:
        return self.path.name.split("_", 1)[0]


class StagingArea:
    """Directory of staging artifacts. Needs no cross-submission locking."""

    def __init__(self, directory: Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def ensure(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise AggStorageError(f"Cannot create staging directory: {exc}", path=self._dir) from exc

    def stage(self, reading: Reading, *, token: str | None = None) -> StagingArtifact:
        """Durably write *reading* to a new uniquely named artifact.

        A partially written file is removed before the error is raised.
        """
        token = token or secrets.token_hex(8)
        arrival_ms = int(time.time() * 1000)
        path = self._dir / f"{source_tag(reading.id)}_{arrival_ms}_{token}{STAGING_SUFFIX}"
        try:
            with path.open("x", encoding="utf-8") as fh:
                fh.write(serialize_reading(reading))
                fh.flush()
                os.fsync(fh.fileno())
            modified_at = path.stat().st_mtime
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise AggStorageError(f"Failed to stage reading for {reading.id}: {exc}", path=path) from exc

        _logger.debug("Staged %s reading=%s", path.name, summarize_for_log(reading))
        return StagingArtifact(path=path, modified_at=modified_at)

    def read(self, artifact: StagingArtifact) -> Reading:
        """Parse an artifact back into a reading.

        Raises :class:`~pyagg.exceptions.ReadingParseError` for corrupt content
        and :class:`AggStorageError` when the file cannot be read.
        """
        try:
            text = artifact.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AggStorageError(f"Failed to read {artifact.name}: {exc}", path=artifact.path) from exc
        return parse_reading(text)

    def discard(self, artifact: StagingArtifact | Path) -> bool:
        """Delete an artifact. Returns ``False`` if it was already gone."""
        path = artifact.path if isinstance(artifact, StagingArtifact) else artifact
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise AggStorageError(f"Failed to delete {path.name}: {exc}", path=path) from exc
        _logger.debug("Discarded staging artifact %s", path.name)
        return True

    def scan(self) -> list[StagingArtifact]:
        """All artifacts currently present, in no particular order."""
        return self._collect(f"*{STAGING_SUFFIX}")

    def artifacts_for(self, source_id: str) -> list[StagingArtifact]:
        return self._collect(f"{source_tag(source_id)}_*{STAGING_SUFFIX}")

    def _collect(self, pattern: str) -> list[StagingArtifact]:
        if not self._dir.is_dir():
            return []
        artifacts: list[StagingArtifact] = []
        for path in self._dir.glob(pattern):
            try:
                modified_at = path.stat().st_mtime
            except FileNotFoundError:
                # Deleted by a concurrent merge between glob and stat.
                continue
            artifacts.append(StagingArtifact(path=path, modified_at=modified_at))
        return artifacts
