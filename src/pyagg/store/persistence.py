"""Main store file.

The committed contents of the record store, one JSON record per line in
insertion order. The file is always rewritten whole, through a temporary
file and :func:`os.replace`, so a crash leaves either the old or the new
version on disk.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from pydantic import ValidationError

from pyagg.exceptions import AggStorageError
from pyagg.models.record import Record
from pyagg.store.records import RecordStore

_logger = logging.getLogger(__name__)


class MainStoreFile:
    """Flat-file snapshot of a :class:`RecordStore`."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> tuple[list[Record], int]:
        """Read all records. Returns ``(records, corrupt_line_count)``.

        A missing file is an empty store. Lines that fail to parse are
        logged and skipped.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return [], 0
        except OSError as exc:
            raise AggStorageError(f"Failed to read main store file: {exc}", path=self._path) from exc

        records: list[Record] = []
        corrupt = 0
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(Record.model_validate_json(line))
            except ValidationError:
                corrupt += 1
                _logger.warning("Skipping corrupt line %d in %s", lineno, self._path.name)
        return records, corrupt

    def write(self, records: list[Record]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                for record in records:
                    fh.write(record.model_dump_json())
                    fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self._path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise AggStorageError(f"Failed to write main store file: {exc}", path=self._path) from exc

    def save(self, store: RecordStore) -> None:
        """Snapshot *store* and write it.

        The snapshot is taken under this file's own lock, so concurrent
        saves land in order and the last one written is the newest state.
        """
        with self._lock:
            records = store.snapshot()
            self.write(records)
        _logger.debug("Saved %d records to %s", len(records), self._path.name)
