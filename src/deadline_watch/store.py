"""Deadline store - durable, append-only list of detected deadlines."""

import json
import os
from pathlib import Path
from typing import Optional

from .models import DeadlineRecord
from .observability import logger


class CorruptStoreError(RuntimeError):
    """The backing file exists but does not hold a valid list of deadlines."""


class DeadlineStore:
    """
    Ordered collection of deadline records backed by a single JSON file.

    The in-memory list is the source of truth while running; the file is a
    write-through mirror rewritten in full after every mutation. Records are
    kept in insertion order and never removed.
    """

    DEFAULT_STORE_PATH = "data/deadlines.json"

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or self.DEFAULT_STORE_PATH)
        self._records: list[DeadlineRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> list[DeadlineRecord]:
        """Snapshot of all records in insertion order."""
        return list(self._records)

    def pending(self) -> list[DeadlineRecord]:
        """Records that have not been alerted yet, in insertion order."""
        return [r for r in self._records if not r.notified]

    def load(self) -> list[DeadlineRecord]:
        """
        Load records from the backing file.

        A missing or blank file yields an empty store.

        Raises:
            CorruptStoreError: if the file has content that is not a JSON
                array of deadline records
        """
        if not self.path.exists():
            logger.info(f"No deadline file at {self.path}, starting empty")
            self._records = []
            return self.records

        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read().strip()

        if not content:
            self._records = []
            return self.records

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"{self.path} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise CorruptStoreError(
                f"{self.path} must hold a JSON array, found {type(data).__name__}"
            )

        records = []
        for i, item in enumerate(data):
            try:
                records.append(DeadlineRecord.from_dict(item))
            except ValueError as e:
                raise CorruptStoreError(f"{self.path}: record {i} is invalid: {e}") from e

        self._records = records
        logger.info(
            f"Loaded {len(records)} deadlines from {self.path} "
            f"({len(self.pending())} pending)"
        )
        return self.records

    def append(self, record: DeadlineRecord):
        """
        Add a record at the end and persist before returning.

        If the write fails the record is dropped again and the error propagates.
        """
        self._records.append(record)
        try:
            self._save()
        except OSError:
            self._records.pop()
            raise
        logger.info(f"Stored deadline {record.to_dict()['time']} ({len(self._records)} total)")

    def mark_notified(self, record: DeadlineRecord):
        """
        Flag a stored record as alerted and persist before returning.

        Marking an already-notified record is a no-op.

        Raises:
            KeyError: if the record is not held by this store
        """
        if not any(r is record for r in self._records):
            raise KeyError(f"Deadline not in store: {record.message[:50]!r}")

        if record.notified:
            return

        record.notified = True
        try:
            self._save()
        except OSError:
            record.notified = False
            raise

    def _save(self):
        """Rewrite the whole file through a temporary sibling."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in self._records], f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)
