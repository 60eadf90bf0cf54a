"""
Pickup log stores.

A log store holds the full, newest-first collection of pickup records and
exposes two operations: ``load()`` returns every record and ``save(records)``
replaces the collection, reporting success as a boolean. Read failures are
logged and yield an empty collection.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from pydantic import ValidationError

from pickup_tracker.config import settings
from pickup_tracker.models import PickupRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class LogStore(Protocol):
    """Contract shared by all pickup log stores."""

    def load(self) -> List[PickupRecord]:
        ...

    def save(self, records: Sequence[PickupRecord]) -> bool:
        ...

    def count(self) -> int:
        ...


class JsonFileLogStore:
    """Log store backed by a single JSON document holding an array of records."""

    def __init__(self, path):
        self.path = Path(path)

    def _read_entries(self) -> list:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Error reading pickup logs from %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.error("Pickup log file %s does not contain a list", self.path)
            return []
        return data

    def load(self) -> List[PickupRecord]:
        records = []
        for position, entry in enumerate(self._read_entries()):
            try:
                records.append(PickupRecord.model_validate(entry))
            except ValidationError as e:
                logger.warning("Skipping unreadable pickup log entry %d in %s: %s", position, self.path, e)
        return records

    def save(self, records: Sequence[PickupRecord]) -> bool:
        payload = [record.model_dump(mode="json", by_alias=True) for record in records]
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error("Error saving pickup logs to %s: %s", self.path, e)
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False

    def count(self) -> int:
        return len(self._read_entries())


class InMemoryLogStore:
    """Log store that keeps records in process memory."""

    def __init__(self, records: Optional[Sequence[PickupRecord]] = None):
        self._records = list(records or [])
        self.fail_writes = False

    def load(self) -> List[PickupRecord]:
        return list(self._records)

    def save(self, records: Sequence[PickupRecord]) -> bool:
        if self.fail_writes:
            return False
        self._records = list(records)
        return True

    def count(self) -> int:
        return len(self._records)


def create_log_store(backend: Optional[str] = None) -> LogStore:
    """
    Build the log store selected by configuration.

    Args:
        backend: ``"json"`` or ``"sqlite"``; defaults to ``STORAGE_BACKEND``

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = (backend or settings.STORAGE_BACKEND).lower()
    if backend == "json":
        return JsonFileLogStore(settings.PICKUP_LOG_FILE)
    if backend == "sqlite":
        from pickup_tracker.database import DatabaseLogStore

        return DatabaseLogStore(settings.DATABASE_URL)
    raise ValueError(f"Unknown storage backend: {backend}")


# Singleton instance
_log_store: Optional[LogStore] = None


def get_log_store() -> LogStore:
    """Get singleton log store instance."""
    global _log_store
    if _log_store is None:
        _log_store = create_log_store()
        logger.info("Using %s", type(_log_store).__name__)
    return _log_store
