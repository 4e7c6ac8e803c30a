"""JSON-file backed record store.

Each collection lives in ``<data_dir>/<collection>.json``. Flat collections are
JSON arrays; partitioned collections (properties by city) are objects mapping a
partition key to an array. Every operation reads the whole file, mutates it in
memory and rewrites it in full. There is no locking: two concurrent writers to
the same collection can lose an update (last write wins).
"""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..errors import NotFoundError, ReadOnlyModeError, StorageError
from ..utils.io import load_json, write_json
from ..utils.logging import get_logger

LOGGER = get_logger("db.store")

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]
Normaliser = Callable[[Record], Record]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id(prefix: str) -> str:
    """``<prefix>_<epoch millis>_<9 random base36 chars>``."""

    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class RecordStore:
    def __init__(self, data_dir: Path, read_only: bool = False) -> None:
        self.data_dir = Path(data_dir)
        self.read_only = read_only

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def check_writable(self, operation: str = "write") -> None:
        if self.read_only:
            raise ReadOnlyModeError(operation)

    # ------------------------------------------------------------------
    # Raw documents
    def load_document(self, collection: str, default: Any = None, operation: str = "read", record_id: str = "") -> Any:
        path = self.path_for(collection)
        try:
            return load_json(path, default)
        except (OSError, ValueError) as exc:
            LOGGER.error(
                "read_failed collection=%s op=%s id=%s path=%s error=%s",
                collection,
                operation,
                record_id or "-",
                path,
                exc,
            )
            raise StorageError(f"Could not read {collection}") from exc

    def save_document(self, collection: str, document: Any, operation: str = "write", record_id: str = "") -> None:
        self.check_writable(operation)
        path = self.path_for(collection)
        try:
            write_json(path, document)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.error(
                "write_failed collection=%s op=%s id=%s path=%s error=%s",
                collection,
                operation,
                record_id or "-",
                path,
                exc,
            )
            raise StorageError(f"Could not write {collection}") from exc

    # ------------------------------------------------------------------
    # Reads
    def read_all(self, collection: str, partition: Optional[str] = None) -> List[Record]:
        return self._read_records(collection, partition, "read")

    def _read_records(self, collection: str, partition: Optional[str], operation: str, record_id: str = "") -> List[Record]:
        document = self.load_document(collection, operation=operation, record_id=record_id)
        if document is None:
            return []
        if isinstance(document, dict):
            if partition is None:
                return [record for records in document.values() for record in records]
            key = self._match_partition(document, partition)
            return list(document.get(key, [])) if key is not None else []
        if partition is not None:
            raise StorageError(f"Collection {collection} is not partitioned")
        return list(document)

    def read_partitions(self, collection: str) -> Dict[str, List[Record]]:
        document = self.load_document(collection, operation="read partitions")
        if document is None:
            return {}
        if not isinstance(document, dict):
            raise StorageError(f"Collection {collection} is not partitioned")
        return {key: list(records) for key, records in document.items()}

    def read_filtered(self, collection: str, predicate: Predicate, partition: Optional[str] = None) -> List[Record]:
        return [record for record in self.read_all(collection, partition) if predicate(record)]

    def get(self, collection: str, record_id: str, partition: Optional[str] = None) -> Optional[Record]:
        for record in self._read_records(collection, partition, "get", record_id):
            if record.get("id") == record_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Writes
    def append(
        self,
        collection: str,
        record: Record,
        partition: Optional[str] = None,
        id_prefix: str = "rec",
        stamp_field: Optional[str] = "createdAt",
        record_id: Optional[str] = None,
    ) -> Record:
        self.check_writable("append")
        stored = dict(record)
        stored["id"] = record_id or new_record_id(id_prefix)
        if stamp_field:
            stored[stamp_field] = utc_timestamp()

        document, records = self._open_for_write(collection, partition, True, "append", stored["id"])
        if any(existing.get("id") == stored["id"] for existing in records):
            raise StorageError(f"Duplicate id {stored['id']} in {collection}")
        records.append(stored)
        self.save_document(collection, document, "append", stored["id"])
        LOGGER.info("record_appended collection=%s partition=%s id=%s", collection, partition or "-", stored["id"])
        return stored

    def update(
        self,
        collection: str,
        record_id: str,
        fields: Record,
        partition: Optional[str] = None,
        normalise: Optional[Normaliser] = None,
    ) -> Record:
        """Shallow-merge ``fields`` into the record and rewrite the collection.

        ``normalise`` receives the merged record and returns what should be
        stored; it may raise to abort the update before anything is written.
        """

        self.check_writable("update")
        document, records = self._open_for_write(collection, partition, False, "update", record_id)
        for index, existing in enumerate(records):
            if existing.get("id") == record_id:
                break
        else:
            raise NotFoundError(collection, record_id, partition)

        merged = {**existing, **fields}
        if normalise is not None:
            merged = normalise(merged)
        records[index] = merged
        self.save_document(collection, document, "update", record_id)
        LOGGER.info("record_updated collection=%s partition=%s id=%s", collection, partition or "-", record_id)
        return merged

    def delete(self, collection: str, record_id: str, partition: Optional[str] = None) -> bool:
        self.check_writable("delete")
        document, records = self._open_for_write(collection, partition, False, "delete", record_id)
        remaining = [record for record in records if record.get("id") != record_id]
        if len(remaining) == len(records):
            LOGGER.info("record_delete_noop collection=%s partition=%s id=%s", collection, partition or "-", record_id)
            return False
        records[:] = remaining
        self.save_document(collection, document, "delete", record_id)
        LOGGER.info("record_deleted collection=%s partition=%s id=%s", collection, partition or "-", record_id)
        return True

    # ------------------------------------------------------------------
    def _open_for_write(self, collection: str, partition: Optional[str], create: bool, operation: str, record_id: str):
        """Return ``(document, records)`` where ``records`` is the live list to mutate."""

        default: Any = {} if partition is not None else []
        document = self.load_document(collection, default, operation, record_id)
        if partition is None:
            if not isinstance(document, list):
                raise StorageError(f"Collection {collection} is partitioned; a partition key is required")
            return document, document
        if not isinstance(document, dict):
            raise StorageError(f"Collection {collection} is not partitioned")
        key = self._match_partition(document, partition)
        if key is None:
            key = partition.lower()
            if not create:
                # Unknown partition: hand back a detached list so lookups simply miss.
                return document, []
            document[key] = []
        return document, document[key]

    @staticmethod
    def _match_partition(document: Dict[str, Any], partition: str) -> Optional[str]:
        wanted = partition.strip().lower()
        for key in document:
            if key.lower() == wanted:
                return key
        return None


__all__ = ["RecordStore", "Record", "new_record_id", "utc_timestamp"]
