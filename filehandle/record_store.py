"""Record stores holding the authoritative file records."""

import json
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from common.logging_config import get_logger
from common.types import RECORD_FIELD_ALIASES, FileRecord
from filehandle.database import get_db_connection, init_database
from filehandle.exceptions import InvalidModifierError, RecordStoreError
from filehandle.modifier import apply_modifier
from filehandle.utils import generate_uuid, utc_now

logger = get_logger(__name__)


class RecordStore(ABC):
    """A named collection of file records supporting point operations by id."""

    name: str

    @abstractmethod
    def find_one(self, record_id: str) -> Optional[FileRecord]:
        """Return the record with the given id, or None."""

    @abstractmethod
    def update(self, record_id: str, modifier: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> int:
        """Apply a modifier to one record and return the number of records affected."""

    @abstractmethod
    def remove(self, record_id: str) -> int:
        """Remove one record and return the number of records removed."""


def _check_invariants(record: FileRecord) -> None:
    for field_name in ('chunk_count', 'chunk_sum', 'size'):
        value = getattr(record, field_name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidModifierError(f"{field_name} must be an integer (got {value!r})")
        if value < 0:
            raise InvalidModifierError(f"{field_name} must not be negative (got {value})")
    if record.chunk_count is not None and record.chunk_sum is not None:
        if record.chunk_count > record.chunk_sum:
            raise InvalidModifierError(
                f"chunk_count ({record.chunk_count}) cannot exceed chunk_sum ({record.chunk_sum})"
            )


class SQLiteRecordStore(RecordStore):
    """
    Record store persisting records as JSON documents in SQLite.

    All records of this store share the `collection_name` equal to the store
    name; several stores may live in the same database file.
    """

    def __init__(self, name: str, db_path: Optional[str] = None):
        """
        Initialize store and create its table if needed.

        Args:
            name: Collection name handles use to find this store
            db_path: SQLite database path (config default if None)
        """
        self.name = name
        self.db_path = db_path
        init_database(db_path)

    def _load(self, cursor: sqlite3.Cursor, record_id: str) -> Optional[Dict[str, Any]]:
        cursor.execute(
            "SELECT document, version FROM records WHERE collection_name = ? AND record_id = ?",
            (self.name, record_id)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        document = json.loads(row["document"])
        document["version"] = row["version"]
        return document

    def _to_document(self, record: FileRecord) -> Dict[str, Any]:
        document = record.to_dict()
        document.pop("version", None)
        return document

    def insert(self, record: FileRecord) -> FileRecord:
        """
        Mount a record in this store.

        Assigns an id when the record has none, stamps the collection name
        and starts the version at 1.

        Returns:
            The stored record

        Raises:
            RecordStoreError: If a record with the same id exists or the write fails
        """
        stored = record.merge(FileRecord(
            id=record.id or generate_uuid(),
            collection_name=self.name,
            version=1,
        ))
        _check_invariants(stored)

        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO records (collection_name, record_id, document, version, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (self.name, stored.id, json.dumps(self._to_document(stored)), 1, utc_now().isoformat())
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise RecordStoreError(f"Record {stored.id} already exists in {self.name}") from e
        except sqlite3.Error as e:
            logger.error(f"Failed to insert record [store={self.name}, id={stored.id}]: {e}", exc_info=True)
            raise RecordStoreError(str(e)) from e

        logger.info(f"Record mounted [store={self.name}, id={stored.id}]")
        return stored

    def find_one(self, record_id: str) -> Optional[FileRecord]:
        try:
            with get_db_connection(self.db_path) as conn:
                document = self._load(conn.cursor(), record_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to read record [store={self.name}, id={record_id}]: {e}", exc_info=True)
            raise RecordStoreError(str(e)) from e

        if document is None:
            return None
        return FileRecord.from_dict(document)

    def update(self, record_id: str, modifier: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> int:
        """
        Apply a modifier ($set, $unset, $inc or a replacement document).

        Args:
            record_id: Id of the record to update
            modifier: Update modifier
            options: {"upsert": True} creates the record when it is missing

        Returns:
            1 if a record was written, 0 if none matched

        Raises:
            InvalidModifierError: If the modifier is malformed or breaks an invariant
            RecordStoreError: If the write fails
        """
        options = options or {}
        logger.debug(f"Updating record [store={self.name}, id={record_id}] modifier={modifier}")

        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.cursor()
                current = self._load(cursor, record_id)

                if current is None:
                    if not options.get("upsert"):
                        return 0
                    current = {"id": record_id, "collection_name": self.name, "version": 0}

                version = current.pop("version", 0)
                updated = FileRecord.from_dict(apply_modifier(current, modifier, RECORD_FIELD_ALIASES))
                updated = updated.merge(FileRecord(id=record_id, collection_name=self.name))
                _check_invariants(updated)

                cursor.execute(
                    """
                    INSERT OR REPLACE INTO records (collection_name, record_id, document, version, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (self.name, record_id, json.dumps(self._to_document(updated)), version + 1, utc_now().isoformat())
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update record [store={self.name}, id={record_id}]: {e}", exc_info=True)
            raise RecordStoreError(str(e)) from e

        return 1

    def remove(self, record_id: str) -> int:
        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "DELETE FROM records WHERE collection_name = ? AND record_id = ?",
                    (self.name, record_id)
                )
                conn.commit()
                removed = cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Failed to remove record [store={self.name}, id={record_id}]: {e}", exc_info=True)
            raise RecordStoreError(str(e)) from e

        logger.info(f"Record removed [store={self.name}, id={record_id}, count={removed}]")
        return removed

    def count(self) -> int:
        try:
            with get_db_connection(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) FROM records WHERE collection_name = ?", (self.name,))
                return cursor.fetchone()[0]
        except sqlite3.Error as e:
            raise RecordStoreError(str(e)) from e
