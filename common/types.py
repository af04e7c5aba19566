"""Shared data type definitions (FileRecord, CopyInfo)."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


# Keys used by documents written by other clients of the same store
RECORD_FIELD_ALIASES = {
    '_id': 'id',
    'collectionName': 'collection_name',
    'chunkCount': 'chunk_count',
    'chunkSum': 'chunk_sum',
    'chunkSize': 'chunk_size',
    'uploadedAt': 'uploaded_at',
}


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp.

    Accepts datetime objects, ISO 8601 strings (a trailing 'Z' is allowed) and
    epoch milliseconds. Anything else yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CopyInfo:
    """
    Details of one derived copy of a file, as saved in a named store.

    Store-specific fields that have no dedicated attribute are kept in `extra`.
    """
    key: Optional[str] = None
    name: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _ALIASES = {
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }

    def is_empty(self) -> bool:
        """True when nothing at all is known about this copy."""
        return not self.extra and all(
            getattr(self, f.name) is None for f in fields(self) if f.name != 'extra'
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CopyInfo':
        known: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = cls._ALIASES.get(raw_key, raw_key)
            if key in ('key', 'name', 'size', 'type'):
                known[key] = value
            elif key in ('created_at', 'updated_at'):
                known[key] = parse_datetime(value)
            else:
                extra[raw_key] = value
        return cls(extra=extra, **known)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        for name in ('key', 'name', 'size', 'type'):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.created_at is not None:
            data['created_at'] = _format_datetime(self.created_at)
        if self.updated_at is not None:
            data['updated_at'] = _format_datetime(self.updated_at)
        return data


@dataclass(frozen=True)
class FileRecord:
    """
    Last-known fields of a file's authoritative record.

    Every field is optional; None means "absent", i.e. not known locally.
    `version` is bumped by the record store on every write.
    """
    id: Optional[str] = None
    collection_name: Optional[str] = None
    name: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None
    utime: Optional[datetime] = None
    chunk_count: Optional[int] = None
    chunk_sum: Optional[int] = None
    chunk_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None
    copies: Optional[Dict[str, CopyInfo]] = None
    version: Optional[int] = None

    _DATETIME_FIELDS = ('utime', 'uploaded_at')

    def merge(self, snapshot: 'FileRecord') -> 'FileRecord':
        """
        Shallow-merge a snapshot into this record.

        Every field present (not None) in `snapshot` overwrites the local
        value; absent fields keep the local value. `copies` is replaced as a
        whole, never merged per store.

        Returns:
            New FileRecord; neither input is modified
        """
        changes = {
            f.name: getattr(snapshot, f.name)
            for f in fields(snapshot)
            if getattr(snapshot, f.name) is not None
        }
        if not changes:
            return self
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FileRecord':
        """
        Build a record from a stored document.

        Accepts snake_case and camelCase keys; unknown keys are ignored.
        """
        field_names = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for raw_key, value in data.items():
            key = RECORD_FIELD_ALIASES.get(raw_key, raw_key)
            if key not in field_names or value is None:
                continue
            if key in cls._DATETIME_FIELDS:
                value = parse_datetime(value)
            elif key == 'copies':
                value = {
                    store_name: info if isinstance(info, CopyInfo) else CopyInfo.from_dict(info or {})
                    for store_name, info in value.items()
                }
            elif key == 'id':
                value = str(value)
            values[key] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize present fields to a JSON-friendly dict."""
        data: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name in self._DATETIME_FIELDS:
                value = _format_datetime(value)
            elif f.name == 'copies':
                value = {store_name: info.to_dict() for store_name, info in value.items()}
            data[f.name] = value
        return data
