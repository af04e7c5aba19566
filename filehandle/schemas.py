"""Pydantic schemas for data returned by collaborators."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from common.types import FileRecord


class RemoteMetadata(BaseModel):
    """Descriptive metadata of a remote file that has not been fetched."""
    type: str
    size: Optional[int] = Field(default=None, ge=0)
    name: Optional[str] = None
    utime: Optional[datetime] = None

    def to_record_fields(self) -> FileRecord:
        return FileRecord(type=self.type, size=self.size, name=self.name, utime=self.utime)
