"""Normalizes arbitrary input data into a typed payload."""

from dataclasses import dataclass
from typing import Any, Optional

from common.logging_config import get_logger
from common.types import FileRecord
from filehandle.exceptions import MetadataFetchError
from filehandle.metadata_client import RemoteMetadataResolver
from filehandle.payload import DataPayload
from filehandle.sources import NativeFile, RawBuffer, RemoteURL, detect_source
from filehandle.utils import utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class Attachment:
    """
    Result of resolving attached data.

    Attributes:
        payload: Normalized payload
        content_type: Resolved content type (may differ from the caller's hint)
        fields: Descriptive record fields learned from the source
    """
    payload: DataPayload
    content_type: Optional[str]
    fields: FileRecord


class DataAttachmentResolver:
    """Turns native files, buffers, URLs or untyped data into an Attachment."""

    def __init__(self, metadata_resolver: Optional[RemoteMetadataResolver] = None):
        self.metadata_resolver = metadata_resolver

    async def resolve(self, data: Any, type: Optional[str] = None) -> Attachment:
        """
        Resolve data into a payload and content type.

        Args:
            data: A source variant, a path, a URL string or any other value
            type: Optional content type hint

        Returns:
            Attachment describing the data

        Raises:
            MetadataFetchError: If data is a URL and its metadata cannot be
                resolved; errors from the metadata resolver propagate unchanged
        """
        source = detect_source(data)

        if isinstance(source, NativeFile):
            fields = FileRecord(name=source.name, size=source.size, utime=source.last_modified)
            content_type = source.type
        elif isinstance(source, RawBuffer):
            fields = FileRecord(size=len(source.data), utime=utc_now())
            content_type = source.type or type
        elif isinstance(source, RemoteURL):
            # Type is needed for filtering, so ask for metadata before finalizing
            if self.metadata_resolver is None:
                raise MetadataFetchError("No metadata resolver configured", url=source.url)
            logger.debug(f"Fetching metadata for {source.url}")
            metadata = await self.metadata_resolver.fetch_metadata(source.url)
            fields = metadata.to_record_fields()
            content_type = fields.type
        else:
            fields = FileRecord()
            content_type = type

        payload = DataPayload(source, content_type)
        return Attachment(payload=payload, content_type=payload.type, fields=fields)
