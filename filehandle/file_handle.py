"""Local, possibly-stale representation of a file and its record."""

import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from common.constants import AUDIO_TYPE_PREFIX, IMAGE_TYPE_PREFIX, VIDEO_TYPE_PREFIX
from common.logging_config import get_logger
from common.types import CopyInfo, FileRecord
from filehandle.attachment import DataAttachmentResolver
from filehandle.chunk_staging import UploadTransport
from filehandle.copies import CopyRegistry, check_content_type
from filehandle.exceptions import NotMountedError
from filehandle.metadata_client import HttpMetadataResolver
from filehandle.payload import DataPayload
from filehandle.record_store import RecordStore
from filehandle.store_registry import StoreRegistry
from filehandle.synchronizer import RecordSynchronizer, SyncContext

logger = get_logger(__name__)


class FileHandle:
    """
    A file as known locally.

    Holds a copy of the last-known record fields, an optional normalized
    payload, and the collaborators needed to refresh, update and remove the
    record. Every accessor refreshes the record first unless the handle is
    kept current by a reactive subscription (see SyncContext).
    """

    def __init__(
        self,
        ref: Union[FileRecord, Mapping[str, Any], None] = None,
        *,
        created_by_transform: bool = False,
        synchronizer: Optional[RecordSynchronizer] = None,
        registry: Optional[StoreRegistry] = None,
        transport: Optional[UploadTransport] = None,
        attachment_resolver: Optional[DataAttachmentResolver] = None,
        sync_context: SyncContext = SyncContext.PULL,
    ):
        """
        Initialize handle.

        Args:
            ref: Record fields to start from (FileRecord or a record document)
            created_by_transform: True if the handle was produced by the record
                store's own read path
            synchronizer: Synchronizer to use; built from `registry` if None
            registry: Store registry, used only when no synchronizer is given
            transport: Upload transport asked to discard staged chunks on removal
            attachment_resolver: Resolver used by attach_data; defaults to one that
                resolves URL metadata over HTTP
            sync_context: Default synchronization context for accessors
        """
        if isinstance(ref, FileRecord):
            self.record = ref
        elif isinstance(ref, Mapping):
            self.record = FileRecord.from_dict(ref)
        else:
            self.record = FileRecord()

        self.created_by_transform = bool(created_by_transform)
        self.synchronizer = synchronizer or RecordSynchronizer(registry)
        self.transport = transport
        self.attachment_resolver = attachment_resolver or DataAttachmentResolver(HttpMetadataResolver())
        self.sync_context = sync_context
        self.payload: Optional[DataPayload] = None
        self.bound_store: Optional[RecordStore] = None
        self.copy_registry = CopyRegistry(self)

    @classmethod
    async def from_source(cls, data: Any, type: Optional[str] = None, **kwargs) -> 'FileHandle':
        """
        Create a detached handle and attach data to it.

        Args:
            data: Data to attach (see attach_data)
            type: Optional content type hint
            **kwargs: Passed to the constructor

        Returns:
            Handle with payload and descriptive fields set
        """
        handle = cls(**kwargs)
        await handle.attach_data(data, type=type)
        return handle

    # Record fields

    @property
    def id(self) -> Optional[str]:
        return self.record.id

    @property
    def collection_name(self) -> Optional[str]:
        return self.record.collection_name

    @property
    def name(self) -> Optional[str]:
        return self.record.name

    @property
    def size(self) -> Optional[int]:
        return self.record.size

    @property
    def type(self) -> Optional[str]:
        return self.record.type

    @property
    def utime(self) -> Optional[datetime]:
        return self.record.utime

    @property
    def chunk_count(self) -> Optional[int]:
        return self.record.chunk_count

    @property
    def chunk_sum(self) -> Optional[int]:
        return self.record.chunk_sum

    @property
    def copies(self) -> Optional[Dict[str, CopyInfo]]:
        return self.record.copies

    @property
    def version(self) -> Optional[int]:
        return self.record.version

    def to_record(self) -> FileRecord:
        return self.record

    # Data

    async def attach_data(self, data: Any, type: Optional[str] = None) -> None:
        """
        Attach data and set the descriptive fields that can be learned from it.

        Native files contribute name, size and timestamp; raw buffers size and
        "now"; URLs whatever the remote metadata resolver reports. The handle's
        type becomes the payload's resolved type. Completes exactly once, by
        returning or raising, whichever branch is taken.

        Args:
            data: NativeFile, RawBuffer, RemoteURL, Untyped, a path, a URL
                string, bytes or any other value
            type: Optional content type hint

        Raises:
            MetadataFetchError: If data is a URL whose metadata cannot be
                resolved; the handle is left unchanged
        """
        attachment = await self.attachment_resolver.resolve(data, type=type)
        self.record = replace(self.record.merge(attachment.fields), type=attachment.content_type)
        self.payload = attachment.payload

    # Synchronization

    def get_store(self) -> Optional[RecordStore]:
        """Return the store this handle is mounted in, or None."""
        return self.synchronizer.resolve_store(self)

    def is_mounted(self) -> bool:
        return bool(self.id) and self.get_store() is not None

    def controlled_by_deps(self, context: Optional[SyncContext] = None) -> bool:
        return self.synchronizer.is_controlled(self, context or self.sync_context)

    def refresh(self, context: Optional[SyncContext] = None) -> FileRecord:
        """
        Make sure the record fields are current.

        Returns:
            Record snapshot; empty when the handle is not mounted or the
            record was not found
        """
        return self.synchronizer.refresh(self, context or self.sync_context)

    get_file_record = refresh

    # Queries

    def upload_progress(self) -> Optional[Union[int, float]]:
        """
        Server-confirmed upload progress in percent.

        Returns:
            None if the handle is not mounted; NaN if the chunk counters are
            missing or chunk_sum is 0; otherwise the percentage rounded half up
        """
        if not self.is_mounted():
            return None

        self.refresh()

        if not self.chunk_sum or self.chunk_count is None:
            return float('nan')
        return math.floor(self.chunk_count / self.chunk_sum * 100 + 0.5)

    def is_uploaded(self) -> bool:
        self.refresh()
        return self.chunk_count == self.chunk_sum

    def get_extension(self) -> str:
        """
        Lower-cased file extension, e.g. 'jpg', or '' if there is none.
        """
        self.refresh()
        name = self.name
        if not name:
            return ''
        found = name.rfind('.') + 1
        return name[found:].lower() if found > 0 else ''

    def has_copy(self, store_name: Any, optimistic: bool = False) -> bool:
        return self.copy_registry.has_copy(store_name, optimistic)

    def get_copy_info(self, store_name: str) -> Optional[CopyInfo]:
        return self.copy_registry.get_copy_info(store_name)

    def is_image(self, store: Optional[str] = None) -> bool:
        """
        True if the copy in `store` has an image content type. Without a store,
        or when the store has no copy, the original file's type is checked.
        """
        return check_content_type(self, store, IMAGE_TYPE_PREFIX)

    def is_video(self, store: Optional[str] = None) -> bool:
        return check_content_type(self, store, VIDEO_TYPE_PREFIX)

    def is_audio(self, store: Optional[str] = None) -> bool:
        return check_content_type(self, store, AUDIO_TYPE_PREFIX)

    # Mutations

    def update(self, modifier: Mapping[str, Any], options: Optional[Mapping[str, Any]] = None) -> Optional[int]:
        """
        Update the file record in its store.

        Args:
            modifier: Update modifier, e.g. {"$set": {"name": "new.jpg"}}
            options: Store-specific update options

        Returns:
            Number of records affected, or None if the handle is not mounted

        Raises:
            InvalidModifierError: If the store rejects the modifier
            RecordStoreError: If the store write fails
        """
        logger.debug(f"Updating file [id={self.id}] modifier={modifier}")
        if not self.is_mounted():
            logger.warning(f"Update skipped, file is not mounted [id={self.id}]")
            return None

        count = self.bound_store.update(self.id, modifier, options)
        # A subscribed handle receives the change on its own
        if count > 0 and not self.controlled_by_deps():
            self.refresh()
        return count

    def remove(self) -> int:
        """
        Remove the file record from its store.

        Staged chunks are discarded first. On success the id, collection name,
        payload and store reference are cleared; other record fields keep
        their last-known values.

        Returns:
            Number of records removed

        Raises:
            NotMountedError: If the handle is not mounted; nothing is changed
            RecordStoreError: If the store removal fails
        """
        if not self.is_mounted():
            raise NotMountedError("Cannot remove a file that is not associated with a record store")

        if self.transport is not None:
            self.transport.discard_staged_chunks(self)

        removed = self.bound_store.remove(self.id)
        logger.info(f"Removed file [store={self.collection_name}, id={self.id}]")

        self.record = replace(self.record, id=None, collection_name=None)
        self.payload = None
        self.bound_store = None
        return removed

    def __repr__(self) -> str:
        return f"<FileHandle(id={self.id}, name={self.name}, collection={self.collection_name})>"
