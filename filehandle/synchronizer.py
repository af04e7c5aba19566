"""Keeps a handle's record fields in step with its record store."""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from common.logging_config import get_logger
from common.types import FileRecord
from filehandle.record_store import RecordStore
from filehandle.store_registry import StoreRegistry

if TYPE_CHECKING:
    from filehandle.file_handle import FileHandle

logger = get_logger(__name__)


class SyncContext(str, Enum):
    """How far the caller's environment can be trusted to keep fields current."""
    PULL = "pull"
    TRUST_CURRENT = "trust_current"


class RecordSynchronizer:
    """
    Pulls fresh record snapshots for handles, unless a reactive subscription
    already keeps them current.
    """

    def __init__(self, registry: Optional[StoreRegistry] = None):
        self.registry = registry if registry is not None else StoreRegistry()

    def is_controlled(self, handle: 'FileHandle', context: SyncContext) -> bool:
        """
        True if the handle came from the store's read path and the caller runs
        inside an active subscription, so its fields are already current.
        """
        return handle.created_by_transform and context == SyncContext.TRUST_CURRENT

    def resolve_store(self, handle: 'FileHandle') -> Optional[RecordStore]:
        """
        Find the store a handle is mounted in.

        Returns None when the handle has no collection name (not mounted yet)
        or no store is registered under it.
        """
        if handle.bound_store is not None and handle.bound_store.name == handle.collection_name:
            return handle.bound_store

        if not handle.collection_name:
            return None

        store = self.registry.get(handle.collection_name)
        handle.bound_store = store
        return store

    def refresh(self, handle: 'FileHandle', context: SyncContext = SyncContext.PULL) -> FileRecord:
        """
        Bring the handle's fields up to date.

        Args:
            handle: Handle to refresh
            context: Synchronization context of the caller

        Returns:
            The snapshot merged into the handle; an empty FileRecord when the
            record was not found or no store could be resolved

        Raises:
            RecordStoreError: If the store query itself fails
        """
        if self.is_controlled(handle, context):
            return handle.record

        store = self.resolve_store(handle)
        if store is None or not handle.id:
            # Callers may still do refresh().size without an error
            return FileRecord()

        logger.debug(f"Pulling file record [store={store.name}, id={handle.id}]")
        snapshot = store.find_one(handle.id)
        if snapshot is None:
            return FileRecord()

        handle.record = handle.record.merge(snapshot)
        return snapshot
