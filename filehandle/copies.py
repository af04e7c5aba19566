"""Read-only access to the derived copies of a file."""

from typing import TYPE_CHECKING, Any, List, Optional

from common.types import CopyInfo

if TYPE_CHECKING:
    from filehandle.file_handle import FileHandle


class CopyRegistry:
    """Answers questions about a handle's copies, refreshing the handle first."""

    def __init__(self, handle: 'FileHandle'):
        self._handle = handle

    def has_copy(self, store_name: Any, optimistic: bool = False) -> bool:
        """
        Check whether a copy exists in a store.

        When no copies are known locally (the record is not published here or
        not found) existence cannot be decided, so `optimistic` is returned.
        Once copy data exists, only literal presence counts.

        Args:
            store_name: Name of the store to check
            optimistic: Value to return while copies are unknown

        Returns:
            True if the copy exists (or is assumed to)
        """
        self._handle.refresh()
        copies = self._handle.record.copies
        if not copies:
            return bool(optimistic)
        if isinstance(store_name, str):
            info = copies.get(store_name)
            return info is not None and not info.is_empty()
        return False

    def get_copy_info(self, store_name: str) -> Optional[CopyInfo]:
        """
        Get details (key, name, size, type...) of the copy saved in a store.

        Returns:
            CopyInfo, or None if no such copy is known
        """
        self._handle.refresh()
        copies = self._handle.record.copies or {}
        return copies.get(store_name)

    def store_names(self) -> List[str]:
        self._handle.refresh()
        copies = self._handle.record.copies or {}
        return [name for name, info in copies.items() if not info.is_empty()]


def check_content_type(handle: 'FileHandle', store_name: Optional[str], start_of_type: str) -> bool:
    """
    Test a content type prefix against a copy's type, or the original's type
    when no store is given or the store has no copy.
    """
    if store_name and handle.has_copy(store_name):
        type_ = handle.record.copies[store_name].type
    else:
        type_ = handle.record.type
    if isinstance(type_, str):
        return type_.startswith(start_of_type)
    return False
