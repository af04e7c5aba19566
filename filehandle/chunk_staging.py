"""Staging area for upload chunks that have not been assembled yet."""

import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from common.constants import STAGED_CHUNK_SUFFIX
from common.logging_config import get_logger
from filehandle import config

if TYPE_CHECKING:
    from filehandle.file_handle import FileHandle

logger = get_logger(__name__)


class UploadTransport(ABC):
    """The part of the upload transport a file handle talks to."""

    @abstractmethod
    def discard_staged_chunks(self, handle: 'FileHandle') -> int:
        """
        Delete any chunk data staged for a handle.

        Returns:
            Number of chunks deleted
        """


class LocalChunkStaging(UploadTransport):
    """
    Keeps staged chunks on local disk.

    Layout: <root>/<collection_name>/<file_id>/<chunk_index>.chunk
    """

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or config.STAGING_PATH)

    def get_chunk_dir(self, collection_name: str, file_id: str) -> Path:
        return self.root / collection_name / file_id

    def get_chunk_path(self, collection_name: str, file_id: str, chunk_index: int) -> Path:
        """
        Get file path for a staged chunk.

        Args:
            collection_name: Store the file is mounted in
            file_id: Id of the file record
            chunk_index: Zero-based chunk position

        Returns:
            Path object for the chunk file
        """
        return self.get_chunk_dir(collection_name, file_id) / f"{chunk_index}{STAGED_CHUNK_SUFFIX}"

    def stage_chunk(self, collection_name: str, file_id: str, chunk_index: int, data: bytes) -> str:
        """
        Write chunk data to the staging area.

        Returns:
            String path to written file

        Raises:
            OSError: If write operation fails
        """
        filepath = self.get_chunk_path(collection_name, file_id, chunk_index)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_bytes(data)
        return str(filepath)

    def staged_chunk_indexes(self, collection_name: str, file_id: str) -> List[int]:
        chunk_dir = self.get_chunk_dir(collection_name, file_id)
        if not chunk_dir.is_dir():
            return []
        indexes = []
        for path in chunk_dir.glob(f"*{STAGED_CHUNK_SUFFIX}"):
            stem = path.name[:-len(STAGED_CHUNK_SUFFIX)]
            if stem.isdigit():
                indexes.append(int(stem))
        return sorted(indexes)

    def discard_staged_chunks(self, handle: 'FileHandle') -> int:
        if not handle.id or not handle.collection_name:
            return 0

        chunk_dir = self.get_chunk_dir(handle.collection_name, handle.id)
        if not chunk_dir.is_dir():
            return 0

        count = len(self.staged_chunk_indexes(handle.collection_name, handle.id))
        shutil.rmtree(chunk_dir)
        logger.info(f"Discarded {count} staged chunks [store={handle.collection_name}, id={handle.id}]")
        return count
