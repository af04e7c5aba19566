"""Shared pytest fixtures for all tests."""

from typing import Dict, List, Optional

import pytest

from common.types import FileRecord
from filehandle.attachment import DataAttachmentResolver
from filehandle.chunk_staging import LocalChunkStaging
from filehandle.exceptions import MetadataFetchError
from filehandle.file_handle import FileHandle
from filehandle.metadata_client import RemoteMetadataResolver
from filehandle.record_store import SQLiteRecordStore
from filehandle.schemas import RemoteMetadata
from filehandle.store_registry import StoreRegistry
from filehandle.synchronizer import RecordSynchronizer


class FakeMetadataResolver(RemoteMetadataResolver):
    """Metadata resolver answering from a dict of URL -> metadata."""

    def __init__(self, answers: Optional[Dict[str, RemoteMetadata]] = None):
        self.answers = answers or {}
        self.calls: List[str] = []

    async def fetch_metadata(self, url: str) -> RemoteMetadata:
        self.calls.append(url)
        if url not in self.answers:
            raise MetadataFetchError("Not found", url=url, status_code=404)
        return self.answers[url]


@pytest.fixture
def db_path(tmp_path):
    """
    Path of a temporary SQLite database.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        String path to test database file
    """
    return str(tmp_path / 'records.db')


@pytest.fixture
def images_store(db_path):
    """Record store named 'Images'."""
    return SQLiteRecordStore('Images', db_path=db_path)


@pytest.fixture
def registry(images_store):
    """Registry with the 'Images' store registered."""
    return StoreRegistry([images_store])


@pytest.fixture
def synchronizer(registry):
    return RecordSynchronizer(registry)


@pytest.fixture
def staging(tmp_path):
    """Chunk staging area under a temporary directory."""
    return LocalChunkStaging(str(tmp_path / 'staging'))


@pytest.fixture
def metadata_resolver():
    return FakeMetadataResolver({
        'https://example.com/photos/cat.jpg': RemoteMetadata(type='image/jpeg', size=2048, name='cat.jpg'),
    })


@pytest.fixture
def mounted_handle(images_store, synchronizer, staging):
    """
    Handle mounted in 'Images' for the record used across scenarios.

    Returns:
        FileHandle with id '42'
    """
    images_store.insert(FileRecord.from_dict({
        'id': '42',
        'name': 'cat.jpg',
        'type': 'image/jpeg',
        'chunkCount': 3,
        'chunkSum': 3,
        'copies': {'thumb': {'type': 'image/jpeg'}},
    }))
    return FileHandle(
        {'_id': '42', 'collectionName': 'Images'},
        synchronizer=synchronizer,
        transport=staging,
    )


@pytest.fixture
def detached_handle(synchronizer, metadata_resolver):
    """Handle that is not mounted in any store."""
    return FileHandle(
        synchronizer=synchronizer,
        attachment_resolver=DataAttachmentResolver(metadata_resolver),
    )
