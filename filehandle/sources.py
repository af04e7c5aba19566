"""Tagged variants describing where attached data comes from."""

import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Optional, Union

from filehandle.utils import is_remote_url


@dataclass(frozen=True)
class NativeFile:
    """A file that carries its own name, size, timestamp and declared type."""

    name: str
    size: int
    last_modified: datetime
    type: Optional[str] = None
    content: Any = None
    kind: Literal["native"] = "native"

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> 'NativeFile':
        """
        Describe a local file.

        Args:
            path: Path to an existing regular file

        Returns:
            NativeFile whose content is the resolved Path

        Raises:
            FileNotFoundError: If the path does not exist
        """
        file_path = Path(path)
        stat = file_path.stat()
        declared_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            size=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            type=declared_type,
            content=file_path.resolve(),
        )


@dataclass(frozen=True)
class RawBuffer:
    """Binary data without a filename, optionally with a declared type."""

    data: bytes
    type: Optional[str] = None
    kind: Literal["buffer"] = "buffer"


@dataclass(frozen=True)
class RemoteURL:
    """An http(s) URL whose content has not been fetched."""

    url: str
    kind: Literal["url"] = "url"


@dataclass(frozen=True)
class Untyped:
    """Anything else: byte arrays, buffers, plain strings, data URIs."""

    data: Any
    kind: Literal["untyped"] = "untyped"


DataSource = Union[NativeFile, RawBuffer, RemoteURL, Untyped]


def detect_source(data: Any) -> DataSource:
    """
    Classify raw input into one of the source variants.

    Variants pass through unchanged, path-like objects become NativeFile,
    strings starting with http:/https: become RemoteURL, everything else is
    Untyped.
    """
    if isinstance(data, (NativeFile, RawBuffer, RemoteURL, Untyped)):
        return data
    if isinstance(data, os.PathLike):
        return NativeFile.from_path(data)
    if isinstance(data, str) and is_remote_url(data):
        return RemoteURL(data)
    return Untyped(data)
