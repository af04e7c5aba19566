"""Normalized in-memory payload attached to a file handle."""

import mimetypes
import re
from pathlib import PurePath
from typing import Any, Optional
from urllib.parse import urlparse

from common.constants import SNIFF_SAMPLE_BYTES
from filehandle.sources import DataSource, NativeFile, RawBuffer, RemoteURL, Untyped

DATA_URI_PATTERN = re.compile(r'^data:([\w.+-]+/[\w.+-]+)?(;[^,]*)?,', re.IGNORECASE)


def sniff_bytes(sample: bytes) -> Optional[str]:
    """
    Guess a content type from the leading bytes of binary data.

    Args:
        sample: First bytes of the content

    Returns:
        MIME type string, or None if the signature is not recognized
    """
    if not sample:
        return None
    header = bytes(sample[:SNIFF_SAMPLE_BYTES])
    if header.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if header.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if header.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if header.startswith(b"RIFF") and header[8:12] == b"WEBP":
        return "image/webp"
    if header.startswith(b"RIFF") and header[8:12] == b"WAVE":
        return "audio/wav"
    if header.startswith(b"%PDF-"):
        return "application/pdf"
    if header.startswith((b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")):
        return "application/zip"
    if header.startswith(b"\x1f\x8b\x08"):
        return "application/gzip"
    if header[4:8] == b"ftyp":
        return "video/mp4"
    if header.startswith(b"\x1a\x45\xdf\xa3"):
        return "video/webm"
    if header.startswith(b"OggS"):
        return "audio/ogg"
    if header.startswith(b"fLaC"):
        return "audio/flac"
    if header.startswith(b"ID3") or header[:2] in (b"\xff\xfb", b"\xff\xf3", b"\xff\xf2"):
        return "audio/mpeg"
    return None


def guess_type_from_name(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    guessed, _ = mimetypes.guess_type(name)
    return guessed


def _data_uri_type(value: str) -> Optional[str]:
    match = DATA_URI_PATTERN.match(value)
    if not match:
        return None
    return (match.group(1) or "text/plain").lower()


class DataPayload:
    """
    Data wrapped together with its resolved content type.

    Type resolution order: the media type of a data URI, then the explicit
    hint, then the type declared by the source, then sniffing (magic numbers
    for bytes, filename/URL extension for names). When nothing applies the
    type stays None.
    """

    def __init__(self, source: DataSource, type: Optional[str] = None):
        self.source = source
        self.type = self._resolve_type(source, type)

    @property
    def kind(self) -> str:
        return self.source.kind

    @property
    def data(self) -> Any:
        if isinstance(self.source, NativeFile):
            return self.source.content
        if isinstance(self.source, RemoteURL):
            return self.source.url
        return self.source.data

    @property
    def size(self) -> Optional[int]:
        """Byte length when it is known without doing any I/O."""
        if isinstance(self.source, NativeFile):
            return self.source.size
        if isinstance(self.source, RawBuffer):
            return len(self.source.data)
        if isinstance(self.source, Untyped) and isinstance(self.source.data, (bytes, bytearray, memoryview)):
            return len(self.source.data)
        return None

    def _resolve_type(self, source: DataSource, hint: Optional[str]) -> Optional[str]:
        if isinstance(source, Untyped) and isinstance(source.data, str):
            uri_type = _data_uri_type(source.data)
            if uri_type:
                return uri_type

        if hint:
            return hint

        if isinstance(source, NativeFile):
            return source.type or guess_type_from_name(source.name)
        if isinstance(source, RawBuffer):
            return source.type or sniff_bytes(source.data)
        if isinstance(source, RemoteURL):
            return guess_type_from_name(PurePath(urlparse(source.url).path).name)

        data = source.data
        if isinstance(data, (bytes, bytearray, memoryview)):
            return sniff_bytes(bytes(data[:SNIFF_SAMPLE_BYTES]))
        if isinstance(data, str):
            return guess_type_from_name(data)
        return None

    def __repr__(self) -> str:
        return f"<DataPayload(kind={self.kind}, type={self.type}, size={self.size})>"
