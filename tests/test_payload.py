"""Tests for source detection and payload type resolution."""

from datetime import datetime, timezone

import pytest

from filehandle.payload import DataPayload, sniff_bytes
from filehandle.sources import NativeFile, RawBuffer, RemoteURL, Untyped, detect_source

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class TestDetectSource:
    """Test classification of raw input at the boundary."""

    def test_variants_pass_through(self):
        buffer = RawBuffer(b'abc', type='text/plain')
        assert detect_source(buffer) is buffer

    @pytest.mark.parametrize('url', ['http://example.com/a.png', 'https://example.com/a', 'HTTPS://EXAMPLE.COM'])
    def test_http_strings_are_remote_urls(self, url):
        assert detect_source(url) == RemoteURL(url)

    @pytest.mark.parametrize('value', ['ftp://example.com/a', 'plain text', b'bytes', bytearray(b'x'), 42])
    def test_everything_else_is_untyped(self, value):
        assert isinstance(detect_source(value), Untyped)

    def test_path_becomes_native_file(self, tmp_path):
        path = tmp_path / 'photo.PNG'
        path.write_bytes(PNG_HEADER)

        source = detect_source(path)

        assert isinstance(source, NativeFile)
        assert source.name == 'photo.PNG'
        assert source.size == len(PNG_HEADER)
        assert source.type == 'image/png'
        assert source.last_modified.tzinfo is not None


class TestSniffBytes:
    """Test magic-number sniffing."""

    @pytest.mark.parametrize('data,expected', [
        (PNG_HEADER, 'image/png'),
        (b'\xff\xd8\xff\xe0rest', 'image/jpeg'),
        (b'GIF89a....', 'image/gif'),
        (b'RIFF\x00\x00\x00\x00WEBPVP8 ', 'image/webp'),
        (b'RIFF\x00\x00\x00\x00WAVEfmt ', 'audio/wav'),
        (b'%PDF-1.7', 'application/pdf'),
        (b'\x00\x00\x00\x18ftypmp42', 'video/mp4'),
        (b'OggS\x00\x02', 'audio/ogg'),
        (b'ID3\x04\x00', 'audio/mpeg'),
    ])
    def test_known_signatures(self, data, expected):
        assert sniff_bytes(data) == expected

    def test_unknown_signature(self):
        assert sniff_bytes(b'hello world') is None
        assert sniff_bytes(b'') is None


class TestDataPayload:
    """Test content type resolution order."""

    def test_explicit_hint_wins_over_sniffing(self):
        payload = DataPayload(Untyped(PNG_HEADER), 'application/x-custom')
        assert payload.type == 'application/x-custom'

    def test_bytes_are_sniffed_without_hint(self):
        payload = DataPayload(Untyped(PNG_HEADER))
        assert payload.type == 'image/png'
        assert payload.size == len(PNG_HEADER)

    def test_data_uri_type_overrides_hint(self):
        payload = DataPayload(Untyped('data:image/gif;base64,R0lGODlh'), 'text/plain')
        assert payload.type == 'image/gif'

    def test_data_uri_without_media_type_is_text(self):
        payload = DataPayload(Untyped('data:,hello'))
        assert payload.type == 'text/plain'

    def test_native_file_declared_type(self):
        source = NativeFile(
            name='clip.bin',
            size=10,
            last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
            type='video/mp4',
        )
        payload = DataPayload(source)

        assert payload.type == 'video/mp4'
        assert payload.kind == 'native'
        assert payload.size == 10

    def test_native_file_without_type_guesses_from_name(self):
        source = NativeFile(name='song.mp3', size=1, last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert DataPayload(source).type == 'audio/mpeg'

    def test_raw_buffer_sniffed_when_undeclared(self):
        payload = DataPayload(RawBuffer(b'%PDF-1.4 ...'))
        assert payload.type == 'application/pdf'
        assert payload.data == b'%PDF-1.4 ...'

    def test_remote_url_guessed_from_path(self):
        payload = DataPayload(RemoteURL('https://example.com/a/report.pdf?x=1'))
        assert payload.type == 'application/pdf'
        assert payload.size is None
        assert payload.data == 'https://example.com/a/report.pdf?x=1'

    def test_undetermined_type(self):
        assert DataPayload(Untyped(object())).type is None
        assert DataPayload(Untyped('no extension here')).type is None
