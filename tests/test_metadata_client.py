"""Unit tests for HttpMetadataResolver."""

from datetime import datetime, timezone

import httpx
import pytest

from filehandle.exceptions import MetadataFetchError
from filehandle.metadata_client import HttpMetadataResolver


def make_resolver(handler, **kwargs):
    """Create resolver with a mocked HTTP transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMetadataResolver(client=client, backoff=0, **kwargs)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip retry delays."""
    async def fake_sleep(delay):
        return None
    monkeypatch.setattr('filehandle.metadata_client.asyncio.sleep', fake_sleep)


class TestHttpMetadataResolver:
    """Test HEAD-based metadata resolution."""

    @pytest.mark.asyncio
    async def test_parses_headers(self):
        def handler(request):
            assert request.method == 'HEAD'
            return httpx.Response(200, headers={
                'Content-Type': 'image/png; charset=binary',
                'Content-Length': '1234',
                'Content-Disposition': 'attachment; filename="holiday.png"',
                'Last-Modified': 'Wed, 21 Oct 2015 07:28:00 GMT',
            })

        metadata = await make_resolver(handler).fetch_metadata('https://example.com/download?id=7')

        assert metadata.type == 'image/png'
        assert metadata.size == 1234
        assert metadata.name == 'holiday.png'
        assert metadata.utime == datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_name_and_type_from_url_path(self):
        def handler(request):
            return httpx.Response(200)

        metadata = await make_resolver(handler).fetch_metadata('https://example.com/media/My%20Song.mp3')

        assert metadata.name == 'My Song.mp3'
        assert metadata.type == 'audio/mpeg'
        assert metadata.size is None

    @pytest.mark.asyncio
    async def test_unknown_type_defaults_to_octet_stream(self):
        def handler(request):
            return httpx.Response(200)

        metadata = await make_resolver(handler).fetch_metadata('https://example.com/blob')

        assert metadata.type == 'application/octet-stream'

    @pytest.mark.asyncio
    async def test_client_error_raises(self):
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(MetadataFetchError) as exc_info:
            await make_resolver(handler).fetch_metadata('https://example.com/missing')

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503)
            return httpx.Response(200, headers={'Content-Type': 'video/mp4'})

        metadata = await make_resolver(handler, max_retries=2).fetch_metadata('https://example.com/a.mp4')

        assert len(attempts) == 3
        assert metadata.type == 'video/mp4'

    @pytest.mark.asyncio
    async def test_server_error_after_retries(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(500)

        with pytest.raises(MetadataFetchError) as exc_info:
            await make_resolver(handler, max_retries=1).fetch_metadata('https://example.com/a')

        assert len(attempts) == 2
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)

        with pytest.raises(MetadataFetchError) as exc_info:
            await make_resolver(handler, max_retries=1).fetch_metadata('https://example.com/a')

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout('too slow', request=request)

        with pytest.raises(MetadataFetchError, match='timed out'):
            await make_resolver(handler, max_retries=0).fetch_metadata('https://example.com/a')
