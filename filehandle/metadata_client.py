"""Resolvers that describe remote files without downloading them."""

import asyncio
import re
from abc import ABC, abstractmethod
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx
from pydantic import ValidationError

from common.constants import DEFAULT_CONTENT_TYPE
from common.logging_config import get_logger
from filehandle import config
from filehandle.exceptions import MetadataFetchError
from filehandle.payload import guess_type_from_name
from filehandle.schemas import RemoteMetadata
from filehandle.utils import filename_from_url

logger = get_logger(__name__)

CONTENT_DISPOSITION_FILENAME = re.compile(
    r"""filename\*?\s*=\s*(?:UTF-8'')?["']?([^"';]+)["']?""",
    re.IGNORECASE,
)


class RemoteMetadataResolver(ABC):
    """Looks up descriptive metadata (type, size, name) for a URL."""

    @abstractmethod
    async def fetch_metadata(self, url: str) -> RemoteMetadata:
        """
        Resolve metadata for a remote file.

        Raises:
            MetadataFetchError: If the metadata cannot be resolved
        """


class HttpMetadataResolver(RemoteMetadataResolver):
    """Resolves metadata with an HTTP HEAD request, retrying transient failures."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize resolver.

        Args:
            timeout: Request timeout in seconds (config default if None)
            max_retries: Retry attempts after the first request (config default if None)
            backoff: Base of the exponential retry delay (config default if None)
            client: Optional shared AsyncClient; one is created per call otherwise
        """
        self.timeout = timeout if timeout is not None else config.METADATA_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else config.METADATA_MAX_RETRIES
        self.backoff = backoff if backoff is not None else config.METADATA_BACKOFF_MULTIPLIER
        self._client = client

    async def fetch_metadata(self, url: str) -> RemoteMetadata:
        if self._client is not None:
            response = await self._head_with_retry(self._client, url)
        else:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={'User-Agent': config.USER_AGENT},
            ) as client:
                response = await self._head_with_retry(client, url)

        if response.status_code >= 400:
            logger.warning(f"Metadata request failed: HEAD {url} status={response.status_code}")
            raise MetadataFetchError(
                f"URL responded with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        try:
            metadata = self._parse_response(url, response)
        except ValidationError as e:
            raise MetadataFetchError(f"Invalid metadata in response: {e}", url=url) from e

        logger.debug(f"Resolved metadata for {url}: type={metadata.type} size={metadata.size}")
        return metadata

    async def _head_with_retry(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        """
        Issue a HEAD request with retry logic on 5xx errors and network failures.

        Returns:
            The last response received (may still be a 5xx once retries are exhausted)

        Raises:
            MetadataFetchError: If every attempt failed at the network level
        """
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.head(url, follow_redirects=True)

                if response.status_code >= 500 and attempt < self.max_retries:
                    delay = self.backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"HEAD {url} status={response.status_code}, retrying in {delay}s"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self.backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"HEAD {url} error={type(e).__name__}, retrying in {delay}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"Network error (max retries exceeded): HEAD {url} error={e}")

        if isinstance(last_exception, httpx.TimeoutException):
            raise MetadataFetchError("Metadata request timed out", url=url) from last_exception
        raise MetadataFetchError(f"Cannot connect to {url}", url=url) from last_exception

    def _parse_response(self, url: str, response: httpx.Response) -> RemoteMetadata:
        headers = response.headers

        name = None
        disposition = headers.get('content-disposition')
        if disposition:
            match = CONTENT_DISPOSITION_FILENAME.search(disposition)
            if match:
                name = match.group(1).strip()
        if not name:
            name = filename_from_url(str(response.url) or url)

        content_type = headers.get('content-type', '').split(';', 1)[0].strip().lower()
        if not content_type:
            content_type = guess_type_from_name(name) or DEFAULT_CONTENT_TYPE

        size = None
        length = headers.get('content-length')
        if length and length.isdigit():
            size = int(length)

        utime = None
        last_modified = headers.get('last-modified')
        if last_modified:
            try:
                utime = parsedate_to_datetime(last_modified)
            except (TypeError, ValueError):
                utime = None

        return RemoteMetadata(type=content_type, size=size, name=name, utime=utime)
