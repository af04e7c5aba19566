"""Utility helper functions for file handles."""

import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote, urlparse


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def is_remote_url(value: str) -> bool:
    """
    Check whether a string is an http or https URL.

    Args:
        value: Candidate string

    Returns:
        True if the string starts with 'http:' or 'https:'
    """
    return value[:5].lower() == 'http:' or value[:6].lower() == 'https:'


def filename_from_url(url: str) -> Optional[str]:
    """
    Extract the last path segment of a URL.

    Args:
        url: Absolute URL

    Returns:
        Decoded filename, or None when the path ends with '/' or is empty
    """
    path = urlparse(url).path
    segment = path.rsplit('/', 1)[-1]
    return unquote(segment) or None
