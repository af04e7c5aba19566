"""Configuration settings for file handles and their collaborators."""

import os
from common.constants import DEFAULT_DATABASE_PATH, DEFAULT_STAGING_PATH


DATABASE_PATH = os.environ.get("FILEHANDLE_DATABASE_PATH", DEFAULT_DATABASE_PATH)

STAGING_PATH = os.environ.get("FILEHANDLE_STAGING_PATH", DEFAULT_STAGING_PATH)

METADATA_TIMEOUT_SECONDS = float(os.environ.get("FILEHANDLE_METADATA_TIMEOUT", "10"))

METADATA_MAX_RETRIES = int(os.environ.get("FILEHANDLE_METADATA_MAX_RETRIES", "2"))

METADATA_BACKOFF_MULTIPLIER = float(os.environ.get("FILEHANDLE_METADATA_BACKOFF", "2"))

USER_AGENT = os.environ.get("FILEHANDLE_USER_AGENT", "filehandle-core/1.0")
