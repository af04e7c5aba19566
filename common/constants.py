"""Project-wide constants (content-type prefixes, default paths)."""

IMAGE_TYPE_PREFIX: str = "image/"
VIDEO_TYPE_PREFIX: str = "video/"
AUDIO_TYPE_PREFIX: str = "audio/"

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

DEFAULT_DATABASE_PATH: str = "./data/records.db"
DEFAULT_STAGING_PATH: str = "./data/staging"

STAGED_CHUNK_SUFFIX: str = ".chunk"

# Bytes read from a buffer when sniffing its content type
SNIFF_SAMPLE_BYTES: int = 64
