from pathlib import PurePosixPath
from urllib.parse import urlparse

DEFAULT_EXTENSION = ".tmp"
# Encodings that many image hosts reject; converted before upload.
UNSUPPORTED_EXTENSIONS = frozenset({".webp"})
NORMALIZED_EXTENSION = ".jpg"


def classify(name_or_url: str) -> str:
    """Return the lowercase extension (with dot) of a URL path or file name."""
    path = name_or_url
    try:
        parsed = urlparse(name_or_url)
    except ValueError:
        # not a URL (e.g. unbalanced IPv6 brackets); treat as a bare path
        parsed = None
    if parsed is not None and parsed.scheme and parsed.netloc:
        path = parsed.path
    return PurePosixPath(path).suffix.lower() or DEFAULT_EXTENSION


def needs_normalization(extension: str) -> bool:
    return extension.lower() in UNSUPPORTED_EXTENSIONS
