"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to Content-Type values for served files.

    index.html   →  text/html; charset=utf-8
    app.js       →  text/javascript; charset=utf-8
    logo.png     →  image/png
    unknown.xyz  →  application/octet-stream

A wrong type is not cosmetic: a script served as text/plain will not run, and
with "X-Content-Type-Options: nosniff" the browser will not guess. This is why
the try-files handler clears Content-Type before serving a fallback: the
fallback's type is recomputed from its own name.

=============================================================================
"""

from pathlib import PurePosixPath
from typing import Optional, Union


# Lowercase extension (with dot) → MIME type. Covers what front-end builds and
# static sites actually ship.
MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",     # ES modules
    ".json": "application/json",
    ".webmanifest": "application/manifest+json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Audio / video
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Documents / archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",

    # Other
    ".wasm": "application/wasm",
    ".map": "application/json",    # Source maps
}

DEFAULT_MIME_TYPE = "application/octet-stream"

_TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/manifest+json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
}


def get_mime_type(path: Union[str, PurePosixPath], default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Examples:
        >>> get_mime_type("/assets/style.css")
        'text/css'
        >>> get_mime_type("blob.xyz")
        'application/octet-stream'
    """
    extension = PurePosixPath(str(path)).suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    """Check if a MIME type is text-based (and so gets a charset)."""
    return mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES


def get_content_type(path: Union[str, PurePosixPath], charset: str = "utf-8") -> str:
    """
    Full Content-Type header value for a file name.

    Examples:
        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("logo.png")
        'image/png'
    """
    mime_type = get_mime_type(path)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
