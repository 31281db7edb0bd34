"""Helpers for chart source and target URIs.

Accepts ``file:`` URIs in both absolute (``file:///srv/chart``) and
relative (``file:target/chart``) form, plain filesystem paths, and
``http``/``https`` URLs.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

REMOTE_SCHEMES = frozenset({"http", "https"})


def scheme_of(uri: str | Path) -> str:
    """Return the URI scheme, ``file`` for plain paths."""
    if isinstance(uri, Path):
        return "file"
    parsed = urlparse(uri)
    # A single letter is a Windows drive, not a scheme
    if not parsed.scheme or len(parsed.scheme) == 1:
        return "file"
    return parsed.scheme.lower()


def is_remote(uri: str | Path) -> bool:
    """Whether the URI is fetched over HTTP."""
    return scheme_of(uri) in REMOTE_SCHEMES


def to_path(uri: str | Path) -> Path:
    """Convert a ``file:`` URI or plain path to a filesystem path.

    Raises:
        ValueError: If the URI uses a non-file scheme.
    """
    if isinstance(uri, Path):
        return uri
    scheme = scheme_of(uri)
    if scheme != "file":
        raise ValueError(f"Not a file URI: {uri}")
    if not uri.lower().startswith("file:"):
        return Path(uri)
    parsed = urlparse(uri)
    if parsed.netloc and parsed.netloc != "localhost":
        return Path(unquote(f"//{parsed.netloc}{parsed.path}"))
    return Path(unquote(parsed.path))
