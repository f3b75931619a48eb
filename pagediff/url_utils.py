"""URL helpers for resource matching and comparison IDs."""

from __future__ import annotations

import time
import uuid
from urllib.parse import urlparse


def url_path_key(url: str) -> str:
    """Return the path component of a URL, used to match images across hosts.

    Falls back to the raw string when the URL cannot be parsed or has no path.
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return url
    return path or url


def is_http_url(url: str) -> bool:
    """Check that a URL is absolute http(s) with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def new_comparison_id() -> str:
    """Generate a sortable, unique comparison ID."""
    return f"cmp_{time.strftime('%Y%m%d%H%M%S')}_{uuid.uuid4().hex[:8]}"
