from __future__ import annotations

from typing import Optional
from urllib.parse import unquote_plus, urlsplit, urlunsplit

from .models import Item

TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAM_NAMES = {
    "fbclid",
    "gclid",
    "dclid",
    "gbraid",
    "wbraid",
    "igshid",
    "mc_cid",
    "mc_eid",
    "msclkid",
    "yclid",
    "_ga",
}
TITLE_KEY_MAX_CHARS = 200


def is_tracking_param(name: str) -> bool:
    lowered = name.lower()
    return lowered.startswith(TRACKING_PARAM_PREFIXES) or lowered in TRACKING_PARAM_NAMES


def strip_tracking(url: str) -> Optional[str]:
    """Drop tracking query parameters and the fragment.

    Returns ``None`` when ``url`` is not an absolute http(s) URL.
    """
    try:
        parts = urlsplit(url.strip())
        # Accessing .port validates the netloc.
        parts.port
    except ValueError:
        return None
    if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
        return None
    # Remaining segments are kept byte-for-byte so encoding never changes the key.
    kept = [segment for segment in parts.query.split("&") if segment and not _is_tracking_segment(segment)]
    query = "&".join(kept)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))


def canonical_url(url: str) -> Optional[str]:
    """Tracking-free URL with only the scheme and host lowercased."""
    stripped = strip_tracking(url)
    if stripped is None:
        return None
    parts = urlsplit(stripped)
    userinfo, at, host = parts.netloc.rpartition("@")
    return urlunsplit((parts.scheme.lower(), userinfo + at + host.lower(), parts.path, parts.query, ""))


def canonical_key(item: Item) -> str:
    canonical = canonical_url(item.url)
    if canonical is not None:
        return canonical
    return item.title.lower()[:TITLE_KEY_MAX_CHARS]


def _is_tracking_segment(segment: str) -> bool:
    name = segment.split("=", 1)[0]
    return is_tracking_param(unquote_plus(name))
