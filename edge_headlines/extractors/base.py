from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Dict, List
from urllib.parse import urljoin, urlsplit

from ..models import FormatKind, Item, SourceSpec

logger = logging.getLogger(__name__)

DEFAULT_PER_SOURCE_LIMIT = 12


class BaseExtractor(ABC):
    """Turns one raw payload into normalized items.

    Extractors are pure: no I/O and no shared state. Records missing a title
    or a URL are dropped here and never reach the aggregation engine.
    """

    def __init__(self, per_source_limit: int = DEFAULT_PER_SOURCE_LIMIT) -> None:
        self.per_source_limit = max(1, per_source_limit)

    @abstractmethod
    def extract(self, payload: str, source: SourceSpec) -> List[Item]:
        """Return the ``Item`` objects found in ``payload``."""


ExtractorRegistry = Dict[FormatKind, BaseExtractor]


def skip(source: SourceSpec, reason: str) -> None:
    logger.debug("Skipping record from %s: %s", source.id, reason)


def is_absolute_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in {"http", "https"} and bool(parts.netloc)


def absolute_link(link: str, source: SourceSpec) -> str:
    """Resolve ``link`` against the feed URL; ``""`` unless the result is http(s)."""
    link = link.strip()
    if not link:
        return ""
    try:
        resolved = urljoin(source.resolved_url(), link)
    except ValueError:
        return ""
    return resolved if is_absolute_url(resolved) else ""
