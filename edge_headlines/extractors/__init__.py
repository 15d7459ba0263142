"""Format-specific extractors turning raw feed payloads into items."""

from __future__ import annotations

from typing import Optional

from ..models import FormatKind
from .atom_extractor import AtomExtractor
from .base import DEFAULT_PER_SOURCE_LIMIT, BaseExtractor, ExtractorRegistry
from .feedparser_extractor import FeedparserExtractor
from .json_posts_extractor import JSONPostsExtractor
from .rss_extractor import RSSExtractor

XML_PARSERS = ("regex", "feedparser")


def build_registry(
    per_source_limit: int = DEFAULT_PER_SOURCE_LIMIT, xml_parser: str = "regex"
) -> ExtractorRegistry:
    """Map every ``FormatKind`` to the extractor that reads it."""
    if xml_parser not in XML_PARSERS:
        raise ValueError(f"Unknown XML parser {xml_parser!r}; expected one of {', '.join(XML_PARSERS)}")
    if xml_parser == "feedparser":
        strict = FeedparserExtractor(per_source_limit)
        rss: BaseExtractor = strict
        atom: BaseExtractor = strict
    else:
        rss = RSSExtractor(per_source_limit)
        atom = AtomExtractor(per_source_limit)
    return {
        FormatKind.RSS: rss,
        FormatKind.ATOM: atom,
        FormatKind.JSON_POSTS: JSONPostsExtractor(per_source_limit),
    }


def extractor_for(kind: FormatKind, registry: Optional[ExtractorRegistry] = None) -> BaseExtractor:
    registry = registry if registry is not None else build_registry()
    try:
        return registry[FormatKind(kind)]
    except KeyError:
        raise ValueError(f"No extractor registered for format {kind!r}") from None


__all__ = [
    "AtomExtractor",
    "BaseExtractor",
    "ExtractorRegistry",
    "FeedparserExtractor",
    "JSONPostsExtractor",
    "RSSExtractor",
    "XML_PARSERS",
    "build_registry",
    "extractor_for",
]
