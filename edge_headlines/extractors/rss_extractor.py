from __future__ import annotations

import re
from typing import Iterable, List, Optional

from ..models import Item, RssRecord, SourceSpec
from ..text import clean_title, clip_summary, collapse_whitespace, decode_xml_text, parse_timestamp
from .base import BaseExtractor, absolute_link, skip

# Blocks wider than this are treated as malformed and not matched.
MAX_BLOCK_CHARS = 200_000

_ITEM_RE = re.compile(r"<item\b[^>]*>(.{0,%d}?)</item>" % MAX_BLOCK_CHARS, re.I | re.S)


def element_text(block: str, tag: str) -> str:
    """Inner text of the first ``<tag>`` element in ``block``, or ``""``."""
    match = re.search(
        r"<%s\b[^>]*?(?<!/)>(.*?)</%s\s*>" % (re.escape(tag), re.escape(tag)),
        block,
        re.I | re.S,
    )
    return match.group(1) if match else ""


def first_element_text(block: str, tags: Iterable[str]) -> str:
    for tag in tags:
        value = element_text(block, tag)
        if collapse_whitespace(value):
            return value
    return ""


def link_href(block: str, rel: Optional[str] = None) -> str:
    for match in re.finditer(r"<link\b([^>]*)>", block, re.I):
        attrs = match.group(1)
        href = re.search(r"""\bhref\s*=\s*["']([^"']+)["']""", attrs, re.I)
        if not href:
            continue
        if rel is not None:
            rel_attr = re.search(r"""\brel\s*=\s*["']([^"']+)["']""", attrs, re.I)
            if not rel_attr or rel_attr.group(1).strip().lower() != rel:
                continue
        return href.group(1)
    return ""


class RSSExtractor(BaseExtractor):
    """Regex-based reader for RSS 2.0 ``<item>`` blocks."""

    def extract(self, payload: str, source: SourceSpec) -> List[Item]:
        items: List[Item] = []
        for match in _ITEM_RE.finditer(payload or ""):
            if len(items) >= self.per_source_limit:
                break
            item = self.to_item(self.parse_block(match.group(1)), source)
            if item is not None:
                items.append(item)
        return items

    def parse_block(self, block: str) -> RssRecord:
        link = collapse_whitespace(decode_xml_text(element_text(block, "link")))
        if not link:
            link = decode_xml_text(link_href(block))
        return RssRecord(
            title=decode_xml_text(element_text(block, "title")),
            link=link.strip(),
            published=decode_xml_text(first_element_text(block, ("pubDate", "dc:date"))),
            description=first_element_text(block, ("description", "content:encoded")),
        )

    def to_item(self, record: RssRecord, source: SourceSpec) -> Optional[Item]:
        title = clean_title(record.title)
        url = absolute_link(record.link, source)
        if not title or not url:
            skip(source, "missing title or absolute link")
            return None
        return Item(
            title=title,
            url=url,
            source=source.label,
            category=source.category,
            published_at=parse_timestamp(record.published),
            summary=clip_summary(record.description),
        )
