from __future__ import annotations

import re
from typing import List, Optional

from ..models import AtomRecord, Item, SourceSpec
from ..text import clean_title, clip_summary, decode_xml_text, parse_timestamp
from .base import BaseExtractor, absolute_link, skip
from .rss_extractor import MAX_BLOCK_CHARS, element_text, first_element_text, link_href

_ENTRY_RE = re.compile(r"<entry\b[^>]*>(.{0,%d}?)</entry>" % MAX_BLOCK_CHARS, re.I | re.S)


class AtomExtractor(BaseExtractor):
    """Regex-based reader for Atom ``<entry>`` blocks."""

    def extract(self, payload: str, source: SourceSpec) -> List[Item]:
        items: List[Item] = []
        for match in _ENTRY_RE.finditer(payload or ""):
            if len(items) >= self.per_source_limit:
                break
            item = self.to_item(self.parse_block(match.group(1)), source)
            if item is not None:
                items.append(item)
        return items

    def parse_block(self, block: str) -> AtomRecord:
        link = link_href(block, rel="alternate") or link_href(block)
        return AtomRecord(
            title=decode_xml_text(element_text(block, "title")),
            link=decode_xml_text(link).strip(),
            updated=decode_xml_text(first_element_text(block, ("updated", "published"))),
            summary=first_element_text(block, ("summary", "content")),
        )

    def to_item(self, record: AtomRecord, source: SourceSpec) -> Optional[Item]:
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
            published_at=parse_timestamp(record.updated),
            summary=clip_summary(record.summary),
        )
