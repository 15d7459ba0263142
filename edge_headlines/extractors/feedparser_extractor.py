from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Mapping, Optional

import feedparser

from ..models import Item, SourceSpec
from ..text import clean_title, clip_summary, parse_timestamp
from .base import BaseExtractor, absolute_link, skip


class FeedparserExtractor(BaseExtractor):
    """Stricter RSS/Atom reader backed by ``feedparser``.

    Drop-in replacement for the regex extractors; both feed flavours go
    through the same code path since feedparser normalizes them.
    """

    def extract(self, payload: str, source: SourceSpec) -> List[Item]:
        feed = feedparser.parse((payload or "").encode("utf-8"))
        items: List[Item] = []
        for entry in feed.entries or []:
            if len(items) >= self.per_source_limit:
                break
            title = clean_title(entry.get("title"))
            link = absolute_link(_entry_link(entry), source)
            if not title or not link:
                skip(source, "missing title or absolute link")
                continue
            items.append(
                Item(
                    title=title,
                    url=link,
                    source=source.label,
                    category=source.category,
                    published_at=_parse_published(entry),
                    summary=clip_summary(_get_summary(entry)),
                )
            )
        return items


def _entry_link(entry: Mapping[str, object]) -> str:
    links = entry.get("links") or []
    for link in links:
        if isinstance(link, Mapping) and link.get("rel") == "alternate" and link.get("href"):
            return str(link["href"]).strip()
    link = entry.get("link")
    return link.strip() if isinstance(link, str) else ""


def _get_summary(entry: Mapping[str, object]) -> Optional[str]:
    summary = entry.get("summary")
    if isinstance(summary, str) and summary.strip():
        return summary
    contents = entry.get("content")
    if contents:
        parts = [part.get("value", "") for part in contents if isinstance(part, Mapping)]
        joined = " ".join(part for part in parts if isinstance(part, str))
        if joined.strip():
            return joined
    return None


def _parse_published(entry: Mapping[str, object]) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                continue
    for key in ("published", "updated"):
        value = entry.get(key)
        if isinstance(value, str):
            stamp = parse_timestamp(value)
            if stamp is not None:
                return stamp
    return None
