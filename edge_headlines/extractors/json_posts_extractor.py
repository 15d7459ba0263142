from __future__ import annotations

import json
import logging
from typing import Iterable, List, Mapping, Optional
from urllib.parse import urlparse

from ..models import Item, PostRecord, SourceSpec
from ..text import clean_title, clip_summary, from_epoch_seconds
from .base import DEFAULT_PER_SOURCE_LIMIT, BaseExtractor, is_absolute_url, skip

PERMALINK_BASE = "https://www.reddit.com"

logger = logging.getLogger(__name__)


class JSONPostsExtractor(BaseExtractor):
    """Reads a community "hot posts" listing.

    Accepts the Reddit listing shape (``{"data": {"children": [{"data":
    {...}}]}}``) as well as a bare list of post objects.
    """

    def __init__(self, per_source_limit: int = DEFAULT_PER_SOURCE_LIMIT, permalink_base: str = PERMALINK_BASE) -> None:
        super().__init__(per_source_limit)
        self.permalink_base = permalink_base.rstrip("/")

    def extract(self, payload: str, source: SourceSpec) -> List[Item]:
        try:
            document = json.loads(payload) if payload else None
        except ValueError as exc:
            logger.warning("Invalid JSON from %s: %s", source.id, exc)
            return []
        items: List[Item] = []
        for post in _iter_posts(document):
            if len(items) >= self.per_source_limit:
                break
            record = self.parse_post(post)
            if record.pinned:
                skip(source, "pinned post")
                continue
            item = self.to_item(record, source)
            if item is not None:
                items.append(item)
        return items

    def parse_post(self, post: Mapping[str, object]) -> PostRecord:
        created = post.get("created_utc")
        return PostRecord(
            title=_as_text(post.get("title")),
            url=_as_text(post.get("url_overridden_by_dest") or post.get("url")),
            permalink=_as_text(post.get("permalink")),
            created_utc=created if isinstance(created, (int, float)) and not isinstance(created, bool) else None,
            body=_as_text(post.get("selftext")),
            is_self=bool(post.get("is_self")),
            pinned=bool(post.get("stickied") or post.get("pinned")),
        )

    def to_item(self, record: PostRecord, source: SourceSpec) -> Optional[Item]:
        title = clean_title(record.title)
        if not title:
            skip(source, "untitled post")
            return None
        url = self._resolve_url(record)
        if not url:
            skip(source, "post without url or permalink")
            return None
        return Item(
            title=title,
            url=url,
            source=source.label,
            category=source.category,
            published_at=from_epoch_seconds(record.created_utc),
            summary=clip_summary(record.body),
        )

    def _resolve_url(self, record: PostRecord) -> str:
        external = record.url.strip()
        if external and not record.is_self and is_absolute_url(external) and not self._is_permalink(external, record):
            return external
        permalink = record.permalink.strip()
        if not permalink:
            return external if is_absolute_url(external) else ""
        if is_absolute_url(permalink):
            return permalink
        return f"{self.permalink_base}/{permalink.lstrip('/')}"

    def _is_permalink(self, url: str, record: PostRecord) -> bool:
        permalink = record.permalink.strip()
        return bool(permalink) and urlparse(url).path.rstrip("/") == permalink.rstrip("/")


def _iter_posts(document: object) -> Iterable[Mapping[str, object]]:
    if isinstance(document, Mapping):
        data = document.get("data")
        children = data.get("children") if isinstance(data, Mapping) else document.get("posts")
    else:
        children = document
    if not isinstance(children, list):
        return []
    posts = []
    for child in children:
        if not isinstance(child, Mapping):
            continue
        inner = child.get("data")
        posts.append(inner if isinstance(inner, Mapping) else child)
    return posts


def _as_text(value: object) -> str:
    return value if isinstance(value, str) else ""
