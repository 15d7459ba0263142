from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional, Tuple, Union

SUMMARY_UNAVAILABLE = "Summary unavailable."


class FormatKind(str, Enum):
    RSS = "rss"
    ATOM = "atom"
    JSON_POSTS = "json-posts"


class FailureKind(str, Enum):
    """Why a single source fetch produced no payload."""

    TIMEOUT = "timeout"
    HTTP_STATUS = "http-status"
    TRANSPORT = "transport"


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """Static configuration for one upstream feed."""

    id: str
    label: str
    category: str
    kind: FormatKind
    url: str
    params: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        # Stored as sorted pairs so SourceSpec stays hashable.
        params = self.params.items() if isinstance(self.params, Mapping) else self.params
        object.__setattr__(self, "params", tuple(sorted((str(k), str(v)) for k, v in params)))

    def resolved_url(self) -> str:
        if not self.params:
            return self.url
        return self.url.format(**dict(self.params))


@dataclass(frozen=True, slots=True)
class FetchSuccess:
    source: SourceSpec
    body: str
    status: int = 200

    ok = True


@dataclass(frozen=True, slots=True)
class FetchFailure:
    source: SourceSpec
    kind: FailureKind
    detail: str = ""

    ok = False


RawFetchResult = Union[FetchSuccess, FetchFailure]


@dataclass(frozen=True, slots=True)
class Item:
    """One normalized content record."""

    title: str
    url: str
    source: str
    category: str
    published_at: Optional[datetime] = None
    summary: str = SUMMARY_UNAVAILABLE

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "category": self.category,
            "publishedAt": format_timestamp(self.published_at),
            "summary": self.summary,
        }


@dataclass(frozen=True, slots=True)
class RssRecord:
    """Raw fields of one RSS ``<item>`` block."""

    title: str
    link: str
    published: str
    description: str


@dataclass(frozen=True, slots=True)
class AtomRecord:
    """Raw fields of one Atom ``<entry>`` block."""

    title: str
    link: str
    updated: str
    summary: str


@dataclass(frozen=True, slots=True)
class PostRecord:
    """Raw fields of one community post from a JSON listing."""

    title: str
    url: str
    permalink: str
    created_utc: Optional[float]
    body: str
    is_self: bool = False
    pinned: bool = False


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Ranked, deduplicated items plus the time they were generated."""

    items: Tuple[Item, ...]
    generated_at: datetime

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "generatedAt": format_timestamp(self.generated_at),
            "count": self.count,
            "items": [item.to_dict() for item in self.items],
        }


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond:
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")
