from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .aggregator import Aggregator
from .cache import CacheError, EdgeCache
from .config import ConfigurationError, HeadlinesConfig
from .extractors import build_registry
from .fetcher import SourceFetcher
from .models import SourceSpec, format_timestamp
from .sources import default_sources

logger = logging.getLogger(__name__)

CACHE_KEY_VERSION = "v1"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True)
class HeadlinesResponse:
    body: bytes
    ok: bool = True
    headers: Dict[str, str] = field(default_factory=dict)


class HeadlinesService:
    """Turns ``/headlines`` query parameters into a cached JSON payload."""

    def __init__(
        self,
        config: Optional[HeadlinesConfig] = None,
        aggregator: Optional[Aggregator] = None,
        cache: Optional[EdgeCache] = None,
        sources: Callable[[bool], List[SourceSpec]] = default_sources,
    ) -> None:
        self.config = config or HeadlinesConfig.from_env()
        self.aggregator = aggregator or self._build_aggregator()
        self.cache = cache or EdgeCache(stale_ttl=self.config.stale_ttl)
        self._sources = sources

    def _build_aggregator(self) -> Aggregator:
        fetcher = SourceFetcher(
            user_agent=self.config.user_agent,
            timeout=self.config.fetch_timeout,
            max_bytes=self.config.max_bytes,
        )
        registry = build_registry(self.config.per_source_limit, self.config.xml_parser)
        return Aggregator(fetcher=fetcher, extractors=registry, max_limit=self.config.max_limit)

    @property
    def cache_control(self) -> str:
        max_age = min(60, int(self.config.cache_ttl))
        return (
            f"public, max-age={max_age}, s-maxage={int(self.config.cache_ttl)}, "
            f"stale-while-revalidate={int(self.config.stale_ttl)}"
        )

    def parse_query(self, args: Mapping[str, str]) -> Tuple[int, bool]:
        """Read ``limit`` and ``community``; bad values fall back to defaults."""
        raw_limit = args.get("limit")
        try:
            limit = int(raw_limit) if raw_limit not in (None, "") else None
        except (TypeError, ValueError):
            limit = None
        community = _parse_flag(args.get("community"), default=True)
        return self.config.clamp_limit(limit), community

    def cache_key(self, limit: int, community: bool) -> str:
        return f"headlines:{CACHE_KEY_VERSION}:limit={limit}:community={int(community)}"

    def headlines(self, limit: Optional[int] = None, community: bool = True) -> HeadlinesResponse:
        limit = self.config.clamp_limit(limit)
        key = self.cache_key(limit, community)
        try:
            body = self.cache.get_or_compute(key, self.config.cache_ttl, lambda: self._compute(limit, community))
        except (ConfigurationError, CacheError) as exc:
            logger.error("Headlines unavailable: %s", exc)
            return self.error_response(str(exc))
        return HeadlinesResponse(
            body=body,
            headers={"Content-Type": JSON_CONTENT_TYPE, "Cache-Control": self.cache_control},
        )

    def error_response(self, message: str) -> HeadlinesResponse:
        payload = {
            "ok": False,
            "generatedAt": format_timestamp(datetime.now(timezone.utc)),
            "error": message,
        }
        return HeadlinesResponse(
            body=_dumps(payload),
            ok=False,
            headers={"Content-Type": JSON_CONTENT_TYPE, "Cache-Control": "no-store"},
        )

    def _compute(self, limit: int, community: bool) -> bytes:
        result = self.aggregator.aggregate(self._sources(community), limit)
        return _dumps(result.to_dict())


def _parse_flag(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def _dumps(payload: Mapping[str, object]) -> bytes:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
