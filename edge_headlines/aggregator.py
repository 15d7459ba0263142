from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timezone
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from .canonical import canonical_key, strip_tracking
from .config import ConfigurationError
from .extractors import ExtractorRegistry, build_registry
from .fetcher import SourceFetcher
from .models import AggregateResult, FailureKind, FetchFailure, Item, RawFetchResult, SourceSpec

logger = logging.getLogger(__name__)

# Extra wait beyond the per-source deadline before a fetch counts as timed out.
SETTLE_GRACE_SECONDS = 0.5
DEFAULT_MAX_LIMIT = 80


class Aggregator:
    """Fetches every source concurrently and merges the results.

    Best effort: a source that times out, errors or yields nothing only
    reduces coverage. The merged list is deduplicated on canonical URL,
    ranked newest first and truncated to the requested limit.
    """

    def __init__(
        self,
        fetcher: Optional[SourceFetcher] = None,
        extractors: Optional[ExtractorRegistry] = None,
        max_limit: int = DEFAULT_MAX_LIMIT,
        deadline: Optional[float] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.fetcher = fetcher or SourceFetcher()
        self.extractors = extractors if extractors is not None else build_registry()
        self.max_limit = max(1, max_limit)
        self.deadline = deadline if deadline is not None else self.fetcher.timeout
        self._now = now

    def aggregate(self, sources: Iterable[SourceSpec], limit: int) -> AggregateResult:
        sources = list(sources)
        if not sources:
            raise ConfigurationError("No sources configured for Aggregator")
        limit = max(1, min(int(limit), self.max_limit))
        results = self._fetch_all(sources)
        items = self._extract_all(results)
        items = [self._canonicalize(item) for item in items]
        ranked = rank(dedupe(items))
        logger.info(
            "Aggregated %d items (%d unique) from %d/%d sources",
            len(items),
            len(ranked),
            sum(1 for result in results if result.ok),
            len(sources),
        )
        return AggregateResult(items=tuple(ranked[:limit]), generated_at=self._now())

    def _fetch_all(self, sources: Sequence[SourceSpec]) -> List[RawFetchResult]:
        executor = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="headline-fetch")
        try:
            futures = [executor.submit(self.fetcher.fetch, source, self.deadline) for source in sources]
            done, _ = wait(futures, timeout=self.deadline + SETTLE_GRACE_SECONDS)
            return [self._settle(future, source, future in done) for future, source in zip(futures, sources)]
        finally:
            # Stragglers keep their own deadline; the caller does not wait for them.
            executor.shutdown(wait=False, cancel_futures=True)

    def _settle(self, future: Future, source: SourceSpec, finished: bool) -> RawFetchResult:
        if not finished:
            logger.warning("Source %s did not settle within %.1fs", source.id, self.deadline)
            return FetchFailure(source=source, kind=FailureKind.TIMEOUT, detail="did not settle")
        try:
            return future.result()
        except Exception as exc:
            logger.exception("Fetcher raised for source %s", source.id)
            return FetchFailure(source=source, kind=FailureKind.TRANSPORT, detail=str(exc))

    def _extract_all(self, results: Iterable[RawFetchResult]) -> List[Item]:
        items: List[Item] = []
        for result in results:
            if not result.ok:
                continue
            source = result.source
            extractor = self.extractors.get(source.kind)
            if extractor is None:
                logger.warning("No extractor for %s (%s)", source.id, source.kind)
                continue
            try:
                extracted = extractor.extract(result.body, source)
            except Exception:
                logger.exception("Extractor failed for source %s", source.id)
                continue
            if not extracted:
                logger.info("Source %s produced no items", source.id)
            items.extend(extracted)
        return items

    def _canonicalize(self, item: Item) -> Item:
        cleaned = strip_tracking(item.url)
        if cleaned is None or cleaned == item.url:
            return item
        return replace(item, url=cleaned)


def dedupe(items: Iterable[Item]) -> List[Item]:
    """Keep the first item seen for each canonical key."""
    seen: set[str] = set()
    unique: List[Item] = []
    for item in items:
        key = canonical_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def rank(items: Iterable[Item]) -> List[Item]:
    """Newest first; undated items after all dated ones, in input order."""
    return sorted(items, key=_rank_key)


def _rank_key(item: Item) -> tuple:
    if item.published_at is None:
        return (1, 0.0)
    return (0, -item.published_at.timestamp())
