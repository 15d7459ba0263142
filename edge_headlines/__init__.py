"""Edge Headlines package initializer."""

from .aggregator import Aggregator
from .cache import EdgeCache, MemoryCacheStore
from .config import ConfigurationError, HeadlinesConfig
from .fetcher import SourceFetcher
from .models import AggregateResult, FormatKind, Item, SourceSpec
from .service import HeadlinesService

__all__ = [
    "AggregateResult",
    "Aggregator",
    "ConfigurationError",
    "EdgeCache",
    "FormatKind",
    "HeadlinesConfig",
    "HeadlinesService",
    "Item",
    "MemoryCacheStore",
    "SourceFetcher",
    "SourceSpec",
]
