from __future__ import annotations

from typing import List, Tuple
from urllib.parse import quote_plus

from .models import FormatKind, SourceSpec

GOOGLE_NEWS_SEARCH = "https://news.google.com/rss/search?q={query}&hl=en-US&gl=US&ceid=US:en"
COMMUNITY_HOT = "https://www.reddit.com/r/{community}/hot.json?limit=25&raw_json=1"
AZFAMILY_CATEGORY = (
    "https://www.azfamily.com/arc/outboundfeeds/rss/category/{path}/"
    "?outputType=xml&size={size}&sort=display_date:desc&summary=true"
)


def google_news(source_id: str, category: str, query: str) -> SourceSpec:
    return SourceSpec(
        id=source_id,
        label="Google News",
        category=category,
        kind=FormatKind.RSS,
        url=GOOGLE_NEWS_SEARCH,
        params={"query": quote_plus(query)},
    )


def community(category: str, name: str) -> SourceSpec:
    return SourceSpec(
        id=f"community-{name.lower()}",
        label=f"Reddit r/{name}",
        category=category,
        kind=FormatKind.JSON_POSTS,
        url=COMMUNITY_HOT,
        params={"community": name},
    )


def azfamily(source_id: str, label: str, category: str, path: str, size: int) -> SourceSpec:
    return SourceSpec(
        id=source_id,
        label=label,
        category=category,
        kind=FormatKind.RSS,
        url=AZFAMILY_CATEGORY,
        params={"path": path, "size": str(size)},
    )


NEWS_SOURCES: Tuple[SourceSpec, ...] = (
    azfamily("azfamily-news", "AZFamily", "Arizona", "news", 50),
    azfamily("azfamily-politics", "AZFamily Politics", "Arizona", "politics", 20),
    azfamily("azfamily-forecast", "AZFamily Forecast", "AZ Weather", "weather/forecast", 3),
    azfamily("azfamily-coverage", "AZFamily Coverage", "AZ Weather", "weather/coverage", 3),
    google_news("gnews-markets", "Markets", "stocks OR markets OR S&P 500 OR inflation OR interest rates"),
    google_news("gnews-tech", "Tech", "technology OR AI OR OpenAI OR Apple OR Microsoft OR Nvidia"),
    google_news("gnews-nfl", "NFL", "NFL OR playoff OR Super Bowl OR Arizona Cardinals"),
    google_news("gnews-us", "US", "US news OR economy OR Supreme Court OR Congress"),
    google_news("gnews-politics", "Politics", "US politics OR White House OR Senate OR House of Representatives"),
    google_news("gnews-global", "Global", "world news OR geopolitics OR international relations"),
    google_news("gnews-editing", "Editing", "video editing OR Premiere Pro OR DaVinci Resolve OR After Effects"),
    google_news("gnews-gaming", "Gaming", "video games OR gaming industry OR Steam OR Xbox OR PlayStation OR Nintendo"),
    SourceSpec(
        id="verge",
        label="The Verge",
        category="Tech",
        kind=FormatKind.ATOM,
        url="https://www.theverge.com/rss/index.xml",
    ),
)

COMMUNITY_SOURCES: Tuple[SourceSpec, ...] = (
    community("Markets", "stocks"),
    community("Markets", "investing"),
    community("Tech", "technology"),
    community("NFL", "nfl"),
    community("NFL", "AZCardinals"),
    community("Politics", "politics"),
    community("Editing", "videoediting"),
    community("Gaming", "gaming"),
)


def default_sources(include_community: bool = True) -> List[SourceSpec]:
    """The configured feed list, optionally without community posts."""
    sources = list(NEWS_SOURCES)
    if include_community:
        sources.extend(COMMUNITY_SOURCES)
    return sources
