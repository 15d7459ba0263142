import json
from datetime import datetime, timedelta, timezone

from edge_headlines.aggregator import Aggregator
from edge_headlines.cache import EdgeCache
from edge_headlines.config import HeadlinesConfig
from edge_headlines.service import HeadlinesService


class Clock:
    def __init__(self):
        self.now = 5000.0

    def __call__(self):
        return self.now


class Now:
    def __init__(self):
        self.value = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.value += timedelta(minutes=1)
        return self.value


def _service(fetcher, sources, cache_ttl=180.0):
    config = HeadlinesConfig(cache_ttl=cache_ttl, stale_ttl=600.0)
    clock = Clock()
    service = HeadlinesService(
        config=config,
        aggregator=Aggregator(fetcher=fetcher, now=Now()),
        cache=EdgeCache(stale_ttl=config.stale_ttl, clock=clock),
        sources=lambda community: [s for s in sources if community or not s.id.startswith("community")],
    )
    return service, clock


def test_same_parameters_within_ttl_are_byte_identical(rss, scripted_fetcher_factory, source_factory):
    document, item = rss
    source = source_factory("wire")
    service, clock = _service(scripted_fetcher_factory({"wire": document(item("T", "https://x.example.com/t"))}), [source])

    first = service.headlines(limit=10, community=True)
    service.cache.flush()
    clock.now += 60
    second = service.headlines(limit=10, community=True)
    assert first.body == second.body

    clock.now += 200
    third = service.headlines(limit=10, community=True)
    assert json.loads(third.body)["generatedAt"] != json.loads(first.body)["generatedAt"]

    payload = json.loads(first.body)
    assert payload["ok"] is True
    assert payload["count"] == 1
    assert payload["items"][0] == {
        "title": "T",
        "url": "https://x.example.com/t",
        "source": "Wire",
        "category": "News",
        "publishedAt": None,
        "summary": "Summary unavailable.",
    }
    assert first.headers["Cache-Control"] == "public, max-age=60, s-maxage=180, stale-while-revalidate=600"
    assert first.headers["Content-Type"].startswith("application/json")


def test_community_toggle_changes_cache_key_and_sources(rss, scripted_fetcher_factory, source_factory):
    document, item = rss
    sources = [source_factory("wire"), source_factory("community-nfl")]
    fetcher = scripted_fetcher_factory({
        "wire": document(item("News", "https://x.example.com/n")),
        "community-nfl": document(item("Post", "https://x.example.com/p")),
    })
    service, _ = _service(fetcher, sources)

    assert service.cache_key(10, True) != service.cache_key(10, False)
    assert service.cache_key(10, True) != service.cache_key(20, True)
    with_posts = json.loads(service.headlines(limit=10, community=True).body)
    without = json.loads(service.headlines(limit=10, community=False).body)
    assert with_posts["count"] == 2
    assert [i["title"] for i in without["items"]] == ["News"]


def test_no_sources_renders_error_payload(scripted_fetcher_factory):
    service, _ = _service(scripted_fetcher_factory({}), [])
    response = service.headlines(limit=10)
    payload = json.loads(response.body)
    assert response.ok is False
    assert payload["ok"] is False
    assert "No sources configured" in payload["error"]
    assert response.headers["Cache-Control"] == "no-store"


def test_parse_query_clamps_and_defaults(scripted_fetcher_factory):
    service, _ = _service(scripted_fetcher_factory({}), [])
    assert service.parse_query({}) == (40, True)
    assert service.parse_query({"limit": "500", "community": "0"}) == (80, False)
    assert service.parse_query({"limit": "-3", "community": "true"}) == (1, True)
    assert service.parse_query({"limit": "abc", "community": "maybe"}) == (40, True)
