import requests

from edge_headlines.fetcher import ACCEPT_HEADERS, SourceFetcher
from edge_headlines.models import FailureKind, FormatKind


def test_success_returns_body_with_headers(fake_session_factory, fake_response_factory, source_factory):
    source = source_factory("wire")
    session = fake_session_factory({source.url: fake_response_factory(200, b"<rss>ok</rss>")})
    fetcher = SourceFetcher(user_agent="TestAgent/1.0", timeout=5, session=session)

    result = fetcher.fetch(source)

    assert result.ok
    assert result.body == "<rss>ok</rss>"
    assert session.headers["User-Agent"] == "TestAgent/1.0"
    call = session.calls[0]
    assert call["headers"]["Accept"] == ACCEPT_HEADERS[FormatKind.RSS]
    assert call["timeout"] == (5, 5)
    assert call["stream"] is True


def test_json_sources_ask_for_json(fake_session_factory, fake_response_factory, source_factory):
    source = source_factory("posts", kind=FormatKind.JSON_POSTS)
    session = fake_session_factory({source.url: fake_response_factory(200, b"[]")})
    SourceFetcher(session=session).fetch(source)
    assert session.calls[0]["headers"]["Accept"].startswith("application/json")


def test_url_template_is_resolved(fake_session_factory, fake_response_factory):
    from edge_headlines.sources import community

    source = community("NFL", "nfl")
    url = "https://www.reddit.com/r/nfl/hot.json?limit=25&raw_json=1"
    session = fake_session_factory({url: fake_response_factory(200, b"{}")})
    assert SourceFetcher(session=session).fetch(source).ok


def test_non_success_status_is_failure_value(fake_session_factory, fake_response_factory, source_factory):
    source = source_factory("wire")
    response = fake_response_factory(500, b"oops")
    session = fake_session_factory({source.url: response})

    result = SourceFetcher(session=session).fetch(source)

    assert not result.ok
    assert result.kind is FailureKind.HTTP_STATUS
    assert "500" in result.detail
    assert response.closed


def test_timeout_and_transport_errors_are_values(fake_session_factory, source_factory):
    slow = source_factory("slow")
    broken = source_factory("broken")
    session = fake_session_factory({
        slow.url: requests.ReadTimeout("read timed out"),
        broken.url: requests.ConnectionError("dns failure"),
    })
    fetcher = SourceFetcher(session=session)

    assert fetcher.fetch(slow).kind is FailureKind.TIMEOUT
    assert fetcher.fetch(broken).kind is FailureKind.TRANSPORT


def test_deadline_aborts_slow_body(fake_session_factory, fake_response_factory, source_factory):
    source = source_factory("trickle")
    response = fake_response_factory(200, b"x" * 100_000)
    session = fake_session_factory({source.url: response})
    ticks = iter(range(0, 1000, 2))
    fetcher = SourceFetcher(timeout=3, session=session, clock=lambda: next(ticks))

    result = fetcher.fetch(source)

    assert result.kind is FailureKind.TIMEOUT
    assert response.closed


def test_body_is_capped(fake_session_factory, fake_response_factory, source_factory):
    source = source_factory("huge")
    session = fake_session_factory({source.url: fake_response_factory(200, b"y" * 50_000)})
    result = SourceFetcher(session=session, max_bytes=20_000).fetch(source)
    assert result.ok
    assert len(result.body) == 20_000
