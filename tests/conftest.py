from __future__ import annotations

import threading
import time
from typing import Dict, List, Optional

import pytest
import requests

from edge_headlines.models import FailureKind, FetchFailure, FetchSuccess, FormatKind, SourceSpec


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self._body = body
        self.headers = headers or {"Content-Type": "application/rss+xml; charset=utf-8"}
        self.encoding = "utf-8"
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start:start + chunk_size]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stands in for ``requests.Session``; maps URLs to responses or exceptions."""

    def __init__(self, routes: Optional[Dict[str, object]] = None) -> None:
        self.headers: Dict[str, str] = {}
        self.routes = routes or {}
        self.calls: List[dict] = []

    def get(self, url, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout, "stream": stream})
        outcome = self.routes.get(url)
        if outcome is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        pass


class ScriptedFetcher:
    """Returns canned fetch results keyed by source id."""

    def __init__(self, bodies: Dict[str, object], timeout: float = 1.0, delays: Optional[Dict[str, float]] = None) -> None:
        self.bodies = bodies
        self.timeout = timeout
        self.delays = delays or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch(self, source: SourceSpec, deadline: Optional[float] = None):
        with self._lock:
            self.calls.append(source.id)
        delay = self.delays.get(source.id)
        if delay:
            time.sleep(delay)
        outcome = self.bodies.get(source.id)
        if isinstance(outcome, FailureKind):
            return FetchFailure(source=source, kind=outcome, detail="scripted")
        if isinstance(outcome, Exception):
            raise outcome
        return FetchSuccess(source=source, body=outcome or "")


def make_source(source_id: str, kind: FormatKind = FormatKind.RSS, category: str = "News") -> SourceSpec:
    return SourceSpec(
        id=source_id,
        label=source_id.title(),
        category=category,
        kind=kind,
        url=f"https://feeds.example.com/{source_id}",
    )


def rss_document(*items: str) -> str:
    return '<?xml version="1.0"?><rss version="2.0"><channel><title>Feed</title>' + "".join(items) + "</channel></rss>"


def rss_item(title: str, link: str, pub_date: Optional[str] = None, description: Optional[str] = None) -> str:
    parts = [f"<title>{title}</title>", f"<link>{link}</link>"]
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if description:
        parts.append(f"<description>{description}</description>")
    return "<item>" + "".join(parts) + "</item>"


@pytest.fixture
def fake_session_factory():
    return FakeSession


@pytest.fixture
def fake_response_factory():
    return FakeResponse


@pytest.fixture
def scripted_fetcher_factory():
    return ScriptedFetcher


@pytest.fixture
def source_factory():
    return make_source


@pytest.fixture
def rss():
    return rss_document, rss_item
