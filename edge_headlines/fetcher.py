from __future__ import annotations

import codecs
import logging
import time
from typing import Callable, Dict, Optional

import requests

from .models import FailureKind, FetchFailure, FetchSuccess, FormatKind, RawFetchResult, SourceSpec

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "EdgeHeadlines/1.0 (+https://github.com/edge-headlines)"
DEFAULT_TIMEOUT = 6.5
DEFAULT_MAX_BYTES = 2 * 1024 * 1024
CHUNK_SIZE = 16 * 1024

ACCEPT_HEADERS: Dict[FormatKind, str] = {
    FormatKind.RSS: "application/rss+xml, application/xml, text/xml;q=0.9, */*;q=0.8",
    FormatKind.ATOM: "application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8",
    FormatKind.JSON_POSTS: "application/json, text/plain;q=0.9, */*;q=0.8",
}


class SourceFetcher:
    """Performs one bounded-time GET per source.

    Every outcome is returned as a value: ``FetchSuccess`` for a 2xx
    response, ``FetchFailure`` otherwise. Nothing is retried.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError("Fetch timeout must be positive")
        self.timeout = timeout
        self._max_bytes = max(1, max_bytes)
        self._clock = clock
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def headers_for(self, source: SourceSpec) -> Dict[str, str]:
        return {"Accept": ACCEPT_HEADERS.get(source.kind, "*/*")}

    def fetch(self, source: SourceSpec, deadline: Optional[float] = None) -> RawFetchResult:
        budget = deadline if deadline is not None else self.timeout
        started = self._clock()
        url = source.resolved_url()
        try:
            response = self._session.get(
                url,
                headers=self.headers_for(source),
                timeout=(budget, budget),
                stream=True,
            )
        except requests.Timeout as exc:
            return self._failure(source, FailureKind.TIMEOUT, str(exc))
        except (requests.RequestException, OSError, ValueError) as exc:
            return self._failure(source, FailureKind.TRANSPORT, str(exc))

        try:
            status = response.status_code
            if not 200 <= status < 300:
                return self._failure(source, FailureKind.HTTP_STATUS, f"HTTP {status}")
            chunks = []
            size = 0
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if self._clock() - started > budget:
                    return self._failure(source, FailureKind.TIMEOUT, f"deadline of {budget:.1f}s exceeded")
                if not chunk:
                    continue
                chunks.append(chunk)
                size += len(chunk)
                if size >= self._max_bytes:
                    logger.info("Truncating %s response at %d bytes", source.id, self._max_bytes)
                    break
            body = b"".join(chunks)[: self._max_bytes]
            text = body.decode(_charset(response), errors="replace")
        except requests.Timeout as exc:
            return self._failure(source, FailureKind.TIMEOUT, str(exc))
        except (requests.RequestException, OSError) as exc:
            # requests reports a read timeout while streaming as a ConnectionError.
            elapsed = self._clock() - started
            kind = FailureKind.TIMEOUT if elapsed >= budget else FailureKind.TRANSPORT
            return self._failure(source, kind, str(exc))
        finally:
            response.close()
        return FetchSuccess(source=source, body=text, status=status)

    def close(self) -> None:
        self._session.close()

    def _failure(self, source: SourceSpec, kind: FailureKind, detail: str) -> FetchFailure:
        logger.warning("Source %s failed (%s): %s", source.id, kind.value, detail)
        return FetchFailure(source=source, kind=kind, detail=detail)


def _charset(response: requests.Response) -> str:
    content_type = (response.headers or {}).get("Content-Type", "")
    if "charset=" in content_type.lower() and response.encoding:
        try:
            return codecs.lookup(response.encoding).name
        except LookupError:
            pass
    return "utf-8"
