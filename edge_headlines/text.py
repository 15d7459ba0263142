from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import math
import re
from typing import Optional

from .models import SUMMARY_UNAVAILABLE

TITLE_MAX_CHARS = 140
SUMMARY_MAX_CHARS = 250
# A sentence break earlier than this fraction of the limit is ignored.
SENTENCE_CUT_MIN_RATIO = 0.4

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.S)
_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")
_ENTITIES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


def decode_xml_text(value: Optional[str]) -> str:
    """Unwrap CDATA sections and decode the five standard entities."""
    if not value:
        return ""
    text = _CDATA_RE.sub(r"\1", value)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def collapse_whitespace(value: Optional[str]) -> str:
    if not value:
        return ""
    return _SPACE_RE.sub(" ", value).strip()


def strip_html(value: Optional[str]) -> str:
    if not value:
        return ""
    return _TAG_RE.sub(" ", value)


def clean_title(value: Optional[str], max_chars: int = TITLE_MAX_CHARS) -> str:
    title = collapse_whitespace(value)
    if len(title) > max_chars:
        title = title[:max_chars].rstrip()
    return title


def clip_summary(value: Optional[str], max_chars: int = SUMMARY_MAX_CHARS) -> str:
    """Produce a short plain-text summary, never empty.

    Entities are decoded before markup is stripped so that escaped HTML
    inside feed descriptions is removed too. Long text is cut at the last
    sentence break before the limit, or hard-clipped with an ellipsis when
    that break comes too early.
    """
    text = collapse_whitespace(strip_html(decode_xml_text(value)))
    if not text:
        return SUMMARY_UNAVAILABLE
    if len(text) <= max_chars:
        return text
    window = text[:max_chars]
    cut = window.rfind(". ")
    if cut >= int(max_chars * SENTENCE_CUT_MIN_RATIO):
        return window[: cut + 1]
    return window[: max_chars - 1].rstrip() + "…"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 or ISO-8601 date into an aware UTC datetime."""
    value = collapse_whitespace(value)
    if not value:
        return None
    parsed: Optional[datetime] = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def from_epoch_seconds(value: object) -> Optional[datetime]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    millis = int(value * 1000)
    try:
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
