from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .fetcher import DEFAULT_MAX_BYTES, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT


class ConfigurationError(RuntimeError):
    """Raised for hard configuration faults such as an empty source list."""


@dataclass(slots=True)
class HeadlinesConfig:
    """Runtime configuration for the headlines service."""

    default_limit: int = 40
    max_limit: int = 80
    fetch_timeout: float = DEFAULT_TIMEOUT
    per_source_limit: int = 12
    cache_ttl: float = 180.0
    stale_ttl: float = 600.0
    user_agent: str = DEFAULT_USER_AGENT
    xml_parser: str = "regex"
    max_bytes: int = DEFAULT_MAX_BYTES
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_limit < 1:
            raise ValueError("HEADLINES_MAX_LIMIT must be at least 1")
        if self.fetch_timeout <= 0:
            raise ValueError("HEADLINES_FETCH_TIMEOUT must be positive")
        if self.stale_ttl < self.cache_ttl:
            raise ValueError("HEADLINES_STALE_TTL must not be shorter than HEADLINES_CACHE_TTL")
        self.default_limit = self.clamp_limit(self.default_limit)

    @classmethod
    def from_env(cls) -> "HeadlinesConfig":
        import os

        return cls(
            default_limit=_parse_int(os.getenv("HEADLINES_DEFAULT_LIMIT"), "HEADLINES_DEFAULT_LIMIT", 40),
            max_limit=_parse_int(os.getenv("HEADLINES_MAX_LIMIT"), "HEADLINES_MAX_LIMIT", 80),
            fetch_timeout=_parse_float(os.getenv("HEADLINES_FETCH_TIMEOUT"), "HEADLINES_FETCH_TIMEOUT", DEFAULT_TIMEOUT),
            per_source_limit=_parse_int(os.getenv("HEADLINES_PER_SOURCE_LIMIT"), "HEADLINES_PER_SOURCE_LIMIT", 12),
            cache_ttl=_parse_float(os.getenv("HEADLINES_CACHE_TTL"), "HEADLINES_CACHE_TTL", 180.0),
            stale_ttl=_parse_float(os.getenv("HEADLINES_STALE_TTL"), "HEADLINES_STALE_TTL", 600.0),
            user_agent=os.getenv("HEADLINES_USER_AGENT") or DEFAULT_USER_AGENT,
            xml_parser=(os.getenv("HEADLINES_XML_PARSER") or "regex").strip().lower(),
            max_bytes=_parse_int(os.getenv("HEADLINES_MAX_BYTES"), "HEADLINES_MAX_BYTES", DEFAULT_MAX_BYTES),
            log_level=(os.getenv("HEADLINES_LOG_LEVEL") or "INFO").upper(),
        )

    def clamp_limit(self, value: Optional[int]) -> int:
        if value is None:
            value = self.default_limit
        return max(1, min(int(value), self.max_limit))


def _parse_int(value: Optional[str], name: str, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer if set") from None


def _parse_float(value: Optional[str], name: str, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number if set") from None
