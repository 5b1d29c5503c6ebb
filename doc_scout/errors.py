"""Exception hierarchy shared by the crawler, the CLI and the tests."""
from __future__ import annotations

from typing import Optional

__all__ = (
    "DocScoutError",
    "InvalidURL",
    "FetchFailure",
    "RobotsDisallowed",
    "ProxyConfigurationError",
)


class DocScoutError(Exception):
    """Base class for every error raised by doc_scout."""


class InvalidURL(DocScoutError, ValueError):
    """The given string cannot be parsed as a URL."""

    def __init__(self, url: object, reason: str = "unparseable URL") -> None:
        super().__init__(f"{reason}: {url!r}")
        self.url = url
        self.reason = reason


class FetchFailure(DocScoutError):
    """Network error, timeout or non-success HTTP status for a single page."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class RobotsDisallowed(DocScoutError):
    """robots.txt forbids crawling the whole site for our user agents."""

    def __init__(self, robots_url: str, user_agent: str) -> None:
        super().__init__(f"{robots_url} disallows '/' for {user_agent!r}")
        self.robots_url = robots_url
        self.user_agent = user_agent


class ProxyConfigurationError(DocScoutError, ValueError):
    """Proxies are configured but at least one entry is malformed."""
