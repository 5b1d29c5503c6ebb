# doc_scout/crawler/fetcher.py
"""
Fetcher module: HTTP GET with user-agent rotation, proxies, retry/backoff and timeout.
"""
from __future__ import annotations

import asyncio
import itertools
import random
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout
from doc_scout.config import ScraperConfig
from doc_scout.crawler.canonical import parse_url
from doc_scout.errors import FetchFailure, InvalidURL, ProxyConfigurationError
from doc_scout.logger import logger

__all__ = ("FetchResult", "Fetcher", "ProxyRotator", "RETRY_STATUS")

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
_PROXY_SCHEMES = ("http", "https")
_HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Body of a successful GET. ``final_url`` differs from ``url`` after redirects."""

    url: str
    final_url: str
    status: int
    html: str


class ProxyRotator:
    """Round-robin over the configured proxies; validates them up front."""

    def __init__(self, proxies: Sequence[str]) -> None:
        self.proxies: List[str] = [self._validate(p) for p in proxies]
        self._cycle: Optional[Iterator[str]] = itertools.cycle(self.proxies) if self.proxies else None

    @staticmethod
    def _validate(proxy: str) -> str:
        if not proxy or not proxy.strip():
            raise ProxyConfigurationError("empty proxy URL")
        try:
            parts = parse_url(proxy.strip())
        except InvalidURL as exc:
            raise ProxyConfigurationError(f"invalid proxy URL {proxy!r}: {exc.reason}") from exc
        if parts.scheme.lower() not in _PROXY_SCHEMES or not parts.hostname:
            raise ProxyConfigurationError(
                f"invalid proxy URL {proxy!r}: expected http(s)://host[:port]"
            )
        return proxy.strip()

    def next(self) -> Optional[str]:
        return next(self._cycle) if self._cycle is not None else None

    def __len__(self) -> int:
        return len(self.proxies)


class Fetcher:
    """Owns the aiohttp session; every worker shares one instance."""

    def __init__(self, config: ScraperConfig, retry_status: Sequence[int] = RETRY_STATUS) -> None:
        self.config = config
        self._retry_status = retry_status
        self.proxies = ProxyRotator(config.proxies)
        self.session: Optional[ClientSession] = None
        if len(self.proxies):
            logger.info("Configured %d proxies for rotation", len(self.proxies))

    async def open(self) -> None:
        if self.session is None or self.session.closed:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                raise_for_status=False,
            )

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> Fetcher:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def user_agent(self) -> str:
        return random.choice(self.config.user_agents)

    async def get_text(self, url: str) -> tuple[int, str]:
        """Single GET without retries; returns (status, body). Used for robots.txt."""
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(
                url, headers={"User-Agent": self.user_agent()}, proxy=self.proxies.next()
            ) as resp:
                return resp.status, await resp.text(errors="replace")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchFailure(url, str(exc) or type(exc).__name__) from exc

    async def fetch(self, url: str) -> Optional[FetchResult]:
        """
        GET *url*, retrying 5xx/429 and network errors with exponential backoff.

        Returns None for non-HTML responses; raises FetchFailure otherwise.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        attempts = 0
        while True:
            try:
                async with self.session.get(
                    url, headers={"User-Agent": self.user_agent()}, proxy=self.proxies.next()
                ) as resp:
                    if resp.status in self._retry_status:
                        raise ClientError(f"retryable status {resp.status}")
                    if not 200 <= resp.status < 300:
                        raise FetchFailure(url, f"HTTP {resp.status}", resp.status)
                    mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    if mime and mime not in _HTML_TYPES:
                        logger.debug("Skipping %s: content type %s", url, mime)
                        return None
                    html = await resp.text(errors="replace")
                    return FetchResult(url, str(resp.url), resp.status, html)
            except (ClientError, asyncio.TimeoutError) as exc:
                attempts += 1
                reason = str(exc) or type(exc).__name__
                if attempts > self.config.retry_times:
                    raise FetchFailure(url, reason) from exc
                backoff = min(60.0, self.config.retry_backoff * 2 ** (attempts - 1))
                logger.debug(
                    "Retry %d/%d for %s after %.2f s (%s)",
                    attempts, self.config.retry_times, url, backoff, reason,
                )
                await asyncio.sleep(backoff)
