# doc_scout/crawler/crawler.py
"""
Asynchronous crawl frontier.

Workers fetch, extract and score pages concurrently and report one typed
outcome per task. A single coordinator owns the duplicate index, the
admitted pages and the counters, and is the only place that feeds the
frontier, so no structure needs fine-grained locking.
"""
from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from doc_scout.config import NormalizationPolicy, ScraperConfig
from doc_scout.crawler.canonical import parse_url
from doc_scout.crawler.dedup import DuplicateIndex
from doc_scout.crawler.extractor import ContentExtractor
from doc_scout.crawler.fetcher import Fetcher
from doc_scout.crawler.models import (
    Admitted,
    CrawlStats,
    DropReason,
    Dropped,
    Outcome,
    PageRecord,
)
from doc_scout.crawler.policy import LinkPolicy
from doc_scout.crawler.robots import RobotsTxtRules, robots_url_for
from doc_scout.errors import FetchFailure, RobotsDisallowed
from doc_scout.logger import logger
from doc_scout.quality import ContentQualityAnalyzer

__all__ = ("AsyncCrawler",)


@dataclass(frozen=True, slots=True)
class _Task:
    url: str
    depth: int


class AsyncCrawler:
    """Polite, depth-bounded, single-domain crawler.

    Usage::

        async with AsyncCrawler(config) as crawler:
            pages = await crawler.crawl()
    """

    def __init__(
        self,
        config: ScraperConfig,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[ContentExtractor] = None,
    ) -> None:
        self.config = config
        self.root_url = config.root
        parse_url(self.root_url)
        self.fetcher = fetcher or Fetcher(config)
        self.extractor = extractor or ContentExtractor()
        self.policy = LinkPolicy()
        policy = config.normalization if config.enable_deduplication else NormalizationPolicy.exact()
        self.index = DuplicateIndex(policy)
        self.analyzer: Optional[ContentQualityAnalyzer] = (
            ContentQualityAnalyzer(config.quality, config.quality.weights)
            if config.enable_quality_analysis
            else None
        )
        self.robots_rules: Optional[RobotsTxtRules] = None
        self.stats = CrawlStats()
        self.pages: List[PageRecord] = []
        self._frontier: Optional[asyncio.Queue[_Task]] = None
        self._outcomes: Optional[asyncio.Queue[tuple[_Task, Outcome]]] = None
        self._stopping = False

    async def __aenter__(self) -> AsyncCrawler:
        await self.fetcher.open()
        if self.config.respect_robots:
            await self._load_robots()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.fetcher.close()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def stop(self) -> None:
        """Stop enqueuing new work; already admitted pages are kept."""
        if not self._stopping:
            logger.info("Stop requested: draining the frontier")
        self._stopping = True

    async def crawl(self, timeout: Optional[float] = None) -> List[PageRecord]:
        """Run until the frontier drains (or *timeout* seconds elapse)."""
        self._check_robots()
        logger.info("Starting crawl of %s (max depth %d)", self.root_url, self.config.max_depth)
        self.stats.started_at = datetime.now(timezone.utc)
        start = time.monotonic()

        self._frontier = asyncio.Queue()
        self._outcomes = asyncio.Queue()
        self.index.admit(self.root_url)
        self._frontier.put_nowait(_Task(self.root_url, 0))

        loop = asyncio.get_running_loop()
        deadline = loop.call_later(timeout, self.stop) if timeout is not None else None
        coordinator = asyncio.create_task(self._coordinate())
        workers = [asyncio.create_task(self._worker()) for _ in range(self.config.concurrency)]
        try:
            await self._frontier.join()
        finally:
            if deadline is not None:
                deadline.cancel()
            for task in (*workers, coordinator):
                task.cancel()
            await asyncio.gather(*workers, coordinator, return_exceptions=True)

        self.stats.finished_at = datetime.now(timezone.utc)
        duration = time.monotonic() - start
        logger.info(
            "Crawl finished: %d pages in %.2f s, %d duplicates, %d quality rejects, %d fetch errors",
            len(self.pages), duration, self.stats.duplicates,
            self.stats.quality_rejected, self.stats.fetch_errors,
        )
        return list(self.pages)

    # ------------------------------------------------------------------ #
    # Workers                                                            #
    # ------------------------------------------------------------------ #

    async def _worker(self) -> None:
        assert self._frontier is not None and self._outcomes is not None
        while True:
            task = await self._frontier.get()
            try:
                outcome = await self._process(task)
            except Exception as exc:  # keep the pool alive; the page is lost
                logger.exception("Unexpected error while processing %s", task.url)
                outcome = Dropped(task.url, task.depth, DropReason.FETCH_ERROR, str(exc))
            await self._outcomes.put((task, outcome))

    async def _process(self, task: _Task) -> Outcome:
        if self._stopping:
            return Dropped(task.url, task.depth, DropReason.STOPPED)
        if not self._robots_allow(task.url):
            return Dropped(task.url, task.depth, DropReason.ROBOTS, "disallowed by robots.txt")

        await self._polite_delay()
        try:
            result = await self.fetcher.fetch(task.url)
        except FetchFailure as exc:
            logger.warning("Error visiting %s: %s", task.url, exc.reason)
            return Dropped(task.url, task.depth, DropReason.FETCH_ERROR, exc.reason)
        if result is None:
            return Dropped(task.url, task.depth, DropReason.NOT_HTML)
        logger.debug("Response from %s: %d", task.url, result.status)

        page = self.extractor.parse(result.html)
        links = tuple(page.links)
        if not page.content.strip():
            return Dropped(task.url, task.depth, DropReason.EMPTY, "no content")

        record = PageRecord(url=task.url, title=page.title, content=page.content, depth=task.depth)
        if self.analyzer is not None:
            quality = self.analyzer.analyze(record)
            if self.analyzer.should_skip(quality):
                detail = f"score {quality.score:.2f}"
                if quality.issues:
                    detail += "; " + ", ".join(issue.type for issue in quality.issues)
                keep = links if self.config.quality.follow_rejected_links else ()
                return Dropped(task.url, task.depth, DropReason.QUALITY, detail, keep)
            logger.debug("Quality of %s: %.2f", task.url, quality.score)
        return Admitted(record, result.final_url, links)

    async def _polite_delay(self) -> None:
        delay = random.uniform(self.config.min_delay, self.config.max_delay)
        if self.robots_rules is not None:
            crawl_delay = self.robots_rules.crawl_delay(self.config.user_agents[0])
            if crawl_delay:
                delay = max(delay, crawl_delay)
        if delay > 0:
            await asyncio.sleep(delay)

    # ------------------------------------------------------------------ #
    # Coordinator                                                        #
    # ------------------------------------------------------------------ #

    async def _coordinate(self) -> None:
        assert self._frontier is not None and self._outcomes is not None
        while True:
            task, outcome = await self._outcomes.get()
            try:
                self._handle(task, outcome)
            except Exception:
                logger.exception("Failed to handle the outcome for %s", task.url)
            finally:
                # children are queued before the parent is marked done
                self._frontier.task_done()

    def _handle(self, task: _Task, outcome: Outcome) -> None:
        if isinstance(outcome, Dropped):
            self.stats.drop(outcome.reason)
            logger.debug("Dropped %s (%s) %s", outcome.url, outcome.reason.value, outcome.detail)
            self._discover(outcome.url, task.depth, outcome.links)
            return

        record = outcome.record
        if self._limit_reached():
            self.stats.drop(DropReason.STOPPED)
            return
        if outcome.final_url != record.url and self.index.canonical_of(
            outcome.final_url
        ) != self.index.canonical_of(record.url):
            if not self.index.admit(outcome.final_url):
                self.stats.drop(DropReason.DUPLICATE)
                logger.debug("Skipping %s: redirected to known %s", record.url, outcome.final_url)
                return
        self.pages.append(record)
        self.stats.admitted += 1
        logger.info("Scraped page: %s (%s)", record.url, record.title)
        self._discover(record.url, task.depth, outcome.links)

    def _discover(self, origin: str, depth: int, links: Iterable[str]) -> None:
        assert self._frontier is not None
        for link in links:
            if self._stopping or self._limit_reached():
                return
            if not self.policy.should_follow(link, origin, depth + 1, self.config.max_depth):
                self.stats.drop(DropReason.POLICY)
                continue
            absolute = self.policy.resolve(link, origin)
            if not self.index.admit(absolute):
                self.stats.drop(DropReason.DUPLICATE)
                logger.debug("Skipping duplicate URL: %s", absolute)
                continue
            self._frontier.put_nowait(_Task(absolute, depth + 1))

    def _limit_reached(self) -> bool:
        limit = self.config.max_pages
        return limit is not None and len(self.pages) >= limit

    # ------------------------------------------------------------------ #
    # robots.txt                                                         #
    # ------------------------------------------------------------------ #

    async def _load_robots(self) -> None:
        robots_url = robots_url_for(self.root_url)
        try:
            status, text = await self.fetcher.get_text(robots_url)
        except FetchFailure as exc:
            logger.warning("Could not load robots.txt: %s", exc.reason)
            return
        if status != 200:
            logger.debug("robots.txt %s -> HTTP %s, assuming allowed", robots_url, status)
            return
        self.robots_rules = RobotsTxtRules(text)

    def _check_robots(self) -> None:
        if self.robots_rules is None:
            return
        agent = self.robots_rules.disallows_site([*self.config.user_agents, "*"])
        if agent is not None:
            raise RobotsDisallowed(robots_url_for(self.root_url), agent)

    def _robots_allow(self, url: str) -> bool:
        if self.robots_rules is None:
            return True
        path = parse_url(url).path or "/"
        return all(self.robots_rules.can_fetch(ua, path) for ua in self.config.user_agents)
