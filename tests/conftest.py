# File: tests/conftest.py
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator, Awaitable, Callable, List

import pytest
import pytest_asyncio
from aiohttp import web

from doc_scout.config import ScraperConfig
from doc_scout.crawler.models import PageRecord

LONG_TEXT = (
    "This guide explains how to install the library and configure it for "
    "your project. It walks through the settings one by one and shows the "
    "expected output of every command, so you can follow along in a terminal. "
) * 4


@pytest.fixture()
def basic_config() -> ScraperConfig:
    """
    A valid ScraperConfig that never sleeps between requests.
    """
    return ScraperConfig(
        root_url="http://example.com/",
        max_depth=1,
        min_delay=0,
        max_delay=0,
        timeout=2.0,
        retry_times=0,
        user_agents=["TestAgent/1.0"],
    )


@pytest.fixture()
def make_page() -> Callable[..., PageRecord]:
    """
    Factory of PageRecord objects with strictly increasing fetch times.
    """
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(url: str, title: str = "", content: str = LONG_TEXT, depth: int = 0) -> PageRecord:
        counter["n"] += 1
        return PageRecord(
            url=url,
            title=title or url.rstrip("/").rsplit("/", 1)[-1] or "Home",
            content=content,
            depth=depth,
            fetched_at=start + timedelta(minutes=counter["n"]),
        )

    return _make


@pytest.fixture()
def docs_pages(make_page) -> List[PageRecord]:
    """Root, a section, a subsection and a leaf page."""
    return [
        make_page("http://example.com/", "Home"),
        make_page("http://example.com/docs/", "Docs", depth=1),
        make_page("http://example.com/docs/guide/", "Guide", depth=2),
        make_page("http://example.com/docs/guide/start", "Start", depth=3),
    ]


@pytest_asyncio.fixture
async def serve(unused_tcp_port: int) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """
    Start an aiohttp application on a free port and return its base URL.
    Every started app is cleaned up after the test.
    """
    runners: List[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "localhost", unused_tcp_port)
        await site.start()
        runners.append(runner)
        return f"http://localhost:{unused_tcp_port}"

    try:
        yield _start
    finally:
        for runner in runners:
            await runner.cleanup()
