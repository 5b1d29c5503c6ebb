# File: tests/test_fetcher.py
"""HTTP fetching: retries, status handling, content types and proxies."""
import pytest
from aiohttp import web

from doc_scout.config import ScraperConfig
from doc_scout.crawler.fetcher import Fetcher, ProxyRotator
from doc_scout.errors import FetchFailure, ProxyConfigurationError


def fetch_config(base: str, **kwargs) -> ScraperConfig:
    params = dict(
        root_url=base,
        min_delay=0,
        max_delay=0,
        timeout=2.0,
        retry_times=0,
        retry_backoff=0,
        user_agents=["TestAgent/1.0"],
    )
    params.update(kwargs)
    return ScraperConfig(**params)


@pytest.mark.asyncio()
async def test_retry_on_server_error(serve):
    app = web.Application()
    calls = {"n": 0}

    async def flaky(_):
        calls["n"] += 1
        if calls["n"] <= 2:
            return web.Response(status=503)
        return web.Response(text="<h1>Recovered</h1>", content_type="text/html")

    app.router.add_get("/flaky", flaky)
    base = await serve(app)

    async with Fetcher(fetch_config(base, retry_times=3)) as fetcher:
        result = await fetcher.fetch(f"{base}/flaky")

    assert result is not None
    assert result.status == 200
    assert "Recovered" in result.html
    assert calls["n"] == 3


@pytest.mark.asyncio()
async def test_retries_exhausted(serve):
    app = web.Application()
    calls = {"n": 0}

    async def broken(_):
        calls["n"] += 1
        return web.Response(status=500)

    app.router.add_get("/broken", broken)
    base = await serve(app)

    async with Fetcher(fetch_config(base, retry_times=1)) as fetcher:
        with pytest.raises(FetchFailure):
            await fetcher.fetch(f"{base}/broken")
    assert calls["n"] == 2


@pytest.mark.asyncio()
async def test_client_error_status_is_not_retried(serve):
    app = web.Application()
    base = await serve(app)

    async with Fetcher(fetch_config(base, retry_times=3)) as fetcher:
        with pytest.raises(FetchFailure) as info:
            await fetcher.fetch(f"{base}/missing")
    assert info.value.status == 404


@pytest.mark.asyncio()
async def test_non_html_is_skipped(serve):
    app = web.Application()

    async def data(_):
        return web.json_response({"a": 1})

    app.router.add_get("/data", data)
    base = await serve(app)

    async with Fetcher(fetch_config(base)) as fetcher:
        assert await fetcher.fetch(f"{base}/data") is None


@pytest.mark.asyncio()
async def test_redirect_reports_final_url(serve):
    app = web.Application()

    async def old(_):
        raise web.HTTPFound("/new")

    async def new(_):
        return web.Response(text="<p>new</p>", content_type="text/html")

    app.router.add_get("/old", old)
    app.router.add_get("/new", new)
    base = await serve(app)

    async with Fetcher(fetch_config(base)) as fetcher:
        result = await fetcher.fetch(f"{base}/old")
    assert result.url == f"{base}/old"
    assert result.final_url == f"{base}/new"


@pytest.mark.asyncio()
async def test_user_agent_header(serve):
    app = web.Application()
    seen = []

    async def echo(request):
        seen.append(request.headers.get("User-Agent"))
        return web.Response(text="ok", content_type="text/plain")

    app.router.add_get("/robots.txt", echo)
    base = await serve(app)

    async with Fetcher(fetch_config(base, user_agents=["AgentA", "AgentB"])) as fetcher:
        for _ in range(6):
            status, text = await fetcher.get_text(f"{base}/robots.txt")
            assert (status, text) == (200, "ok")
    assert set(seen) <= {"AgentA", "AgentB"}


@pytest.mark.asyncio()
async def test_session_required(basic_config):
    with pytest.raises(RuntimeError):
        await Fetcher(basic_config).fetch("http://example.com/")


def test_proxy_rotation():
    rotator = ProxyRotator(["http://p1:8080", "https://p2:8443"])
    assert [rotator.next() for _ in range(3)] == ["http://p1:8080", "https://p2:8443", "http://p1:8080"]
    assert ProxyRotator([]).next() is None


@pytest.mark.parametrize("proxy", ["", "socks5://p:1080", "not a proxy", "http://", "http://p:99999"])
def test_invalid_proxies(proxy):
    with pytest.raises(ProxyConfigurationError):
        ProxyRotator([proxy])


def test_fetcher_validates_proxies(basic_config):
    config = basic_config.model_copy(update={"proxies": ["ftp://proxy:21"]})
    with pytest.raises(ProxyConfigurationError):
        Fetcher(config)
