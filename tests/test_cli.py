# File: tests/test_cli.py
"""CLI tests with click.testing.CliRunner.
Cover the `crawl` and `config` commands, `--version`, and error handling.
The crawl itself is patched out; output is written to tmp_path.
"""
import json

import pytest
from click.testing import CliRunner

import doc_scout.cli as cli_module
from doc_scout import __version__
from doc_scout.cli import cli
from doc_scout.crawler.models import CrawlStats
from doc_scout.engine import CrawlResult
from doc_scout.errors import RobotsDisallowed
from doc_scout.logger import init_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    init_logging(level="WARNING")


@pytest.fixture()
def fake_crawl(monkeypatch, docs_pages):
    """Patch run_crawl to return fixed pages and remember the config it got."""
    calls = []

    def _run(cfg, timeout=None):
        calls.append((cfg, timeout))
        stats = CrawlStats(admitted=len(docs_pages))
        return CrawlResult(pages=docs_pages, stats=stats)

    monkeypatch.setattr(cli_module, "run_crawl", _run)
    return calls


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"DocScout, version {__version__}" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "config.json"
    cfg_file.write_text(
        json.dumps({"root_url": "https://example.com", "max_depth": 1, "quality": {"min_score": 0.5}}),
        encoding="utf-8",
    )

    runner = CliRunner()
    result = runner.invoke(cli, ["--log-level", "WARNING", "--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["root_url"] == "https://example.com/"
    assert data["max_depth"] == 1
    assert data["quality"]["min_score"] == 0.5


def test_show_config_root_url_override():
    runner = CliRunner()
    result = runner.invoke(cli, ["--log-level", "WARNING", "config", "--root-url", "https://docs.example.com"])
    assert result.exit_code == 0
    assert json.loads(result.output)["root_url"] == "https://docs.example.com/"


def test_missing_root_url_is_reported():
    runner = CliRunner()
    result = runner.invoke(cli, ["config"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_invalid_config_file(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("- a\n- b\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_crawl_writes_output(tmp_path, fake_crawl):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "crawl", "-u", "http://example.com", "-o", str(tmp_path),
            "-d", "1", "--hierarchical", "--quality", "--no-dedupe", "--timeout", "5",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Pages: 4" in result.output
    assert "Duplicates skipped: 0" in result.output
    assert f"Wrote {tmp_path / 'documentation.md'}" in result.output
    assert (tmp_path / "documentation.md").read_text(encoding="utf-8").startswith(
        "# Documentation Scrape Results (Hierarchical)"
    )

    cfg, timeout = fake_crawl[0]
    assert timeout == 5.0
    assert cfg.max_depth == 1
    assert cfg.output.hierarchical
    assert cfg.enable_quality_analysis
    assert not cfg.enable_deduplication


def test_crawl_keeps_file_settings_without_flags(tmp_path, fake_crawl):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(
        "root_url: http://example.com\n"
        "enable_deduplication: false\n"
        f"output:\n  directory: {tmp_path / 'out'}\n  format: json\n  layout: per-page\n",
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "crawl", "--max-pages", "10"])
    assert result.exit_code == 0, result.output

    cfg, _ = fake_crawl[0]
    assert not cfg.enable_deduplication
    assert not cfg.enable_quality_analysis
    assert cfg.max_pages == 10
    assert cfg.output.format == "json"
    assert (tmp_path / "out" / "page_001.json").is_file()
    assert (tmp_path / "out" / "metadata.yaml").is_file()


def test_crawl_user_agent_list(tmp_path, fake_crawl):
    agents = tmp_path / "agents.txt"
    agents.write_text("# my agents\nAgentA/1.0\n\n  AgentB/2.0  \n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(
        cli, ["crawl", "-u", "http://example.com", "-o", str(tmp_path), "--user-agent-list", str(agents)]
    )
    assert result.exit_code == 0, result.output
    cfg, _ = fake_crawl[0]
    assert cfg.user_agents == ["AgentA/1.0", "AgentB/2.0"]


def test_crawl_aborted(tmp_path, monkeypatch):
    def _run(cfg, timeout=None):
        raise RobotsDisallowed("http://example.com/robots.txt", "*")

    monkeypatch.setattr(cli_module, "run_crawl", _run)
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "-u", "http://example.com", "-o", str(tmp_path)])
    assert result.exit_code == 1
    assert "Crawl aborted" in result.output
    assert not (tmp_path / "documentation.md").exists()


def test_crawl_unexpected_error(tmp_path, monkeypatch):
    def _run(cfg, timeout=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(cli_module, "run_crawl", _run)
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "-u", "http://example.com", "-o", str(tmp_path)])
    assert result.exit_code == 1
    assert "Crawl failed: boom" in result.output


def test_crawl_rejects_bad_format():
    runner = CliRunner()
    result = runner.invoke(cli, ["crawl", "-u", "http://example.com", "--format", "pdf"])
    assert result.exit_code == 2
