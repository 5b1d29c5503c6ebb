# File: doc_scout/engine.py
"""doc_scout.engine: runs a crawl and assembles its result for the CLI and tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from doc_scout.config import ScraperConfig
from doc_scout.crawler.crawler import AsyncCrawler
from doc_scout.crawler.models import CrawlStats, PageRecord
from doc_scout.logger import logger
from doc_scout.tree import DocumentTree, TreeBuilder

__all__ = ["CrawlResult", "build_tree", "run_crawl", "crawl_async"]


@dataclass(slots=True)
class CrawlResult:
    """Admitted pages in crawl order, the run counters, and the optional tree."""

    pages: List[PageRecord] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    tree: Optional[DocumentTree] = None

    def summary(self) -> Dict[str, Any]:
        data = self.stats.as_dict()
        if self.tree is not None:
            data["tree_nodes"] = self.tree.total_nodes
            data["tree_depth"] = self.tree.max_depth
        return data


def build_tree(pages: List[PageRecord], config: ScraperConfig) -> DocumentTree:
    """Assemble the hierarchy of *pages* with the tree settings of *config*."""
    return TreeBuilder(config.tree).build(pages)


async def crawl_async(config: ScraperConfig, timeout: Optional[float] = None) -> CrawlResult:
    async with AsyncCrawler(config) as crawler:
        pages = await crawler.crawl(timeout=timeout)
    result = CrawlResult(pages=pages, stats=crawler.stats)
    if config.output.hierarchical:
        result.tree = build_tree(pages, config)
    return result


def run_crawl(config: ScraperConfig, timeout: Optional[float] = None) -> CrawlResult:
    """Blocking entry point: crawl, then build the tree when hierarchical output is on."""
    try:
        return asyncio.run(crawl_async(config, timeout))
    except Exception as exc:
        logger.error("Crawl failed: %s", exc)
        raise

