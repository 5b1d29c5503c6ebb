"""doc_scout.report: writes crawl results to disk as Markdown, plain text or JSON."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List

from doc_scout.config import ScraperConfig
from doc_scout.logger import logger
from doc_scout.report.document_report import (
    EXTENSIONS,
    create_anchor,
    flat_entries,
    render_document,
    render_index,
    render_pages,
    tree_entries,
)
from doc_scout.report.json_report import render_json, render_metadata, render_page_json
from doc_scout.tree import TreeBuilder

if TYPE_CHECKING:
    from doc_scout.engine import CrawlResult


def write_output(result: CrawlResult, config: ScraperConfig) -> List[Path]:
    """
    Write *result* according to ``config.output`` and return the files created.

    Single layout: ``documentation.{md,txt,json}``. Per-page layout: numbered
    ``page_NNN`` files plus ``metadata.yaml`` (and ``index.md`` for Markdown).
    Hierarchical output orders pages by the tree and follows its levels.
    """
    out = config.output
    extension = EXTENSIONS[out.format]
    tree = result.tree
    if out.hierarchical and tree is None:
        tree = TreeBuilder(config.tree).build(result.pages)

    if tree is not None and out.hierarchical:
        entries = tree_entries(tree, extension)
    else:
        entries = flat_entries(result.pages, extension)

    written: List[Path] = []
    if out.layout == "single":
        if out.format == "json":
            written.append(render_json(
                result.pages, out.directory / "documentation.json", config.root,
                stats=result.stats, tree=tree if out.hierarchical else None,
            ))
        else:
            written.append(render_document(entries, out.format, out.directory, config.root, out.hierarchical))
    else:
        if out.format == "json":
            written.extend(render_page_json(entries, out.directory))
        else:
            written.extend(render_pages(entries, out.format, out.directory))
        if out.format == "markdown":
            written.append(render_index(entries, out.directory, config.root, out.hierarchical))
        written.append(render_metadata(entries, out.directory, config.root))

    logger.info("Wrote %d output file(s) to %s", len(written), out.directory)
    return written


__all__ = ["write_output", "create_anchor", "render_json", "render_document"]
