# doc_scout/report/json_report.py

"""
JSON output and the YAML metadata file of per-page layouts.
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from doc_scout.crawler.models import CrawlStats, PageRecord
from doc_scout.report.document_report import Entry, timestamp
from doc_scout.tree import DocumentTree


def _dump(data: Any, output: Path) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.write('\n')
    return output


def render_json(
    pages: Sequence[PageRecord],
    output_path: Path | str,
    root_url: str,
    stats: Optional[CrawlStats] = None,
    tree: Optional[DocumentTree] = None,
) -> Path:
    """
    Save the crawl as ``documentation.json``.

    With a tree the pages are nested under ``tree`` (children inside their
    parents) instead of listed flat under ``pages``.
    """
    data: Dict[str, Any] = {
        'root_url': root_url,
        'scraped_at': timestamp(datetime.now().astimezone()),
        'total_pages': len(pages),
    }
    if stats is not None:
        data['stats'] = stats.as_dict()
    if tree is not None:
        data['max_depth'] = tree.max_depth
        data['tree'] = tree.root.to_dict()
    else:
        data['pages'] = [page.as_dict() for page in pages]
    return _dump(data, Path(output_path))


def render_page_json(entries: Sequence[Entry], output_dir: Path | str) -> List[Path]:
    """One ``page_NNN.json`` per entry."""
    written = []
    for entry in entries:
        data = {
            'title': entry.title,
            'url': entry.url,
            'content': entry.content,
            'depth': entry.depth,
            'level': entry.level,
            'scraped': entry.scraped,
        }
        written.append(_dump(data, Path(output_dir) / entry.filename))
    return written


def render_metadata(entries: Sequence[Entry], output_dir: Path | str, root_url: str) -> Path:
    """``metadata.yaml``: crawl summary plus one record per written page file."""
    output = Path(output_dir) / 'metadata.yaml'
    output.parent.mkdir(parents=True, exist_ok=True)
    metadata = {
        'scrape_info': {
            'root_url': root_url,
            'scraped_at': timestamp(datetime.now().astimezone()),
            'total_pages': len(entries),
        },
        'pages': [
            {
                'title': e.title,
                'url': e.url,
                'timestamp': e.scraped,
                'depth': e.depth,
                'level': e.level,
                'file': e.filename,
            }
            for e in entries
        ],
    }
    with output.open('w', encoding='utf-8') as f:
        yaml.safe_dump(metadata, f, sort_keys=False, allow_unicode=True)
    return output
