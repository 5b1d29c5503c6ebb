# File: doc_scout/report/document_report.py
"""doc_scout.report.document_report: Markdown and plain-text documents rendered with Jinja2."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from doc_scout.crawler.models import PageRecord
from doc_scout.tree import DocumentTree

TEMPLATE_DIR = Path(__file__).parent / "templates"

EXTENSIONS: Dict[str, str] = {"markdown": ".md", "text": ".txt", "json": ".json"}

_ANCHOR_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_WS_RE = re.compile(r"\s+")


def create_anchor(title: str) -> str:
    """``"Getting Started!"`` -> ``"getting-started"``."""
    anchor = _ANCHOR_STRIP_RE.sub("", title.lower())
    return _WS_RE.sub("-", anchor).strip("-")


def page_filename(number: int, extension: str) -> str:
    return f"page_{number:03d}{extension}"


def timestamp(value: Optional[datetime]) -> str:
    return value.isoformat(timespec="seconds") if value else ""


@dataclass(frozen=True, slots=True)
class Entry:
    """One rendered page: what every template receives per page."""

    number: int
    title: str
    url: str
    content: str
    depth: int
    level: int
    scraped: str
    anchor: str
    filename: str

    @property
    def heading(self) -> int:
        return min(6, self.level + 2)


def flat_entries(pages: Sequence[PageRecord], extension: str) -> List[Entry]:
    return [
        Entry(
            number=i,
            title=page.title,
            url=page.url,
            content=page.content,
            depth=page.depth,
            level=0,
            scraped=timestamp(page.fetched_at),
            anchor=create_anchor(page.title),
            filename=page_filename(i, extension),
        )
        for i, page in enumerate(pages, start=1)
    ]


def tree_entries(tree: DocumentTree, extension: str) -> List[Entry]:
    """Pre-order entries; a root without a URL is structural and not rendered."""
    nodes = [n for n in tree.all_nodes() if n.url]
    offset = 0 if tree.root.url else 1
    return [
        Entry(
            number=i,
            title=node.title,
            url=node.url or "",
            content=node.content,
            depth=node.depth,
            level=max(0, node.level - offset),
            scraped=timestamp(node.fetched_at),
            anchor=create_anchor(node.title),
            filename=page_filename(i, extension),
        )
        for i, node in enumerate(nodes, start=1)
    ]


def _environment(template_dir: Union[Path, str]) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_document(
    entries: Iterable[Entry],
    fmt: str,
    output_dir: Union[Path, str],
    root_url: str,
    hierarchical: bool = False,
    template_dir: Union[Path, str] = TEMPLATE_DIR,
) -> Path:
    """Write every entry into one ``documentation.md`` / ``documentation.txt``."""
    extension = EXTENSIONS[fmt]
    output_path = Path(output_dir) / f"documentation{extension}"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    template = _environment(template_dir).get_template(f"documentation{extension}.j2")
    context: dict[str, Any] = {
        "entries": list(entries),
        "root_url": root_url,
        "generated": timestamp(datetime.now().astimezone()),
        "hierarchical": hierarchical,
    }
    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path


def render_pages(
    entries: Iterable[Entry],
    fmt: str,
    output_dir: Union[Path, str],
    template_dir: Union[Path, str] = TEMPLATE_DIR,
) -> List[Path]:
    """One numbered file per entry."""
    extension = EXTENSIONS[fmt]
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    template = _environment(template_dir).get_template(f"page{extension}.j2")

    written: List[Path] = []
    for entry in entries:
        path = output_dir / entry.filename
        path.write_text(template.render(entry=entry), encoding="utf-8")
        written.append(path)
    return written


def render_index(
    entries: Iterable[Entry],
    output_dir: Union[Path, str],
    root_url: str,
    hierarchical: bool = False,
    template_dir: Union[Path, str] = TEMPLATE_DIR,
) -> Path:
    """``index.md`` linking the per-page files (indented by level when hierarchical)."""
    output_path = Path(output_dir) / "index.md"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    template = _environment(template_dir).get_template("index.md.j2")
    output_path.write_text(
        template.render(
            entries=list(entries),
            root_url=root_url,
            generated=timestamp(datetime.now().astimezone()),
            hierarchical=hierarchical,
        ),
        encoding="utf-8",
    )
    return output_path
