# doc_scout/crawler/extractor.py
"""
Title, text and link extraction from fetched HTML.

Text extraction strips page chrome (scripts, navigation, sidebars …), then
prefers the first recognised content area with a substantial amount of text
and falls back to the whole ``<body>``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ContentExtractor", "ExtractedPage", "UNTITLED")

UNTITLED = "Untitled"

CONTENT_SELECTORS: Tuple[str, ...] = (
    "main", ".main", "#main",
    ".content", "#content", ".main-content",
    "article", ".article",
    ".documentation", ".docs", ".doc-content",
    ".post-content", ".entry-content",
    ".page-content", ".body-content",
    ".markdown-body", ".wiki-content",
)

REMOVE_SELECTORS: Tuple[str, ...] = (
    "script", "style", "nav", "footer", "header",
    ".navigation", ".sidebar", ".menu", ".breadcrumb",
    ".toc", ".table-of-contents",
    ".related", ".tags", ".metadata",
    ".comments", ".social-share",
    ".advertisement", ".ads",
)

TITLE_SELECTORS: Tuple[str, ...] = ("title", "h1", ".page-title", ".main-title", ".doc-title")

# applied line by line, before whitespace is collapsed
NOISE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r".*?Skip to .*?content\s*", re.IGNORECASE),
    re.compile(r"Click here to \w+\s*", re.IGNORECASE),
    re.compile(r"Subscribe to \w+ \w+\s*", re.IGNORECASE),
    re.compile(r"Follow us on \w+\s*", re.IGNORECASE),
)
_WS_RE = re.compile(r"\s+")

_MIN_CONTENT_CHARS = 100


@dataclass(slots=True)
class ExtractedPage:
    """Everything the crawler needs from one HTML document."""

    title: str
    content: str
    links: List[str] = field(default_factory=list)


class ContentExtractor:
    """Stateless HTML → (title, content, links) extractor."""

    def __init__(
        self,
        content_selectors: Sequence[str] = CONTENT_SELECTORS,
        remove_selectors: Sequence[str] = REMOVE_SELECTORS,
        parser: str = "lxml",
    ) -> None:
        self.content_selectors = tuple(content_selectors)
        self.remove_selectors = tuple(remove_selectors)
        self.parser = parser

    def soup(self, html: str) -> BeautifulSoup:
        return BeautifulSoup(html, self.parser)

    def parse(self, html: str) -> ExtractedPage:
        soup = self.soup(html)
        # links and title first: content extraction removes elements
        links = self.extract_links(soup)
        title = self.extract_title(soup)
        content = self.extract_content(soup)
        return ExtractedPage(title=title, content=content, links=links)

    @staticmethod
    def extract_title(soup: BeautifulSoup) -> str:
        for selector in TITLE_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            text = element.get_text(strip=True)
            if text:
                return text
        element = soup.select_one("[data-title]")
        if isinstance(element, Tag):
            value = element.get("data-title")
            if isinstance(value, str) and value.strip():
                return value.strip()
        return UNTITLED

    def extract_content(self, soup: BeautifulSoup) -> str:
        for selector in self.remove_selectors:
            for element in soup.select(selector):
                element.decompose()

        content = ""
        for selector in self.content_selectors:
            matches = soup.select(selector)
            if not matches:
                continue
            text = "\n".join(el.get_text(" ") for el in matches)
            if len(text.strip()) > _MIN_CONTENT_CHARS:
                content = text
                break

        if not content:
            body = soup.body or soup
            content = body.get_text(" ")

        return self.clean_text(content)

    @staticmethod
    def clean_text(text: str) -> str:
        for pattern in NOISE_PATTERNS:
            text = pattern.sub("", text)
        return _WS_RE.sub(" ", text).strip()

    @staticmethod
    def extract_links(soup: BeautifulSoup) -> List[str]:
        """Raw ``href`` values in document order; resolution is the policy's job."""
        links: List[str] = []
        for tag in soup.find_all("a", href=True):
            if not isinstance(tag, Tag):
                continue
            href = tag.get("href")
            if isinstance(href, str) and href.strip():
                links.append(href.strip())
        return links
