"""doc_scout.quality: content-quality scoring of fetched pages.

The analyzer turns a page's extracted text into a :class:`ContentQuality`
(score in [0, 1], raw metrics, issues, tags). The crawler uses
:meth:`ContentQualityAnalyzer.should_skip` to admit or reject the page.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from doc_scout.config import QualityConfig, QualityWeights
from doc_scout.crawler.extractor import UNTITLED

__all__: Sequence[str] = (
    "QualityIssue",
    "ContentMetrics",
    "ContentQuality",
    "CodeBlock",
    "QualityStats",
    "QualityScorer",
    "ContentQualityAnalyzer",
)

SEVERITIES = ("info", "warning", "error")

WORD_SATURATION = 500
CODE_BLOCK_SATURATION = 3
HEADER_SATURATION = 3
NAVIGATION_LINK_RATIO = 0.3
PASSING_SCORE = 0.4

_FENCED_RE = re.compile(r"```[\s\S]*?```")
_FENCED_WITH_LANG_RE = re.compile(r"```(\w*)\n([\s\S]*?)```")
_INLINE_CODE_RE = re.compile(r"`[^`]+`")
_HEADER_RE = re.compile(r"^#{1,6}\s+.+", re.MULTILINE)
_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")

BOILERPLATE_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        "copyright",
        "all rights reserved",
        "privacy policy",
        "terms of service",
        "cookie policy",
        "newsletter",
        "subscribe",
        "follow us",
        "social media",
        "navigation",
        "menu",
        "footer",
        "header",
    )
)

NAVIGATION_INDICATORS: Tuple[str, ...] = (
    "table of contents",
    "navigation",
    "site map",
    "index",
    "directory",
    "menu",
    "links",
)

_ENGLISH_WORDS = frozenset(("the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"))


class PageLike(Protocol):
    title: str
    content: str


@dataclass(frozen=True, slots=True)
class QualityIssue:
    type: str
    severity: str
    description: str

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity {self.severity!r}")


@dataclass(frozen=True, slots=True)
class ContentMetrics:
    word_count: int = 0
    code_block_count: int = 0
    header_count: int = 0
    total_lines: int = 0
    empty_lines: int = 0
    empty_line_ratio: float = 0.0
    content_ratio: float = 0.0
    has_title: bool = False
    has_headers: bool = False
    image_count: int = 0


@dataclass(frozen=True, slots=True)
class ContentQuality:
    """Result of one analysis; never mutated after creation."""

    score: float
    word_count: int
    code_block_count: int
    header_count: int
    content_ratio: float
    empty_line_ratio: float
    has_title: bool
    has_headers: bool
    is_navigation_page: bool
    issues: Tuple[QualityIssue, ...] = ()
    language: str = "unknown"
    tags: Tuple[str, ...] = ()

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)


@dataclass(frozen=True, slots=True)
class CodeBlock:
    language: str
    content: str
    line_count: int


@dataclass(slots=True)
class QualityStats:
    total_pages: int = 0
    passed_pages: int = 0
    failed_pages: int = 0
    average_score: float = 0.0
    average_word_count: float = 0.0

    def update(self, quality: ContentQuality) -> None:
        self.total_pages += 1
        if quality.score >= PASSING_SCORE:
            self.passed_pages += 1
        else:
            self.failed_pages += 1
        n = self.total_pages
        self.average_score += (quality.score - self.average_score) / n
        self.average_word_count += (quality.word_count - self.average_word_count) / n


def _ramp(value: float, saturation: float) -> float:
    if saturation <= 0:
        return 1.0
    return max(0.0, min(1.0, value / saturation))


class QualityScorer:
    """Weighted sum of per-metric sub-scores, each ramped linearly to [0, 1]."""

    def __init__(self, weights: Optional[QualityWeights] = None) -> None:
        self.weights = weights or QualityWeights()

    def score(self, metrics: ContentMetrics) -> float:
        w = self.weights
        total = (
            _ramp(metrics.word_count, WORD_SATURATION) * w.word_count
            + _ramp(metrics.code_block_count, CODE_BLOCK_SATURATION) * w.code_blocks
            + _ramp(metrics.header_count, HEADER_SATURATION) * w.headers
            + max(0.0, min(1.0, metrics.content_ratio)) * w.content_ratio
            + (1.0 if metrics.has_title else 0.0) * w.title_presence
            # image sub-score stays 0 until images are extracted
            + 0.0 * w.images
        )
        return max(0.0, min(1.0, total))


class ContentQualityAnalyzer:
    """Scores pages and decides whether they are worth keeping.

    ``analyze`` also maintains running :class:`QualityStats` across calls.
    """

    def __init__(self, config: Optional[QualityConfig] = None, weights: Optional[QualityWeights] = None) -> None:
        self.config = config or QualityConfig()
        self.scorer = QualityScorer(weights or self.config.weights)
        self.stats = QualityStats()

    # -- metrics ------------------------------------------------------------

    @staticmethod
    def count_words(text: str) -> int:
        return len(text.split())

    @staticmethod
    def count_code_blocks(text: str) -> int:
        fenced = _FENCED_RE.findall(text)
        remainder = _FENCED_RE.sub("", text)
        inline = _INLINE_CODE_RE.findall(remainder)
        return len(fenced) + len(inline) // 3

    @staticmethod
    def count_headers(text: str) -> int:
        return len(_HEADER_RE.findall(text))

    @staticmethod
    def content_ratio(text: str) -> float:
        if not text:
            return 0.0
        boilerplate = sum(len(m.group(0)) for p in BOILERPLATE_PATTERNS for m in p.finditer(text))
        return max(0.0, (len(text) - boilerplate) / len(text))

    @staticmethod
    def has_title(title: str) -> bool:
        return bool(title) and title != UNTITLED

    def extract_metrics(self, page: PageLike) -> ContentMetrics:
        text = page.content or ""
        lines = text.split("\n")
        empty = sum(1 for line in lines if not line.strip())
        headers = self.count_headers(text)
        return ContentMetrics(
            word_count=self.count_words(text),
            code_block_count=self.count_code_blocks(text),
            header_count=headers,
            total_lines=len(lines),
            empty_lines=empty,
            empty_line_ratio=empty / len(lines) if lines else 0.0,
            content_ratio=self.content_ratio(text),
            has_title=self.has_title(page.title or ""),
            has_headers=headers > 0,
        )

    # -- analysis -----------------------------------------------------------

    def analyze(self, page: PageLike) -> ContentQuality:
        metrics = self.extract_metrics(page)
        quality = ContentQuality(
            score=self.scorer.score(metrics),
            word_count=metrics.word_count,
            code_block_count=metrics.code_block_count,
            header_count=metrics.header_count,
            content_ratio=metrics.content_ratio,
            empty_line_ratio=metrics.empty_line_ratio,
            has_title=metrics.has_title,
            has_headers=metrics.has_headers,
            is_navigation_page=self.is_navigation_page(page),
            issues=tuple(self.detect_issues(page)),
            language=self.detect_language(page.content or ""),
            tags=tuple(self.generate_tags(metrics)),
        )
        self.stats.update(quality)
        return quality

    def is_navigation_page(self, page: PageLike) -> bool:
        text = (page.content or "").lower()
        title = (page.title or "").lower()
        indicators = sum(1 for ind in NAVIGATION_INDICATORS if ind in text)
        indicators += sum(2 for ind in NAVIGATION_INDICATORS if ind in title)

        words = self.count_words(page.content or "")
        links = len(_MD_LINK_RE.findall(page.content or ""))
        if words and links / words > NAVIGATION_LINK_RATIO:
            indicators += 1
        return indicators >= 2

    def detect_issues(self, page: PageLike) -> List[QualityIssue]:
        cfg = self.config
        content = page.content or ""
        issues: List[QualityIssue] = []

        if self.count_words(content) < cfg.min_word_count:
            issues.append(QualityIssue(
                "word_count", "warning",
                f"Content has fewer words than the recommended minimum ({cfg.min_word_count})",
            ))
        if cfg.require_title and not self.has_title(page.title or ""):
            issues.append(QualityIssue("missing_title", "error", "Page is missing a title"))
        if cfg.require_content and not content.strip():
            issues.append(QualityIssue("empty_content", "error", "Page has no content"))

        lowered = content.lower()
        found = [p for p in cfg.blacklist_patterns if p and p.lower() in lowered]
        if found:
            noun = "patterns" if len(found) > 1 else "pattern"
            issues.append(QualityIssue(
                "blacklisted_content", "warning",
                f"Content contains blacklisted {noun}: {', '.join(found)}",
            ))
        return issues

    def should_skip(self, quality: ContentQuality) -> bool:
        if quality.score < self.config.min_score:
            return True
        if self.config.skip_navigation_pages and quality.is_navigation_page:
            return True
        return quality.has_errors

    # -- extras -------------------------------------------------------------

    @staticmethod
    def detect_language(text: str) -> str:
        """Crude English detector: >5% of words are common function words."""
        words = text.lower().split()
        if not words:
            return "unknown"
        hits = sum(1 for w in words if w in _ENGLISH_WORDS)
        return "en" if hits > len(words) // 20 else "unknown"

    @staticmethod
    def extract_code_blocks(text: str) -> List[CodeBlock]:
        blocks = []
        for lang, code in _FENCED_WITH_LANG_RE.findall(text):
            blocks.append(CodeBlock(lang or "text", code, len(code.split("\n"))))
        return blocks

    @staticmethod
    def generate_tags(metrics: ContentMetrics) -> List[str]:
        tags = []
        if metrics.code_block_count > 0:
            tags.append("technical")
        if metrics.word_count > 1000:
            tags.append("long-form")
        elif metrics.word_count < 200:
            tags.append("short-form")
        if metrics.has_headers:
            tags.append("structured")
        if metrics.word_count >= 500 and metrics.code_block_count >= 2:
            tags.append("comprehensive")
        if metrics.content_ratio < 0.3:
            tags.append("low-content")
        return tags
