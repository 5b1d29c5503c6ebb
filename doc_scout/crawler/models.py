# doc_scout/crawler/models.py
"""
Data models for the DocScout crawler.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One admitted page: URL, extracted title and text, crawl depth."""

    url: str
    title: str
    content: str
    depth: int = 0
    fetched_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")

    def as_dict(self) -> Dict[str, object]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "depth": self.depth,
            "fetched_at": self.fetched_at.isoformat(),
        }


class DropReason(str, Enum):
    """Why a link or page never became a PageRecord."""

    POLICY = "policy"
    DUPLICATE = "duplicate"
    QUALITY = "quality"
    FETCH_ERROR = "fetch_error"
    NOT_HTML = "not_html"
    EMPTY = "empty"
    ROBOTS = "robots"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class Admitted:
    """Worker outcome: the page passed the quality gate."""

    record: PageRecord
    final_url: str
    links: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Dropped:
    """Worker outcome: the page was discarded.

    ``links`` is only filled when rejected pages may still feed the frontier.
    """

    url: str
    depth: int
    reason: DropReason
    detail: str = ""
    links: Tuple[str, ...] = ()


Outcome = Admitted | Dropped


@dataclass(slots=True)
class CrawlStats:
    """Counters reported at the end of a run."""

    admitted: int = 0
    drops: Counter = field(default_factory=Counter)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def drop(self, reason: DropReason) -> None:
        self.drops[reason] += 1

    def count(self, reason: DropReason) -> int:
        return self.drops[reason]

    @property
    def duplicates(self) -> int:
        return self.drops[DropReason.DUPLICATE]

    @property
    def quality_rejected(self) -> int:
        return self.drops[DropReason.QUALITY]

    @property
    def fetch_errors(self) -> int:
        return self.drops[DropReason.FETCH_ERROR]

    @property
    def duration(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def as_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"admitted": self.admitted}
        data.update({reason.value: self.drops[reason] for reason in DropReason})
        data["duration"] = round(self.duration, 3)
        return data
