# doc_scout/crawler/dedup.py
"""
Duplicate index: the set of canonical URLs already admitted to the crawl.
"""
from __future__ import annotations

import threading
from typing import Dict, Optional, Set

from doc_scout.config import NormalizationPolicy
from doc_scout.crawler.canonical import normalize
from doc_scout.errors import InvalidURL
from doc_scout.logger import logger

__all__ = ("DuplicateIndex",)


class DuplicateIndex:
    """Tracks admitted canonical URLs.

    ``admit`` is an atomic check-and-insert: two concurrent calls with the
    same canonical form never both succeed.
    """

    def __init__(self, policy: Optional[NormalizationPolicy] = None) -> None:
        self.policy = policy or NormalizationPolicy()
        self._lock = threading.Lock()
        self._seen: Set[str] = set()
        self._canonical_map: Dict[str, str] = {}
        self._duplicates = 0

    def normalize(self, raw_url: str) -> str:
        return normalize(raw_url, self.policy)

    def is_duplicate(self, raw_url: str) -> bool:
        """True if already admitted. Unparseable URLs count as seen."""
        try:
            canonical = self.normalize(raw_url)
        except InvalidURL:
            return True
        with self._lock:
            return canonical in self._seen

    def admit(self, raw_url: str) -> bool:
        """Record *raw_url*; False (and one more duplicate) if already known."""
        try:
            canonical = self.normalize(raw_url)
        except InvalidURL as exc:
            logger.debug("Rejecting unparseable URL %r: %s", raw_url, exc.reason)
            with self._lock:
                self._duplicates += 1
            return False
        with self._lock:
            if canonical in self._seen:
                self._duplicates += 1
                return False
            self._seen.add(canonical)
            self._canonical_map[raw_url] = canonical
        return True

    def canonical_of(self, raw_url: str) -> str:
        with self._lock:
            known = self._canonical_map.get(raw_url)
        if known is not None:
            return known
        try:
            return self.normalize(raw_url)
        except InvalidURL:
            return raw_url

    def reset(self) -> None:
        with self._lock:
            self._seen.clear()
            self._canonical_map.clear()
            self._duplicates = 0

    @property
    def duplicate_count(self) -> int:
        return self._duplicates

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def __contains__(self, raw_url: object) -> bool:
        return isinstance(raw_url, str) and self.is_duplicate(raw_url)

    def __len__(self) -> int:
        return self.seen_count
