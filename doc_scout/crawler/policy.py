# doc_scout/crawler/policy.py
"""
Link admission policy: decides whether a discovered href is worth queuing.

The checks are synchronous and touch no shared state, so every worker can
run them without coordination.
"""
from __future__ import annotations

from typing import Optional, Sequence, Tuple
from urllib.parse import SplitResult, urljoin

from doc_scout.crawler.canonical import host_key, parse_url
from doc_scout.errors import InvalidURL
from doc_scout.logger import logger

__all__ = ("LinkPolicy", "SKIP_EXTENSIONS", "SKIP_PATH_FRAGMENTS")

SKIP_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".zip", ".tar", ".gz", ".mp4", ".avi", ".mov",
)
SKIP_PATH_FRAGMENTS: Tuple[str, ...] = ("/login", "/register", "/api/", "/admin/", "/search")

# bare tokens longer than this without "." or "/" are treated as garbage hrefs
_BARE_TOKEN_LIMIT = 10


class LinkPolicy:
    """Single-domain, depth-bounded link filter."""

    def __init__(
        self,
        skip_extensions: Sequence[str] = SKIP_EXTENSIONS,
        skip_paths: Sequence[str] = SKIP_PATH_FRAGMENTS,
    ) -> None:
        self.skip_extensions = tuple(ext.lower() for ext in skip_extensions)
        self.skip_paths = tuple(skip_paths)

    @staticmethod
    def resolve(link: str, origin_url: str) -> str:
        """Resolve *link* against *origin_url* (RFC 3986 relative resolution)."""
        return urljoin(origin_url, link)

    @staticmethod
    def _looks_malformed(link: str, parts: SplitResult) -> bool:
        if parts.scheme:
            # absolute reference without a host: mailto:, javascript:, "http:foo"
            return not parts.netloc
        if "://" in link:
            return True
        return (
            len(link) > _BARE_TOKEN_LIMIT
            and not link.startswith(("/", "#", "?"))
            and "." not in link
            and "/" not in link
        )

    def rejection(
        self, link: str, origin_url: str, current_depth: int, max_depth: int
    ) -> Optional[str]:
        """Return why *link* must not be followed, or None if it may be."""
        if current_depth > max_depth:
            return f"depth {current_depth} exceeds {max_depth}"
        try:
            parts = parse_url(link)
        except InvalidURL as exc:
            return f"unparseable link ({exc.reason})"
        if self._looks_malformed(link, parts):
            return "malformed reference"

        try:
            origin = parse_url(origin_url)
            resolved = parse_url(self.resolve(link, origin_url))
        except InvalidURL as exc:
            return f"cannot resolve ({exc.reason})"

        if host_key(resolved) != host_key(origin):
            return f"external host {resolved.hostname}"

        path = resolved.path.lower()
        for ext in self.skip_extensions:
            if path.endswith(ext):
                return f"file extension {ext}"

        if resolved.fragment and resolved.path == origin.path:
            return "same-page anchor"

        for fragment in self.skip_paths:
            if fragment in resolved.path:
                return f"non-content path {fragment}"
        return None

    def should_follow(self, link: str, origin_url: str, current_depth: int, max_depth: int) -> bool:
        reason = self.rejection(link, origin_url, current_depth, max_depth)
        if reason is not None:
            logger.debug("Rejected link %s from %s: %s", link, origin_url, reason)
            return False
        return True
