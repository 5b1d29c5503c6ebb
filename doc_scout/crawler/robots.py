# doc_scout/crawler/robots.py
"""
Parser and checker for robots.txt rules.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlsplit, urlunsplit

__all__ = ("RobotsTxtRules", "robots_url_for")

_WILDCARD_RE = re.compile(r"(\*|\$)")


def robots_url_for(url: str) -> str:
    """``{scheme}://{host}/robots.txt`` for the site of *url*."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "/robots.txt", "", ""))


class RobotsTxtRules:
    """
    Parses robots.txt (RFC 9309 groups, ``*`` and ``$`` wildcards).
    An empty Disallow allows every path and is skipped.
    """

    def __init__(self, text: str) -> None:
        self.groups: List[Dict[str, Any]] = []
        self._regex_cache: Dict[str, re.Pattern[str]] = {}
        self._parse(text)

    def can_fetch(self, user_agent: str, path: str) -> bool:
        """Return True if *user_agent* may fetch *path* (longest match wins)."""
        group = self._match_group(user_agent)
        if group is None:
            return True
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in group["directives"]:
            if not self._match_path(path or "/", pattern):
                continue
            length = len(_WILDCARD_RE.sub("", pattern))
            if length > best_len or (length == best_len and directive == "allow" and allow is False):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def disallows_site(self, user_agents: Iterable[str]) -> Optional[str]:
        """Return the first agent whose governing group has ``Disallow: /``."""
        for agent in user_agents:
            group = self._match_group(agent)
            if group is not None and ("disallow", "/") in group["directives"]:
                return agent
        return None

    def crawl_delay(self, user_agent: str) -> Optional[float]:
        group = self._match_group(user_agent)
        return None if group is None else group.get("crawl_delay")

    def _new_group(self) -> Dict[str, Any]:
        group: Dict[str, Any] = {"agents": [], "directives": [], "crawl_delay": None, "has_rules": False}
        self.groups.append(group)
        return group

    def _parse(self, text: str) -> None:
        current: Optional[Dict[str, Any]] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.strip().lower()
            val = val.strip()
            if key == "user-agent":
                # consecutive User-agent lines share one group
                if current is None or current["has_rules"]:
                    current = self._new_group()
                current["agents"].append(val.lower())
                continue
            if key not in ("allow", "disallow", "crawl-delay"):
                continue
            if current is None:
                current = self._new_group()
                current["agents"].append("*")
            current["has_rules"] = True
            if key == "crawl-delay":
                try:
                    current["crawl_delay"] = float(val)
                except ValueError:
                    pass
            elif key == "disallow" and not val:
                continue
            else:
                current["directives"].append((key, val))

    def _match_group(self, user_agent: str) -> Optional[Dict[str, Any]]:
        """Most specific group for the agent: a named match first, then ``*``."""
        ua = user_agent.lower()
        for group in self.groups:
            if any(a != "*" and ua.startswith(a) for a in group["agents"]):
                return group
        for group in self.groups:
            if "*" in group["agents"]:
                return group
        return None

    def _match_path(self, path: str, pattern: str) -> bool:
        if pattern not in self._regex_cache:
            esc = re.escape(pattern).replace(r"\*", ".*")
            if pattern.endswith("$"):
                esc = esc[:-2] + "$"
            self._regex_cache[pattern] = re.compile(f"^{esc}")
        return bool(self._regex_cache[pattern].match(path))
