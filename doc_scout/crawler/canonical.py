# doc_scout/crawler/canonical.py
"""
URL canonicalization: the string form used as the deduplication key.

Transforms are applied in a fixed order, and the output is a plain string,
so two URLs are duplicates iff their canonical strings are equal.
"""
from __future__ import annotations

import re
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit

from doc_scout.config import NormalizationPolicy
from doc_scout.errors import InvalidURL

__all__ = ("parse_url", "normalize", "host_key")

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def parse_url(raw: str) -> SplitResult:
    """Strict wrapper around :func:`urllib.parse.urlsplit`.

    ``urlsplit`` accepts almost anything; this rejects what a URL parser
    following RFC 3986 would refuse.
    """
    if not isinstance(raw, str):
        raise InvalidURL(raw, "not a string")
    if _CONTROL_RE.search(raw):
        raise InvalidURL(raw, "control character in URL")
    if _BAD_ESCAPE_RE.search(raw):
        raise InvalidURL(raw, "invalid percent escape")
    if raw.startswith(":"):
        raise InvalidURL(raw, "missing protocol scheme")
    try:
        parts = urlsplit(raw)
        parts.port  # raises on a non-numeric or out-of-range port
    except ValueError as exc:
        raise InvalidURL(raw, str(exc)) from exc
    return parts


def _strip_www(netloc: str) -> str:
    userinfo, sep, hostport = netloc.rpartition("@")
    if hostport.lower().startswith("www."):
        hostport = hostport[4:]
    return f"{userinfo}{sep}{hostport}"


def _sorted_query(query: str, fold_case: bool = False) -> str:
    pairs = parse_qsl(query, keep_blank_values=True)
    # stable sort: values of a repeated key keep their order
    if fold_case:
        pairs.sort(key=lambda kv: kv[0].lower())
    else:
        pairs.sort(key=lambda kv: kv[0])
    return urlencode(pairs)


def normalize(raw_url: str, policy: NormalizationPolicy) -> str:
    """Return the canonical form of *raw_url* under *policy*.

    Raises :class:`~doc_scout.errors.InvalidURL` when the input cannot be parsed.
    """
    parts = parse_url(raw_url)
    scheme, netloc, path, query, fragment = parts

    if policy.strip_fragment:
        fragment = ""
    if policy.strip_query:
        query = ""
    elif policy.sort_query_params and query:
        query = _sorted_query(query, fold_case=policy.lowercase)
    if policy.strip_www:
        netloc = _strip_www(netloc)
    if policy.strip_trailing_slash and path != "/" and path.endswith("/"):
        path = path[:-1]

    result = urlunsplit((scheme, netloc, path, query, fragment))
    if policy.lowercase:
        result = result.lower()
    return result


def host_key(parts: SplitResult) -> str:
    """Case-insensitive host identity (host name plus explicit port)."""
    host = parts.hostname or ""
    port = parts.port
    return f"{host}:{port}" if port is not None else host
