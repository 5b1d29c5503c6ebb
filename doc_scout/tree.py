"""doc_scout.tree: rebuilds a documentation hierarchy from a flat list of crawled pages.

Parent/child links are inferred from URL paths: ``/docs/guide/start`` hangs
under ``/docs/guide/``, which hangs under ``/docs/``, and so on. A child holds
only a weak reference to its parent; ownership flows from parent to children.
"""
from __future__ import annotations

import posixpath
import weakref
from collections import deque
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlsplit

from doc_scout.config import TreeConfig
from doc_scout.crawler.models import PageRecord
from doc_scout.logger import logger

__all__: Sequence[str] = ("DocumentNode", "DocumentTree", "TreeBuilder")

Visitor = Callable[["DocumentNode"], Any]


def _host_of(url: Optional[str]) -> str:
    if not url:
        return ""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    return f"{host}:{parts.port}" if parts.port else host


def _path_of(url: Optional[str]) -> str:
    if not url:
        return ""
    return urlsplit(url).path


def _comparable(path: str) -> str:
    """Path without trailing slashes; the site root compares as ``/``."""
    return path.rstrip("/") or "/"


class DocumentNode:
    """One page in the hierarchy (or the synthetic root when ``url`` is None)."""

    __slots__ = (
        "url", "path", "title", "content", "depth", "level", "index",
        "fetched_at", "children", "_parent", "__weakref__",
    )

    def __init__(
        self,
        url: Optional[str] = None,
        title: str = "",
        content: str = "",
        depth: int = 0,
        fetched_at: Optional[datetime] = None,
        index: int = 0,
    ) -> None:
        self.url = url
        self.path = _path_of(url)
        self.title = title
        self.content = content
        self.depth = depth
        self.level = 0
        self.index = index
        self.fetched_at = fetched_at
        self.children: List[DocumentNode] = []
        self._parent: Optional[weakref.ReferenceType[DocumentNode]] = None

    @classmethod
    def from_page(cls, page: PageRecord, index: int = 0) -> DocumentNode:
        return cls(page.url, page.title, page.content, page.depth, page.fetched_at, index)

    @property
    def parent(self) -> Optional[DocumentNode]:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self._parent is None

    def add_child(self, child: DocumentNode) -> None:
        child._parent = weakref.ref(self)
        self.children.append(child)

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "path": self.path,
            "title": self.title,
            "depth": self.depth,
            "level": self.level,
            "index": self.index,
        }
        if include_content:
            data["content"] = self.content
        data["children"] = [c.to_dict(include_content) for c in self.children]
        return data

    def __repr__(self) -> str:
        return f"DocumentNode(url={self.url!r}, level={self.level}, children={len(self.children)})"


class DocumentTree:
    """Root node plus a URL index; read-only once built, apart from re-sorting."""

    def __init__(self, root: Optional[DocumentNode] = None) -> None:
        self.root = root or DocumentNode()
        self.url_index: Dict[str, DocumentNode] = {}
        self.max_depth = 0
        self.total_nodes = 0
        self.built_at = datetime.now()

    def depth_first(self, visit: Visitor) -> None:
        """Pre-order walk. An exception raised by *visit* ends the walk and propagates."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            visit(node)
            stack.extend(reversed(node.children))

    def breadth_first(self, visit: Visitor) -> None:
        queue = deque([self.root])
        while queue:
            node = queue.popleft()
            visit(node)
            queue.extend(node.children)

    def nodes_at_level(self, level: int) -> List[DocumentNode]:
        nodes: List[DocumentNode] = []
        self.depth_first(lambda n: nodes.append(n) if n.level == level else None)
        return nodes

    def find(self, url: str) -> Optional[DocumentNode]:
        return self.url_index.get(url)

    def all_nodes(self) -> List[DocumentNode]:
        """Every node reachable from root, in pre-order."""
        nodes: List[DocumentNode] = []
        self.depth_first(nodes.append)
        return nodes

    def to_dict(self, include_content: bool = True) -> Dict[str, Any]:
        return {
            "root": self.root.to_dict(include_content),
            "max_depth": self.max_depth,
            "total_nodes": self.total_nodes,
            "built_at": self.built_at.isoformat(),
        }


class TreeBuilder:
    """Builds a :class:`DocumentTree` according to a :class:`TreeConfig`."""

    _SORT_KEYS: Dict[str, Callable[[DocumentNode], Any]] = {
        "index": lambda n: n.index,
        "title": lambda n: n.title,
        "url": lambda n: n.url or "",
        "date": lambda n: n.fetched_at or datetime.min,
    }

    def __init__(self, config: Optional[TreeConfig] = None) -> None:
        self.config = config or TreeConfig()
        self._inserted = 0

    def build(self, pages: Iterable[PageRecord]) -> DocumentTree:
        pages = list(pages)
        self._inserted = 0
        if pages:
            root = DocumentNode.from_page(pages[0], index=0)
            tree = DocumentTree(root)
            tree.url_index[pages[0].url] = root
            self._inserted = 1
            rest = pages[1:]
        else:
            tree = DocumentTree()
            rest = []

        for page in rest:
            if page.url in tree.url_index:
                logger.debug("Skipping repeated page %s", page.url)
                continue
            self.add_node(tree, page)

        self.calculate_depth_and_level(tree)
        if self.config.sort_children:
            self.sort_children(tree.root, self.config.sort_by, self.config.sort_order)
        if self.config.auto_index:
            self.auto_index(tree.root)

        tree.total_nodes = len(tree.url_index)
        tree.max_depth = max((n.level for n in tree.all_nodes()), default=0)
        logger.debug("Built tree: %d nodes, max depth %d", tree.total_nodes, tree.max_depth)
        return tree

    def add_node(self, tree: DocumentTree, page: PageRecord) -> Optional[DocumentNode]:
        """Insert *page*; returns the new node, or None when it has no place in the tree."""
        if page.url in tree.url_index:
            raise ValueError(f"node with URL {page.url} already exists")

        node = DocumentNode.from_page(page, index=self._inserted)
        parent = self.find_parent_by_url_hierarchy(node, tree) if self.config.use_url_hierarchy else None
        if parent is None:
            if not self.config.fallback_to_root:
                logger.debug("No parent for %s, left out of the tree", page.url)
                return None
            parent = tree.root

        parent.add_child(node)
        tree.url_index[page.url] = node
        self._inserted += 1
        return node

    @staticmethod
    def find_parent_by_url_hierarchy(node: DocumentNode, tree: DocumentTree) -> Optional[DocumentNode]:
        """
        Closest existing ancestor of *node* by URL path on the same host.

        A candidate qualifies when its path is the dirname of the node's path
        or a strict prefix of it at a ``/`` boundary. The longest candidate
        path wins; equal lengths go to the earliest inserted node.
        """
        if not node.url:
            return None
        path = _comparable(node.path)
        if path == "/":
            return tree.root
        host = _host_of(node.url)
        dirname = posixpath.dirname(path) or "/"

        best: Optional[DocumentNode] = None
        best_len = -1
        # dicts keep insertion order, so the first of equal candidates wins
        for candidate in tree.url_index.values():
            if candidate is node or _host_of(candidate.url) != host:
                continue
            cpath = _comparable(candidate.path)
            if cpath == path:
                continue
            if cpath == dirname or cpath == "/" or path.startswith(cpath + "/"):
                if len(cpath) > best_len:
                    best, best_len = candidate, len(cpath)
        return best

    @staticmethod
    def calculate_depth_and_level(tree: DocumentTree) -> None:
        """Top-down pass: root is level 0, every child is one below its parent."""
        stack = [(tree.root, 0)]
        while stack:
            node, level = stack.pop()
            node.level = level
            node.depth = level
            stack.extend((child, level + 1) for child in node.children)

    def sort_children(self, node: DocumentNode, sort_by: str = "index", order: str = "asc") -> None:
        key = self._SORT_KEYS.get(sort_by)
        if key is None:
            raise ValueError(f"unknown sort key {sort_by!r}")
        stack = [node]
        while stack:
            current = stack.pop()
            current.children.sort(key=key, reverse=order == "desc")
            stack.extend(current.children)

    @staticmethod
    def auto_index(node: DocumentNode, start: int = 0) -> int:
        """Renumber nodes in pre-order; returns the next free index."""
        counter = start
        stack = [node]
        while stack:
            current = stack.pop()
            current.index = counter
            counter += 1
            stack.extend(reversed(current.children))
        return counter
