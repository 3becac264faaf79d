from __future__ import annotations

from collections import deque
from typing import Dict, Iterator, List, Optional, Tuple

from spantree.model import Span
from spantree.stats import SpanStats
from spantree.tree.annotations import (
    CLIENT_RECEIVE,
    CLIENT_SEND,
    SERVER_RECEIVE,
    SERVER_SEND,
    find_timestamp,
    resolve_service_name,
)


class SpanNode:
    """
    One span in a reconstructed call tree.

    Children keep the order in which they were attached during assembly, which
    follows input order rather than start time. Core timestamps (sr/ss/cr/cs)
    are resolved once at construction and are None when the span lacks them.
    """

    def __init__(self, span: Span, children: Optional[List["SpanNode"]] = None):
        self.span = span
        self.children: List[SpanNode] = children if children is not None else []

        self.server_receive = find_timestamp(span, SERVER_RECEIVE)
        self.server_send = find_timestamp(span, SERVER_SEND)
        self.client_receive = find_timestamp(span, CLIENT_RECEIVE)
        self.client_send = find_timestamp(span, CLIENT_SEND)

        self._service_name: Optional[str] = None
        self._service_resolved = False

    def __repr__(self) -> str:
        return f"SpanNode(id={self.span.id!r}, name={self.span.name!r}, children={len(self.children)})"

    def __iter__(self) -> Iterator[Tuple["SpanNode", int]]:
        return self.entries()

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())

    def entries(self) -> Iterator[Tuple["SpanNode", int]]:
        """Breadth-first (node, depth) pairs, starting with this node at depth 0."""
        queue = deque([(self, 0)])
        while queue:
            node, depth = queue.popleft()
            for child in node.children:
                queue.append((child, depth + 1))
            yield node, depth

    @property
    def service_name(self) -> Optional[str]:
        if not self._service_resolved:
            self._service_name = resolve_service_name(self.span)
            self._service_resolved = True
        return self._service_name

    def add_child(self, node: "SpanNode") -> None:
        self.children.append(node)

    def service_span_stats(
        self, stats: Optional[Dict[Optional[str], SpanStats]] = None
    ) -> Dict[Optional[str], SpanStats]:
        """
        Accumulate SpanStats per service over this subtree, visiting each node
        before its children. Spans with no resolvable service land under None.
        """
        if stats is None:
            stats = {}
        stack = [self]
        while stack:
            node = stack.pop()
            bucket = stats.get(node.service_name)
            if bucket is None:
                bucket = stats[node.service_name] = SpanStats()
            bucket.accumulate(node.span)
            stack.extend(reversed(node.children))
        return stats
