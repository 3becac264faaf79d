"""
Rebuild the call tree of a trace from its flat span list.

Inputs
------
The spans of one trace, in any order, either as spantree.model.Span objects or
as JSON-decoded Zipkin v1 records (dicts).

Outputs
-------
The root SpanNode, i.e. the node of the span without a parentId, or None when
no such span exists.

Notes
-----
- Input from the query API can be partial: a span may arrive before its parent
  has been collected. Such spans are left out of the tree rather than treated as
  an error.
- Duplicate span ids: the last record wins the id slot. It is linked under a
  parent once, by the first record with that id that names a parent in the
  batch. Root selection still follows input order.
- Records whose id is not hashable (a list or object) are skipped, and a
  parentId of that kind counts as missing.
- Several parent-less spans: the last one in input order becomes the root.
- A span naming itself as parent is left out of the tree.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from spantree.model import Span, span_from_json
from spantree.tree.node import SpanNode

logger = logging.getLogger(__name__)

SpanLike = Union[Span, dict]


def _as_span(record: SpanLike) -> Span:
    return record if isinstance(record, Span) else span_from_json(record)


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def parse_spans(spans: Iterable[SpanLike]) -> Optional[SpanNode]:
    records: List[Span] = []
    nodes: Dict[str, SpanNode] = {}
    for record in spans:
        span = _as_span(record)
        if not _hashable(span.id):
            logger.debug("skipping span with unusable id %r", span.id)
            continue
        records.append(span)
        nodes[span.id] = SpanNode(span, [])

    root: Optional[SpanNode] = None
    linked: Set[str] = set()
    for span in records:
        node = nodes[span.id]
        if not span.parent_id:
            root = node
        elif span.id in linked:
            continue
        elif span.parent_id == span.id:
            logger.debug("span %s names itself as parent, leaving it out of the tree", span.id)
        elif _hashable(span.parent_id) and span.parent_id in nodes:
            nodes[span.parent_id].add_child(node)
            linked.add(span.id)
        else:
            logger.debug("span %s: parent %r not in batch, leaving it out of the tree", span.id, span.parent_id)

    if root is None and records:
        logger.debug("no root span among %d spans", len(records))
    return root


def parse_traces(traces: Iterable[Iterable[SpanLike]]) -> List[SpanNode]:
    """Parse several traces, dropping the ones without a root."""
    roots = (parse_spans(spans) for spans in traces)
    return [root for root in roots if root is not None]
