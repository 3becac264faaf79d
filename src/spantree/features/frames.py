"""
Tabular views of reconstructed traces.

- tree_frame: one row per span of a single trace, breadth-first, with depth and
  the resolved service/core timestamps (what the trace view renders).
- service_stats_frame: one row per service from a SpanNode.service_span_stats() rollup.
- traces_service_stats_frame: per-service rollup across many traces (search view),
  plus n_traces = number of traces the service shows up in.

Durations are microseconds, as in the Zipkin v1 wire format. Spans whose service
could not be resolved are reported under "unknown".
"""
from __future__ import annotations

from typing import Dict, Iterable, Optional

import pandas as pd

from spantree.stats import UNKNOWN_SERVICE, SpanStats
from spantree.tree.node import SpanNode

TREE_COLUMNS = [
    "depth", "span_id", "parent_id", "name", "service_name",
    "timestamp", "duration",
    "server_receive", "server_send", "client_send", "client_receive",
]

STATS_COLUMNS = ["service_name", "count", "duration", "mean_duration"]


def _label(service_name: Optional[str]) -> str:
    return service_name if service_name else UNKNOWN_SERVICE


def tree_frame(root: Optional[SpanNode]) -> pd.DataFrame:
    if root is None:
        return pd.DataFrame(columns=TREE_COLUMNS)

    rows = []
    for node, depth in root.entries():
        span = node.span
        rows.append({
            "depth": depth,
            "span_id": span.id,
            "parent_id": span.parent_id,
            "name": span.name,
            "service_name": _label(node.service_name),
            "timestamp": span.timestamp,
            "duration": span.duration,
            "server_receive": node.server_receive,
            "server_send": node.server_send,
            "client_send": node.client_send,
            "client_receive": node.client_receive,
        })
    df = pd.DataFrame.from_records(rows, columns=TREE_COLUMNS)
    for col in ("timestamp", "duration", "server_receive", "server_send", "client_send", "client_receive"):
        df[col] = df[col].astype("Int64")
    return df


def _merge_labelled(stats: Dict[Optional[str], SpanStats], into: Dict[str, SpanStats]) -> None:
    # None and "" both end up in the unknown bucket
    for service_name, s in stats.items():
        into.setdefault(_label(service_name), SpanStats()).merge(s)


def service_stats_frame(stats: Dict[Optional[str], SpanStats]) -> pd.DataFrame:
    merged: Dict[str, SpanStats] = {}
    _merge_labelled(stats, merged)
    if not merged:
        return pd.DataFrame(columns=STATS_COLUMNS)

    df = pd.DataFrame.from_records(
        [
            {"service_name": name, "count": s.count, "duration": s.duration, "mean_duration": s.mean_duration}
            for name, s in merged.items()
        ],
        columns=STATS_COLUMNS,
    )
    return df.sort_values("service_name", kind="stable").reset_index(drop=True)


def traces_service_stats_frame(roots: Iterable[SpanNode]) -> pd.DataFrame:
    merged: Dict[str, SpanStats] = {}
    n_traces: Dict[str, int] = {}
    for root in roots:
        per_trace: Dict[str, SpanStats] = {}
        _merge_labelled(root.service_span_stats(), per_trace)
        for name in per_trace:
            n_traces[name] = n_traces.get(name, 0) + 1
        for name, s in per_trace.items():
            merged.setdefault(name, SpanStats()).merge(s)

    df = service_stats_frame(merged)
    if df.empty:
        return pd.DataFrame(columns=STATS_COLUMNS + ["n_traces"])
    df["n_traces"] = df["service_name"].map(n_traces).astype(int)
    return df
