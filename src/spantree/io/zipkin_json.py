"""
Zipkin v1 JSON trace reader (for payloads saved from the query API).

- Accepts a file holding one trace (array of spans), several traces (array of
  arrays, the /api/v1/traces shape), or span objects written one per line /
  concatenated without separators.
- Loose span objects are grouped into traces by traceId, in first-seen order.
- Returns plain JSON-decoded records; decoding into dataclasses happens in
  spantree.model.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Generator, List

import orjson

logger = logging.getLogger(__name__)


# --- payload splitting ---------------------------------------------------------

def _iter_json_documents(data: bytes) -> Generator[Any, None, None]:
    """Top-level JSON values of a saved payload, whole-file or one value after another."""
    try:
        yield orjson.loads(data)
        return
    except orjson.JSONDecodeError:
        pass

    # NDJSON or values written back to back
    txt = data.decode("utf-8", errors="ignore")
    decoder = json.JSONDecoder()
    pos = 0
    while pos < len(txt):
        if txt[pos].isspace():
            pos += 1
            continue
        try:
            obj, pos = decoder.raw_decode(txt, pos)
        except json.JSONDecodeError:
            logger.debug("skipping undecodable content at offset %d", pos)
            next_line = txt.find("\n", pos)
            if next_line == -1:
                break
            pos = next_line + 1
            continue
        yield obj


def _is_span(obj: Any) -> bool:
    return isinstance(obj, dict) and "id" in obj


def group_by_trace(spans: List[Dict[str, Any]]) -> List[List[Dict[str, Any]]]:
    traces: Dict[Any, List[Dict[str, Any]]] = {}
    for span in spans:
        traces.setdefault(span.get("traceId"), []).append(span)
    return list(traces.values())


# --- Public API ----------------------------------------------------------------

def parse_trace_payload(data: bytes) -> List[List[Dict[str, Any]]]:
    """Split a raw payload into traces, each a list of span records."""
    traces: List[List[Dict[str, Any]]] = []
    loose: List[Dict[str, Any]] = []

    for doc in _iter_json_documents(data):
        if _is_span(doc):
            loose.append(doc)
        elif isinstance(doc, list) and doc and all(isinstance(item, list) for item in doc):
            traces.extend([s for s in trace if _is_span(s)] for trace in doc)
        elif isinstance(doc, list):
            spans = [s for s in doc if _is_span(s)]
            if spans:
                traces.append(spans)
        else:
            logger.debug("ignoring non-span JSON value of type %s", type(doc).__name__)

    if loose:
        traces.extend(group_by_trace(loose))
    traces = [t for t in traces if t]
    if not traces:
        raise ValueError("no Zipkin span records found")
    return traces


def read_trace_file(path: Path) -> List[List[Dict[str, Any]]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")
    traces = parse_trace_payload(path.read_bytes())
    logger.info("read %d trace(s), %d span(s) from %s", len(traces), sum(map(len, traces)), path)
    return traces
