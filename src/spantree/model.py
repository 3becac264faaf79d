"""
Zipkin v1 span records as immutable dataclasses.

The query API returns spans shaped like:

  {"traceId": "...", "id": "...", "parentId": "...", "name": "get",
   "timestamp": 1500000000000000, "duration": 1500,
   "annotations": [{"timestamp": ..., "value": "sr", "endpoint": {"serviceName": "web", ...}}],
   "binaryAnnotations": [{"key": "sa", "value": true, "endpoint": {...}}]}

Decoding is lenient on content (missing lists, null endpoints, empty parentId)
but strict on shape: a span record that is not a mapping raises TypeError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Endpoint:
    service_name: str
    ipv4: Optional[str] = None
    port: Optional[int] = None


@dataclass(frozen=True)
class Annotation:
    """A timed event on a span (cs/sr/ss/cr or an application defined value)."""

    timestamp: Optional[int]
    value: Optional[str]
    endpoint: Optional[Endpoint] = None


@dataclass(frozen=True)
class BinaryAnnotation:
    """A keyed fact on a span. Binary annotations carry no timestamp."""

    key: Optional[str]
    value: Any
    endpoint: Optional[Endpoint] = None

    # Lets timing lookups scan annotations and binary annotations uniformly.
    timestamp = None


@dataclass(frozen=True)
class Span:
    trace_id: Optional[str]
    id: str
    parent_id: Optional[str]
    name: Optional[str] = None
    timestamp: Optional[int] = None
    duration: Optional[int] = None
    annotations: Tuple[Annotation, ...] = ()
    binary_annotations: Tuple[BinaryAnnotation, ...] = ()


@dataclass(frozen=True)
class DependencyLink:
    parent: str
    child: str
    call_count: int


# --- Decoding -------------------------------------------------------------------

def endpoint_from_json(raw: Any) -> Optional[Endpoint]:
    if not isinstance(raw, dict):
        return None
    return Endpoint(
        service_name=raw.get("serviceName") or "",
        ipv4=raw.get("ipv4"),
        port=raw.get("port"),
    )


def annotation_from_json(raw: Dict[str, Any]) -> Annotation:
    return Annotation(
        timestamp=raw.get("timestamp"),
        value=raw.get("value"),
        endpoint=endpoint_from_json(raw.get("endpoint")),
    )


def binary_annotation_from_json(raw: Dict[str, Any]) -> BinaryAnnotation:
    return BinaryAnnotation(
        key=raw.get("key"),
        value=raw.get("value"),
        endpoint=endpoint_from_json(raw.get("endpoint")),
    )


def span_from_json(raw: Dict[str, Any]) -> Span:
    """Decode one JSON span record. Entries of the annotation lists that are not objects are skipped."""
    if not isinstance(raw, dict):
        raise TypeError(f"span record must be a JSON object, got {type(raw).__name__}")

    annotations = []
    for item in raw.get("annotations") or []:
        if isinstance(item, dict):
            annotations.append(annotation_from_json(item))
        else:
            logger.debug("span %s: skipping malformed annotation %r", raw.get("id"), item)

    binary_annotations = []
    for item in raw.get("binaryAnnotations") or []:
        if isinstance(item, dict):
            binary_annotations.append(binary_annotation_from_json(item))
        else:
            logger.debug("span %s: skipping malformed binary annotation %r", raw.get("id"), item)

    return Span(
        trace_id=raw.get("traceId"),
        id=raw.get("id"),
        # "" and missing both mean "root"
        parent_id=raw.get("parentId") or None,
        name=raw.get("name"),
        timestamp=raw.get("timestamp"),
        duration=raw.get("duration"),
        annotations=tuple(annotations),
        binary_annotations=tuple(binary_annotations),
    )


def dependency_link_from_json(raw: Dict[str, Any]) -> DependencyLink:
    if not isinstance(raw, dict):
        raise TypeError(f"dependency link must be a JSON object, got {type(raw).__name__}")
    return DependencyLink(
        parent=raw.get("parent"),
        child=raw.get("child"),
        call_count=int(raw.get("callCount") or 0),
    )
