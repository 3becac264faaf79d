"""
Annotation lookups on a single span.

Timing codes (Zipkin v1 core annotations):
  cs = client send, sr = server receive, ss = server send, cr = client receive

Service identity comes from annotation endpoints, in priority order:
  1) server-side timed annotations (sr/ss)
  2) address binary annotations (sa = server address, lc = local component, ca = client address)
  3) client-side timed annotations (cs/cr)
"""
from __future__ import annotations

from itertools import chain
from typing import Iterable, Optional

from spantree.model import Span

CLIENT_SEND = "cs"
SERVER_RECEIVE = "sr"
SERVER_SEND = "ss"
CLIENT_RECEIVE = "cr"

SERVER_VALUES = (SERVER_RECEIVE, SERVER_SEND)
CLIENT_VALUES = (CLIENT_SEND, CLIENT_RECEIVE)
ADDRESS_KEYS = ("sa", "lc", "ca")


def find_timestamp(span: Span, value: str) -> Optional[int]:
    """
    Timestamp of the first annotation (then binary annotation) with this value
    and a non-zero timestamp, or None.
    """
    for annotation in chain(span.annotations, span.binary_annotations):
        if annotation.value == value and annotation.timestamp:
            return annotation.timestamp
    return None


def _first_service_name(candidates: Iterable) -> Optional[str]:
    for annotation in candidates:
        if annotation.endpoint is not None and annotation.endpoint.service_name:
            return annotation.endpoint.service_name
    return None


def resolve_service_name(span: Span) -> Optional[str]:
    server = (a for a in span.annotations if a.endpoint is not None and a.value in SERVER_VALUES)
    name = _first_service_name(server)
    if name:
        return name

    address = (b for b in span.binary_annotations if b.endpoint is not None and b.key in ADDRESS_KEYS)
    name = _first_service_name(address)
    if name:
        return name

    # fall back to the caller's view of the span
    client = (a for a in span.annotations if a.endpoint is not None and a.value in CLIENT_VALUES)
    return _first_service_name(client)
