"""spantree test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))


def make_span(
    span_id: str,
    parent_id: Optional[str] = None,
    name: str = "op",
    service: Optional[str] = None,
    sr: Optional[int] = None,
    ss: Optional[int] = None,
    cs: Optional[int] = None,
    cr: Optional[int] = None,
    trace_id: str = "t1",
    binary: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build a Zipkin v1 span record with the given core annotations."""
    endpoint = {"serviceName": service or "", "ipv4": "10.0.0.1", "port": 8080}
    annotations = []
    for value, ts in (("cs", cs), ("sr", sr), ("ss", ss), ("cr", cr)):
        if ts is not None:
            annotations.append({"timestamp": ts, "value": value, "endpoint": endpoint})
    span: Dict[str, Any] = {
        "traceId": trace_id,
        "id": span_id,
        "name": name,
        "timestamp": sr or cs,
        "duration": (ss - sr) if (sr and ss) else None,
        "annotations": annotations,
        "binaryAnnotations": binary or [],
    }
    if parent_id is not None:
        span["parentId"] = parent_id
    return span


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def example_spans() -> List[Dict[str, Any]]:
    """The two-span trace: an svc-a root with a child that carries no annotations."""
    return [
        {
            "traceId": "t1",
            "id": "1",
            "name": "root",
            "timestamp": 100,
            "duration": 50,
            "annotations": [
                {"value": "sr", "timestamp": 100, "endpoint": {"serviceName": "svc-a"}},
                {"value": "ss", "timestamp": 140, "endpoint": {"serviceName": "svc-a"}},
            ],
            "binaryAnnotations": [],
        },
        {
            "traceId": "t1",
            "id": "2",
            "parentId": "1",
            "name": "child",
            "timestamp": 110,
            "duration": 20,
            "annotations": [],
            "binaryAnnotations": [],
        },
    ]


@pytest.fixture
def frontend_trace() -> List[Dict[str, Any]]:
    """
    frontend -> (checkout -> payment, catalog), listed out of order.

    Layout:
      a  frontend   sr=1000 ss=1900
      b  checkout   sr=1100 ss=1600   (parent a)
      c  payment    sr=1200 ss=1300   (parent b)
      d  catalog    sr=1650 ss=1800   (parent a)
    """
    return [
        make_span("c", "b", name="charge", service="payment", sr=1200, ss=1300),
        make_span("d", "a", name="list", service="catalog", sr=1650, ss=1800),
        make_span("a", None, name="GET /", service="frontend", sr=1000, ss=1900),
        make_span("b", "a", name="checkout", service="checkout", sr=1100, ss=1600),
    ]
