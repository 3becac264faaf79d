"""
Thin client for the Zipkin v1 query API.

  GET /api/v1/trace/{traceId}   -> [span, ...]
  GET /api/v1/traces?...        -> [[span, ...], ...]
  GET /api/v1/services          -> ["svc", ...]
  GET /api/v1/spans?serviceName -> ["span name", ...]
  GET /api/v1/dependencies?endTs -> [{"parent", "child", "callCount"}, ...]

HTTP and decoding failures propagate to the caller unchanged; there is no retry.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urljoin

import requests

from spantree.model import DependencyLink, dependency_link_from_json
from spantree.tree.build import parse_spans, parse_traces
from spantree.tree.node import SpanNode

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


class ZipkinClient:
    def __init__(self, base_url: str, timeout: float = 20.0, default_limit: int = DEFAULT_LIMIT):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.default_limit = default_limit

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = urljoin(self.base_url, path.lstrip("/"))
        # requests leaves None-valued params out of the query string
        r = requests.get(url, params=params, timeout=self.timeout)
        logger.debug("GET %s %s -> %s", url, params or {}, r.status_code)
        r.raise_for_status()
        return r.json()

    def get_trace(self, trace_id: str) -> Tuple[Optional[SpanNode], List[Dict[str, Any]]]:
        """Return (root, raw spans) for one trace."""
        raw = self._get(f"api/v1/trace/{quote(trace_id, safe='')}")
        return parse_spans(raw), raw

    def get_services(self) -> List[str]:
        return self._get("api/v1/services")

    def get_spans(self, service_name: str) -> List[str]:
        return self._get("api/v1/spans", {"serviceName": service_name})

    def get_traces(
        self,
        service_name: str,
        start: int,
        end: int,
        limit: int = 0,
        min_duration: int = 0,
        span_name: str = "all",
        annotation_query: Optional[str] = None,
    ) -> List[SpanNode]:
        """
        Search traces of a service between start and end (epoch milliseconds).
        Traces without a root span are left out of the result.
        """
        params = {
            "annotationQuery": annotation_query,
            "endTs": end,
            "limit": limit if limit > 0 else self.default_limit,
            "lookback": end - start,
            "minDuration": min_duration if min_duration > 0 else None,
            "serviceName": service_name,
            "spanName": span_name,
        }
        return parse_traces(self._get("api/v1/traces", params))

    def get_dependencies(self, end_ts: int) -> List[DependencyLink]:
        return [dependency_link_from_json(d) for d in self._get("api/v1/dependencies", {"endTs": end_ts})]
