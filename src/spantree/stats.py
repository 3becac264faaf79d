from __future__ import annotations

from dataclasses import dataclass

from spantree.model import Span
from spantree.tree.annotations import SERVER_RECEIVE, SERVER_SEND

# Label used for the bucket of spans whose service could not be resolved.
UNKNOWN_SERVICE = "unknown"


def _first_timed(span: Span, value: str):
    return next((a for a in span.annotations if a.value == value), None)


@dataclass
class SpanStats:
    """Span count and summed server-side time (ss - sr, microseconds) for one service."""

    count: int = 0
    duration: int = 0

    def accumulate(self, span: Span) -> "SpanStats":
        self.count += 1
        sr = _first_timed(span, SERVER_RECEIVE)
        ss = _first_timed(span, SERVER_SEND)
        # ss before sr is left as a negative contribution
        if sr and ss and sr.timestamp and ss.timestamp:
            self.duration += ss.timestamp - sr.timestamp
        return self

    def merge(self, other: "SpanStats") -> "SpanStats":
        self.count += other.count
        self.duration += other.duration
        return self

    @property
    def mean_duration(self) -> float:
        return self.duration / self.count if self.count else 0.0
