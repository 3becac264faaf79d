"""Tests for the SpanStats accumulator."""
from __future__ import annotations

from conftest import make_span

from spantree.model import Annotation, Span, span_from_json
from spantree.stats import SpanStats


class TestSpanStats:
    """Tests for accumulate/merge."""

    def test_defaults(self) -> None:
        stats = SpanStats()

        assert stats.count == 0
        assert stats.duration == 0
        assert stats.mean_duration == 0.0

    def test_accumulate_server_time(self) -> None:
        stats = SpanStats()

        stats.accumulate(span_from_json(make_span("s", service="x", sr=100, ss=140)))

        assert stats.count == 1
        assert stats.duration == 40

    def test_accumulate_returns_self(self) -> None:
        stats = SpanStats()
        span = span_from_json(make_span("s", service="x", sr=1, ss=3))

        assert stats.accumulate(span).accumulate(span) is stats
        assert (stats.count, stats.duration) == (2, 4)

    def test_counts_without_server_annotations(self) -> None:
        stats = SpanStats()

        stats.accumulate(span_from_json(make_span("s", service="x", cs=10, cr=90)))
        stats.accumulate(span_from_json(make_span("t", service="x", sr=10)))

        assert stats.count == 2
        assert stats.duration == 0

    def test_zero_timestamp_contributes_nothing(self) -> None:
        span = Span(trace_id="t", id="s", parent_id=None,
                    annotations=(Annotation(timestamp=0, value="sr"), Annotation(timestamp=50, value="ss")))

        stats = SpanStats().accumulate(span)

        assert (stats.count, stats.duration) == (1, 0)

    def test_negative_contribution_is_kept(self) -> None:
        stats = SpanStats().accumulate(span_from_json(make_span("s", service="x", sr=100, ss=70)))

        assert stats.duration == -30

    def test_merge_and_mean(self) -> None:
        a = SpanStats(count=2, duration=30)
        b = SpanStats(count=1, duration=30)

        a.merge(b)

        assert (a.count, a.duration) == (3, 60)
        assert a.mean_duration == 20.0
