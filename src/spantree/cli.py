from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import List, Optional

import click
import pandas as pd
import requests

from spantree.api.zipkin import ZipkinClient
from spantree.config import ZipkinConfig, load_config
from spantree.features.frames import traces_service_stats_frame
from spantree.io.zipkin_json import read_trace_file
from spantree.stats import UNKNOWN_SERVICE
from spantree.tree.build import parse_spans
from spantree.tree.node import SpanNode


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="YAML settings file (see spantree.config).")
@click.option("--zipkin-url", default=None, help="Zipkin base URL; overrides config and ZIPKIN_URL.")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging on stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[Path], zipkin_url: Optional[str], verbose: bool) -> None:
    """spantree CLI (Zipkin spans → call trees → per-service stats)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = load_config(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    if zipkin_url:
        cfg = ZipkinConfig(url=zipkin_url.rstrip("/"), timeout=cfg.timeout, default_limit=cfg.default_limit)
    ctx.obj = cfg


def _client(ctx: click.Context) -> ZipkinClient:
    cfg: ZipkinConfig = ctx.obj
    return ZipkinClient(cfg.url, timeout=cfg.timeout, default_limit=cfg.default_limit)


def _load_roots(input_path: Path, trace_id: Optional[str] = None) -> List[SpanNode]:
    try:
        traces = read_trace_file(input_path)
    except (FileNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc))
    if trace_id:
        traces = [t for t in traces if any(s.get("traceId") == trace_id for s in t)]
        if not traces:
            raise click.ClickException(f"trace {trace_id} not found in {input_path}")
    try:
        roots = [parse_spans(t) for t in traces]
    except TypeError as exc:
        raise click.ClickException(f"{input_path}: {exc}")
    skipped = sum(1 for r in roots if r is None)
    if skipped:
        click.echo(f"[load] {skipped} trace(s) without a root span skipped", err=True)
    return [r for r in roots if r is not None]


def _node_line(node: SpanNode) -> str:
    span = node.span
    service = node.service_name or UNKNOWN_SERVICE
    duration = f"{span.duration}us" if span.duration is not None else "-"
    return f"{service} {span.name or '?'} [{span.id}] {duration}"


def render_tree(root: SpanNode) -> List[str]:
    """Indented lines, one per span, parents directly above their children."""
    lines = []
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        lines.append("  " * depth + _node_line(node))
        stack.extend((child, depth + 1) for child in reversed(node.children))
    return lines


def _emit_stats(df: pd.DataFrame, out_path: Optional[Path], tag: str) -> None:
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False)
        click.echo(f"[{tag}] wrote {len(df)} services → {out_path}", err=True)
    elif df.empty:
        click.echo(f"[{tag}] no spans", err=True)
    else:
        click.echo(df.to_string(index=False))


# ---------------- tree ----------------
@main.command("tree")
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)
@click.option("--trace-id", default=None, help="Only render this trace.")
def tree_cmd(input_path: Path, trace_id: Optional[str]) -> None:
    """Print each trace in a saved Zipkin JSON file as an indented call tree."""
    roots = _load_roots(input_path, trace_id)
    for i, root in enumerate(roots):
        if i:
            click.echo("")
        click.echo(f"trace {root.span.trace_id} ({len(root)} spans)")
        for line in render_tree(root):
            click.echo("  " + line)


# ---------------- stats ----------------
@main.command("stats")
@click.option("--input", "input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True)
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write CSV instead of printing a table.")
def stats_cmd(input_path: Path, out_path: Optional[Path]) -> None:
    """Per-service span counts and server time across all traces in a file."""
    roots = _load_roots(input_path)
    _emit_stats(traces_service_stats_frame(roots), out_path, "stats")


# ---------------- remote: services / spans ----------------
@main.command("services")
@click.pass_context
def services_cmd(ctx: click.Context) -> None:
    """List services known to Zipkin."""
    try:
        services = _client(ctx).get_services()
    except requests.RequestException as exc:
        raise click.ClickException(f"Zipkin request failed: {exc}")
    for name in services:
        click.echo(name)


@main.command("spans")
@click.argument("service_name")
@click.pass_context
def spans_cmd(ctx: click.Context, service_name: str) -> None:
    """List span names recorded for SERVICE_NAME."""
    try:
        names = _client(ctx).get_spans(service_name)
    except requests.RequestException as exc:
        raise click.ClickException(f"Zipkin request failed: {exc}")
    for name in names:
        click.echo(name)


# ---------------- remote: trace ----------------
@main.command("trace")
@click.argument("trace_id")
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Also save the raw spans as JSON.")
@click.pass_context
def trace_cmd(ctx: click.Context, trace_id: str, out_path: Optional[Path]) -> None:
    """Fetch one trace and print it as a call tree."""
    try:
        root, raw = _client(ctx).get_trace(trace_id)
    except requests.RequestException as exc:
        raise click.ClickException(f"Zipkin request failed: {exc}")
    except TypeError as exc:
        raise click.ClickException(f"trace {trace_id}: {exc}")

    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(raw, indent=2), encoding="utf-8")
        click.echo(f"[trace] wrote {len(raw)} spans → {out_path}", err=True)
    if root is None:
        raise click.ClickException(f"trace {trace_id} has no root span ({len(raw)} spans received)")
    for line in render_tree(root):
        click.echo(line)


# ---------------- remote: search ----------------
@main.command("search")
@click.argument("service_name")
@click.option("--lookback-ms", type=click.IntRange(min=1), default=3_600_000, show_default=True)
@click.option("--end-ts", type=int, default=None, help="Epoch ms; defaults to now.")
@click.option("--limit", type=int, default=0, help="Max traces (server default when 0).")
@click.option("--min-duration", type=int, default=0, help="Minimum trace duration, microseconds.")
@click.option("--span-name", default="all", show_default=True)
@click.option("--annotation-query", default=None)
@click.option("--out", "out_path", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def search_cmd(ctx: click.Context, service_name: str, lookback_ms: int, end_ts: Optional[int], limit: int,
               min_duration: int, span_name: str, annotation_query: Optional[str],
               out_path: Optional[Path]) -> None:
    """Search traces of SERVICE_NAME and summarise them per service."""
    end = end_ts if end_ts is not None else int(time.time() * 1000)
    try:
        roots = _client(ctx).get_traces(
            service_name, end - lookback_ms, end, limit, min_duration,
            span_name=span_name, annotation_query=annotation_query,
        )
    except requests.RequestException as exc:
        raise click.ClickException(f"Zipkin request failed: {exc}")
    except TypeError as exc:
        raise click.ClickException(f"malformed search response: {exc}")
    click.echo(f"[search] {len(roots)} trace(s)", err=True)
    _emit_stats(traces_service_stats_frame(roots), out_path, "search")


# ---------------- remote: dependencies ----------------
@main.command("dependencies")
@click.option("--end-ts", type=int, default=None, help="Epoch ms; defaults to now.")
@click.pass_context
def dependencies_cmd(ctx: click.Context, end_ts: Optional[int]) -> None:
    """Print the service dependency links (parent → child, call count)."""
    end = end_ts if end_ts is not None else int(time.time() * 1000)
    try:
        links = _client(ctx).get_dependencies(end)
    except requests.RequestException as exc:
        raise click.ClickException(f"Zipkin request failed: {exc}")
    except TypeError as exc:
        raise click.ClickException(f"malformed dependencies response: {exc}")
    for link in links:
        click.echo(f"{link.parent} → {link.child} {link.call_count}")


if __name__ == "__main__":
    main()
