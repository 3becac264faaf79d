"""
Settings for talking to a Zipkin query service.

Precedence (lowest to highest): built-in defaults, YAML file, environment
(ZIPKIN_URL, ZIPKIN_TIMEOUT), explicit CLI options.

YAML layout:

  zipkin:
    url: http://zipkin.internal:9411
    timeout: 30
    default_limit: 200
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml  # PyYAML

DEFAULT_URL = "http://localhost:9411"


@dataclass(frozen=True)
class ZipkinConfig:
    url: str = DEFAULT_URL
    timeout: float = 20.0
    default_limit: int = 100


def _as_float(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be a number, got {value!r}") from None


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be an integer, got {value!r}") from None


def _apply(cfg: ZipkinConfig, section: Mapping[str, Any]) -> ZipkinConfig:
    changes = {}
    if section.get("url"):
        changes["url"] = str(section["url"]).rstrip("/")
    if section.get("timeout") is not None:
        changes["timeout"] = _as_float(section["timeout"], "zipkin.timeout")
    if section.get("default_limit") is not None:
        changes["default_limit"] = _as_int(section["default_limit"], "zipkin.default_limit")
    return replace(cfg, **changes)


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> ZipkinConfig:
    environ = os.environ if environ is None else environ
    cfg = ZipkinConfig()

    if path is not None:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        section = raw.get("zipkin") or {}
        if not isinstance(section, dict):
            raise ValueError(f"{path}: 'zipkin' must be a mapping")
        cfg = _apply(cfg, section)

    cfg = _apply(cfg, {
        "url": environ.get("ZIPKIN_URL"),
        "timeout": environ.get("ZIPKIN_TIMEOUT") or None,
    })
    return cfg
