#!/usr/bin/env python3
"""Opt-in counters and timers for git commands and changelog builds.

Records are appended as JSON lines to METRICS_ROOT/metrics.log, and only
when METRICS_ENABLED=1. Long string labels are truncated.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List

from configs.config import Config

MAX_LABEL_LENGTH = 200


def metrics_file() -> Path:
    return Path(Config.METRICS_ROOT) / "metrics.log"


def _labels(kw: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in kw.items():
        if isinstance(value, str) and len(value) > MAX_LABEL_LENGTH:
            value = value[:MAX_LABEL_LENGTH] + "..."
        out[key] = value
    return out


def incr(name: str, value: Any = 1, **kw) -> None:
    if not Config.METRICS_ENABLED:
        return
    record = {"ts": int(time.time()), "metric": name, "value": value, **_labels(kw)}
    path = metrics_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, separators=(",", ":")) + "\n")


def read_metrics() -> List[Dict[str, Any]]:
    """All records written so far; empty when nothing was recorded."""
    path = metrics_file()
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class Timer:
    """Context manager recording ``<name>.latency_s`` with an ok/error status."""

    def __init__(self, name: str, **kw):
        self.name = name
        self.kw = kw
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        elapsed = time.perf_counter() - self._started
        incr(f"{self.name}.latency_s", value=elapsed, status="ok" if exc_type is None else "error", **self.kw)
