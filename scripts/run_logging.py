#!/usr/bin/env python3
"""Status lines and per-run log capture for export runs."""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone


class TeeStream:
    def __init__(self, *streams: object) -> None:
        self.streams = streams

    def write(self, text: str) -> int:
        for stream in self.streams:
            stream.write(text)
        return len(text)

    def flush(self) -> None:
        for stream in self.streams:
            stream.flush()

    def isatty(self) -> bool:
        return any(getattr(stream, "isatty", lambda: False)() for stream in self.streams)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _log_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if value is None:
        return "null"
    text = str(value)
    if re.fullmatch(r"[A-Za-z0-9._:/+\-]+", text):
        return text
    return json.dumps(text, ensure_ascii=True)


def log_event(event: str, **fields: object) -> None:
    """Print one ``EVENT key=value ...`` status line."""
    parts = [event]
    for key, value in fields.items():
        parts.append(f"{key}={_log_value(value)}")
    print(" ".join(parts))


def format_exception_message(exc: BaseException) -> str:
    text = str(exc).strip()
    if text:
        return text
    rep = repr(exc).strip()
    if rep and rep != f"{type(exc).__name__}()":
        return rep
    return type(exc).__name__
