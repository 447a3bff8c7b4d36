"""Timing spans around generative backend calls."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from .logger import log_event


@contextmanager
def span(session_id: str, name: str, **fields: Any) -> Iterator[None]:
    """Emit a ``span`` event with the elapsed milliseconds, also when the block raises."""

    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except BaseException as exc:
        outcome = type(exc).__name__
        raise
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_event("span", session_id, node=name, ms=elapsed_ms, outcome=outcome, **fields)


__all__ = ["span"]
