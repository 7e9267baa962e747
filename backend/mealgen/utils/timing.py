"""[TIMING] spans for provider calls and job runs; grep '[TIMING]' in logs."""

import time
from contextlib import contextmanager
from typing import Iterator

from mealgen.logging import get_logger

logger = get_logger(__name__)

_TIMING_PREFIX = "[TIMING]"


def format_duration(ms: int) -> str:
    """12500 -> '12.5s', 750 -> '750ms'."""
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{ms}ms"


def elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


@contextmanager
def time_span(name: str, **extra: object) -> Iterator[dict]:
    """
    Log how long the block took. The yielded dict can be filled with more
    fields inside the block (e.g. ``span["outcome"] = "failed"``).
    """
    fields: dict = dict(extra)
    start = time.perf_counter()
    try:
        yield fields
    finally:
        ms = elapsed_ms(start)
        parts = [f"elapsed_ms={ms}", f"({format_duration(ms)})"] + [f"{k}={v}" for k, v in fields.items()]
        logger.info("%s %s %s", _TIMING_PREFIX, name, " ".join(parts))
