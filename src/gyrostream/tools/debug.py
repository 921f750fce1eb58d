"""Minimal helpers for opt-in debug/instrumentation hooks."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Iterator

DEBUG_ENV_VAR = "GYROSTREAM_DEBUG"

logger = logging.getLogger(__name__)


def debug_enabled() -> bool:
    """Return True when lightweight instrumentation should run."""
    return os.getenv(DEBUG_ENV_VAR, "").lower() in {"1", "true", "yes", "on"}


@contextmanager
def time_block(label: str, *, enabled: bool | None = None) -> Iterator[None]:
    """
    Context manager that logs elapsed time when debugging is enabled.

    The overhead is a couple of perf_counter() calls when disabled.
    """
    if enabled is None:
        enabled = debug_enabled()
    if not enabled:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("%s took %.3f ms", label, elapsed_ms)
