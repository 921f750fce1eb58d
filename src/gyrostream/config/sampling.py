"""Stream rate presets and the timing derived from them."""
from __future__ import annotations

import math
from typing import Tuple

SUPPORTED_RATES_HZ: Tuple[int, ...] = (10, 20, 50)
DEFAULT_RATE_HZ = 20

# The driver samples a little faster than the output cadence so every tick
# finds a fresh reading.
DEFAULT_OVERSAMPLE_FACTOR = 0.9


def nearest_supported_rate(value_hz: float, default: int = DEFAULT_RATE_HZ) -> int:
    """Snap ``value_hz`` to the closest entry of :data:`SUPPORTED_RATES_HZ`."""
    try:
        hz = float(value_hz)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(hz) or hz <= 0.0:
        return default
    return min(SUPPORTED_RATES_HZ, key=lambda rate: (abs(rate - hz), rate))


def tick_interval_ms(rate_hz: float) -> int:
    """Return the streaming timer interval for ``rate_hz``."""
    return max(1, int(round(1000.0 / float(rate_hz))))


def driver_interval_s(
    rate_hz: float, oversample_factor: float = DEFAULT_OVERSAMPLE_FACTOR
) -> float:
    """Return the sensor update interval used while streaming at ``rate_hz``."""
    return float(oversample_factor) / float(rate_hz)
