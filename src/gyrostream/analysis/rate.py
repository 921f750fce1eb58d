from __future__ import annotations

from collections import deque
from typing import Deque, Iterable


class RateController:
    """
    Estimate the dispatch rate from event timestamps.

    Notes
    -----
    - Timestamps are assumed to be in seconds (monotonic increasing).
    - The estimate covers only the most recent ``window_size`` events so it
      follows rate changes within a couple of seconds at 10-50 Hz.
    """

    def __init__(self, window_size: int = 50, default_hz: float = 0.0) -> None:
        if window_size <= 1:
            raise ValueError("window_size must be > 1")
        self._times: Deque[float] = deque(maxlen=window_size)
        self.default_hz = float(default_hz)

    def add_sample_time(self, t: float) -> None:
        """
        Append a new event timestamp.

        Parameters
        ----------
        t:
            Timestamp in seconds (monotonic increasing).
        """
        self._times.append(float(t))

    def feed_times(self, times: Iterable[float]) -> None:
        """Convenience method to bulk-add timestamps."""
        for t in times:
            self.add_sample_time(t)

    @property
    def estimated_hz(self) -> float:
        """Estimate Hz from the current timestamp window."""
        if len(self._times) < 2:
            return self.default_hz
        span = self._times[-1] - self._times[0]
        if span <= 0:
            return self.default_hz
        return (len(self._times) - 1) / span

    @property
    def buffer_size(self) -> int:
        """Number of timestamps currently in the window."""
        return len(self._times)

    def reset(self) -> None:
        """Clear all timestamps."""
        self._times.clear()
