"""Synthetic gyro source for demos and bench tests without hardware."""

from __future__ import annotations

import time
from typing import Callable, Optional, Sequence

import numpy as np
from PySide6.QtCore import QObject

from ..core.models import GyroSample
from .base import PolledGyroDriver


class SyntheticGyro(PolledGyroDriver):
    """
    Slow sinusoidal sweeps on each axis plus white noise.

    ``seed`` makes the noise reproducible; ``clock`` returns seconds and is
    only swapped out in tests.
    """

    def __init__(
        self,
        *,
        amplitude_rad_s: Sequence[float] = (0.6, 0.4, 0.8),
        frequency_hz: Sequence[float] = (0.25, 0.4, 0.15),
        noise_rad_s: float = 0.005,
        seed: int = 0,
        clock: Callable[[], float] = time.monotonic,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._amplitude = np.asarray(amplitude_rad_s, dtype=float)
        self._frequency = np.asarray(frequency_hz, dtype=float)
        self._phase = np.array([0.0, np.pi / 3.0, 2.0 * np.pi / 3.0])
        self._noise = max(0.0, float(noise_rad_s))
        self._seed = int(seed)
        self._rng = np.random.default_rng(self._seed)
        self._clock = clock
        self._t0 = 0.0

    def _open(self, update_interval_s: float) -> None:
        self._rng = np.random.default_rng(self._seed)
        self._t0 = self._clock()

    def _read(self) -> Optional[GyroSample]:
        t = self._clock() - self._t0
        rates = self._amplitude * np.sin(2.0 * np.pi * self._frequency * t + self._phase)
        if self._noise > 0.0:
            rates = rates + self._rng.normal(0.0, self._noise, size=3)
        return GyroSample(float(rates[0]), float(rates[1]), float(rates[2]))
