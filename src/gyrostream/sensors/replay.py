"""
Replay a recorded gyro log as if it were a live sensor.

Two line formats are understood, matching what the MPU6050 logger writes:

  - JSON lines with (at least) ``gx``, ``gy``, ``gz``
  - legacy CSV ``timestamp_ns,ax,ay,az,gx,gy,gz``

Rates in the log are deg/s by default (``units="deg"``); pass
``units="rad"`` for logs already in rad/s. Records are played one per poll
and the log loops when it runs out.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QObject

from ..core.models import GyroSample
from .base import PolledGyroDriver

logger = logging.getLogger(__name__)


def _parse_json_line(text: str) -> tuple[float, float, float] | None:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Bad JSON in gyro log: %r (%s)", text, exc)
        return None
    if not isinstance(obj, dict):
        return None
    try:
        return float(obj["gx"]), float(obj["gy"]), float(obj["gz"])
    except KeyError as exc:
        logger.warning("Missing field %s in gyro log line: %r", exc, obj)
    except (TypeError, ValueError) as exc:
        logger.warning("Bad field value in gyro log line %r (%s)", obj, exc)
    return None


def _parse_csv_line(text: str) -> tuple[float, float, float] | None:
    parts = text.split(",")
    if len(parts) < 7:
        logger.warning(
            "Expected at least 7 comma-separated values in gyro log, got %d: %r",
            len(parts),
            text,
        )
        return None
    try:
        gx, gy, gz = map(float, parts[4:7])
    except ValueError as exc:
        logger.warning("Bad CSV field in gyro log line %r (%s)", text, exc)
        return None
    return gx, gy, gz


def parse_line(line: str, units: str = "deg") -> GyroSample | None:
    """
    Parse one log line into a :class:`GyroSample` in rad/s.

    Blank lines, header rows and invalid lines return ``None``.
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    if text[0] == "{":
        rates = _parse_json_line(text)
    elif text[0].isalpha():
        # CSV header row
        return None
    else:
        rates = _parse_csv_line(text)
    if rates is None:
        return None
    if units == "deg":
        rates = tuple(math.radians(v) for v in rates)
    return GyroSample(*rates)


def load_log(path: str | Path, units: str = "deg") -> List[GyroSample]:
    samples: List[GyroSample] = []
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            sample = parse_line(line, units=units)
            if sample is not None:
                samples.append(sample)
    return samples


class ReplayGyro(PolledGyroDriver):
    """Gyro driver backed by a recorded log file."""

    def __init__(
        self,
        path: str | Path,
        *,
        units: str = "deg",
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        if units not in ("deg", "rad"):
            raise ValueError(f"units must be 'deg' or 'rad', got {units!r}")
        self._path = Path(path).expanduser()
        self._units = units
        self._samples: List[GyroSample] = []
        self._index = 0

    def is_available(self) -> bool:
        if not self._path.is_file():
            logger.info("Replay log %s not found", self._path)
            return False
        try:
            self._samples = load_log(self._path, units=self._units)
        except OSError as exc:
            logger.warning("Cannot read replay log %s: %s", self._path, exc)
            return False
        if not self._samples:
            logger.info("Replay log %s holds no gyro records", self._path)
            return False
        return True

    def _open(self, update_interval_s: float) -> None:
        if not self._samples:
            self._samples = load_log(self._path, units=self._units)
        self._index = 0

    def _read(self) -> Optional[GyroSample]:
        if not self._samples:
            return None
        sample = self._samples[self._index]
        self._index = (self._index + 1) % len(self._samples)
        return sample
