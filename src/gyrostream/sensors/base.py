"""Driver interface shared by every gyro source."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from PySide6.QtCore import QObject, Qt, QTimer, Slot

from ..core.models import GyroSample

logger = logging.getLogger(__name__)


class GyroDriver(Protocol):
    """What the streamer needs from a gyro source."""

    def is_available(self) -> bool:  # pragma: no cover - protocol
        ...

    def start(self, update_interval_s: float) -> None:  # pragma: no cover - protocol
        ...

    def stop(self) -> None:  # pragma: no cover - protocol
        ...

    def latest(self) -> Optional[GyroSample]:  # pragma: no cover - protocol
        ...


class PolledGyroDriver(QObject):
    """Base class for drivers that refresh a cached reading on a timer.

    Subclasses implement :meth:`_read` (and optionally :meth:`_open` /
    :meth:`_close`). :meth:`latest` returns ``None`` until the first read
    after :meth:`start` succeeded, then always the most recent reading.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self.poll)
        self._latest: Optional[GyroSample] = None
        self._read_errors = 0
        self._running = False

    def is_available(self) -> bool:
        return True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def read_errors(self) -> int:
        return self._read_errors

    def start(self, update_interval_s: float) -> None:
        if self._running:
            self.stop()
        self._latest = None
        self._read_errors = 0
        self._open(update_interval_s)
        self._running = True
        self._timer.start(max(1, int(round(update_interval_s * 1000.0))))

    def stop(self) -> None:
        self._timer.stop()
        if self._running:
            self._running = False
            self._close()

    def latest(self) -> Optional[GyroSample]:
        return self._latest

    @Slot()
    def poll(self) -> None:
        """Take one reading and cache it; read errors keep the previous value."""
        try:
            sample = self._read()
        except OSError as exc:
            self._read_errors += 1
            if self._read_errors == 1 or self._read_errors % 100 == 0:
                logger.warning(
                    "%s read failed (%d errors so far): %s",
                    type(self).__name__,
                    self._read_errors,
                    exc,
                )
            return
        if sample is not None:
            self._latest = sample

    # Subclass hooks
    def _open(self, update_interval_s: float) -> None:
        pass

    def _close(self) -> None:
        pass

    def _read(self) -> Optional[GyroSample]:
        raise NotImplementedError
