"""Periodic gyro sampling loop that feeds a transport."""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

from PySide6.QtCore import QObject, Qt, QTimer, Signal, Slot

from ..analysis.rate import RateController
from ..config.sampling import DEFAULT_OVERSAMPLE_FACTOR, driver_interval_s, tick_interval_ms
from ..sensors.base import GyroDriver
from ..tools.debug import debug_enabled, time_block
from .models import GyroSample
from .protocol import encode_phone_gyro

logger = logging.getLogger(__name__)


class FrameSink(Protocol):
    def send_message(self, text: str) -> None:  # pragma: no cover - protocol
        ...


class GyroStreamer(QObject):
    """Samples the gyro at a fixed rate and pushes one frame per tick.

    The transport passed to :meth:`start_streaming` is borrowed: the streamer
    only calls ``send_message`` on it and forgets it in
    :meth:`stop_streaming`. Opening and closing the connection is the
    caller's job.
    """

    packet_count_changed = Signal(int)
    last_sample_changed = Signal(object)  # GyroSample
    streaming_changed = Signal(bool)

    def __init__(
        self,
        driver: GyroDriver,
        *,
        oversample_factor: float = DEFAULT_OVERSAMPLE_FACTOR,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._driver = driver
        self._oversample_factor = float(oversample_factor)
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.timeout.connect(self.tick)

        self._transport: Optional[FrameSink] = None
        self._rate_hz: float | None = None
        self._packet_count = 0
        self._last_sample: Optional[GyroSample] = None
        self._rate_controller = RateController(window_size=50, default_hz=0.0)
        self._debug = debug_enabled()

    # --------------------------------------------------------------- observables
    @property
    def packet_count(self) -> int:
        return self._packet_count

    @property
    def last_sample(self) -> Optional[GyroSample]:
        return self._last_sample

    @property
    def is_streaming(self) -> bool:
        return self._transport is not None

    @property
    def rate_hz(self) -> float | None:
        return self._rate_hz

    @property
    def measured_rate_hz(self) -> float:
        """Dispatch rate over the last few dozen packets."""
        return self._rate_controller.estimated_hz

    # --------------------------------------------------------------- start/stop
    def start_streaming(self, rate_hz: float, transport: FrameSink) -> bool:
        """
        Begin sending one gyro frame every ``1 / rate_hz`` seconds.

        Returns False (and starts nothing) when the gyro is unavailable.
        """
        if not self._driver.is_available():
            logger.warning("Gyroscope not available; streaming not started")
            return False

        if self.is_streaming:
            self.stop_streaming()

        interval_s = driver_interval_s(rate_hz, self._oversample_factor)
        try:
            self._driver.start(interval_s)
        except OSError as exc:
            logger.warning("Failed to start gyroscope: %s", exc)
            return False

        self._transport = transport
        self._rate_hz = float(rate_hz)
        self._set_packet_count(0)
        self._rate_controller.reset()
        self._timer.start(tick_interval_ms(rate_hz))
        logger.info(
            "Streaming gyro at %.0f Hz (driver every %.1f ms)",
            self._rate_hz,
            interval_s * 1000.0,
        )
        self.streaming_changed.emit(True)
        return True

    def stop_streaming(self) -> None:
        """Stop ticking and release the transport. Safe to call repeatedly."""
        if not self.is_streaming:
            return
        self._timer.stop()
        self._driver.stop()
        self._transport = None
        self._rate_hz = None
        logger.info("Streaming stopped after %d packets", self._packet_count)
        self.streaming_changed.emit(False)

    # --------------------------------------------------------------- tick
    @Slot()
    def tick(self) -> None:
        """Read the newest gyro sample and hand one frame to the transport."""
        transport = self._transport
        if transport is None:
            return

        sample = self._driver.latest()
        if sample is None:
            # No reading yet from the driver.
            return

        try:
            frame = encode_phone_gyro(sample)
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to serialize gyro sample %r (%s)", sample, exc)
            return

        with time_block("gyro send", enabled=self._debug):
            transport.send_message(frame)

        self._last_sample = sample
        self.last_sample_changed.emit(sample)
        self._rate_controller.add_sample_time(time.monotonic())
        self._set_packet_count(self._packet_count + 1)

        if self._debug and self._packet_count % 100 == 0:
            logger.debug(
                "sent %d packets, recent rate %.1f Hz",
                self._packet_count,
                self.measured_rate_hz,
            )

    def _set_packet_count(self, value: int) -> None:
        self._packet_count = value
        self.packet_count_changed.emit(value)


__all__ = ["FrameSink", "GyroStreamer"]
