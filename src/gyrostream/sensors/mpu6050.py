"""
MPU6050 gyroscope over I2C, read with smbus2 (no DMP).

The chip is configured with the digital low-pass filter enabled, so the
internal sample clock is 1 kHz and the output rate is
``1000 / (1 + SMPLRT_DIV)``. Rates are read at ±250 dps full scale
(131 LSB per deg/s) and converted to rad/s.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

from PySide6.QtCore import QObject
from smbus2 import SMBus

from ..core.models import GyroSample
from .base import PolledGyroDriver

logger = logging.getLogger(__name__)

# ---------------------------
# MPU6050 register constants
# ---------------------------
WHO_AM_I = 0x75
PWR_MGMT_1 = 0x6B
SMPLRT_DIV = 0x19
CONFIG = 0x1A
GYRO_CONFIG = 0x1B
GYRO_XOUT_H = 0x43

GYR_SF = 131.0  # LSB/(deg/s) at ±250 dps
DLPF_DEFAULT = 3  # 44 Hz gyro bandwidth
INTERNAL_RATE_HZ = 1000.0


def _to_i16(hi: int, lo: int) -> int:
    value = (hi << 8) | lo
    if value & 0x8000:
        value -= 0x10000
    return value


def sample_rate_divider(rate_hz: float) -> int:
    """SMPLRT_DIV value giving at least ``rate_hz`` (clamped to 0..255)."""
    div = int(math.floor(INTERNAL_RATE_HZ / max(1.0, rate_hz))) - 1
    return min(255, max(0, div))


class Mpu6050Gyro(PolledGyroDriver):
    """Gyro driver for an MPU6050 on a Linux I2C bus."""

    def __init__(
        self,
        bus: int = 1,
        address: int = 0x68,
        *,
        dlpf_cfg: int = DLPF_DEFAULT,
        bus_factory: Callable[[int], SMBus] = SMBus,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._bus_number = int(bus)
        self._address = int(address)
        self._dlpf_cfg = int(dlpf_cfg) & 0x07
        self._bus_factory = bus_factory
        self._bus: Optional[SMBus] = None

    def is_available(self) -> bool:
        try:
            bus = self._bus_factory(self._bus_number)
        except OSError as exc:
            logger.info("I2C bus %d not available: %s", self._bus_number, exc)
            return False
        try:
            who = bus.read_byte_data(self._address, WHO_AM_I)
        except OSError as exc:
            logger.info("No MPU6050 at 0x%02x on bus %d: %s", self._address, self._bus_number, exc)
            return False
        finally:
            bus.close()
        if who in (0x00, 0xFF):
            logger.info("Unexpected WHO_AM_I 0x%02x at 0x%02x", who, self._address)
            return False
        return True

    def _open(self, update_interval_s: float) -> None:
        bus = self._bus_factory(self._bus_number)
        div = sample_rate_divider(1.0 / update_interval_s)
        try:
            # Wake up and select PLL with X-gyro as clock source
            bus.write_byte_data(self._address, PWR_MGMT_1, 0x01)
            time.sleep(0.05)
            bus.write_byte_data(self._address, CONFIG, self._dlpf_cfg)
            bus.write_byte_data(self._address, GYRO_CONFIG, 0x00)
            bus.write_byte_data(self._address, SMPLRT_DIV, div)
        except OSError:
            bus.close()
            raise
        logger.info(
            "MPU6050 0x%02x on bus %d: SMPLRT_DIV=%d (%.1f Hz)",
            self._address,
            self._bus_number,
            div,
            INTERNAL_RATE_HZ / (1.0 + div),
        )
        self._bus = bus

    def _close(self) -> None:
        if self._bus is not None:
            try:
                self._bus.close()
            finally:
                self._bus = None

    def _read(self) -> Optional[GyroSample]:
        if self._bus is None:
            return None
        raw = self._bus.read_i2c_block_data(self._address, GYRO_XOUT_H, 6)
        gx = _to_i16(raw[0], raw[1]) / GYR_SF
        gy = _to_i16(raw[2], raw[3]) / GYR_SF
        gz = _to_i16(raw[4], raw[5]) / GYR_SF
        return GyroSample(math.radians(gx), math.radians(gy), math.radians(gz))
