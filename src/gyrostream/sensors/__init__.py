"""Gyro sources for the streamer.

Every driver follows :class:`~gyrostream.sensors.base.GyroDriver`:
``is_available()``, ``start(update_interval_s)``, ``stop()`` and
``latest()``. :func:`create_driver` builds the one named in the config.
"""

from __future__ import annotations

from PySide6.QtCore import QObject

from ..config.runtime import SensorConfig
from .base import GyroDriver, PolledGyroDriver
from .mpu6050 import Mpu6050Gyro
from .replay import ReplayGyro
from .synthetic import SyntheticGyro


def create_driver(config: SensorConfig, parent: QObject | None = None) -> PolledGyroDriver:
    """Instantiate the gyro driver selected by ``config.driver``."""
    name = config.driver
    if name == "mpu6050":
        return Mpu6050Gyro(config.i2c_bus, config.i2c_address, parent=parent)
    if name == "synthetic":
        return SyntheticGyro(seed=config.synthetic_seed, parent=parent)
    if name == "replay":
        if not config.replay_path:
            raise ValueError("replay driver needs sensor.replay_path")
        return ReplayGyro(config.replay_path, parent=parent)
    raise ValueError(f"Unknown gyro driver {name!r}")


__all__ = [
    "GyroDriver",
    "Mpu6050Gyro",
    "PolledGyroDriver",
    "ReplayGyro",
    "SyntheticGyro",
    "create_driver",
]
