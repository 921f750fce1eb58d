"""Configuration objects and helpers for GyroStream.

Settings live in a small YAML file (see :mod:`runtime`) describing the gimbal
host, the stream rate, the gyro driver and the emulator. :mod:`sampling`
holds the supported stream rates and the timing derived from them.
"""

from .runtime import GyroStreamConfig, config_from_mapping, load_config
from .sampling import DEFAULT_RATE_HZ, SUPPORTED_RATES_HZ

__all__ = [
    "DEFAULT_RATE_HZ",
    "GyroStreamConfig",
    "SUPPORTED_RATES_HZ",
    "config_from_mapping",
    "load_config",
]
