"""Runtime configuration for the streamer, the transport and the emulator."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .sampling import DEFAULT_OVERSAMPLE_FACTOR, DEFAULT_RATE_HZ, nearest_supported_rate

CONFIG_ENV_VAR = "GYROSTREAM_CONFIG"

SENSOR_DRIVERS = ("mpu6050", "synthetic", "replay")


def _non_negative_int(value: Any, fallback: int) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(0, result)


def _float_or(value: Any, fallback: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(result):
        return fallback
    return result


def _normalize_path(path: str) -> str:
    return "/" + str(path or "").strip().lstrip("/")


def _pick(cls, data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep only the keys that are fields of dataclass ``cls``."""
    if not isinstance(data, Mapping):
        return {}
    known = {f.name for f in fields(cls)}
    return {key: data[key] for key in data.keys() & known}


@dataclass(slots=True)
class TransportConfig:
    """Timing of the mode-select commands around connect/disconnect."""

    manual_mode_delay_ms: int = 500
    close_grace_ms: int = 100
    ws_path: str = "/ws"

    def sanitized(self) -> TransportConfig:
        return TransportConfig(
            manual_mode_delay_ms=_non_negative_int(self.manual_mode_delay_ms, 500),
            close_grace_ms=_non_negative_int(self.close_grace_ms, 100),
            ws_path=_normalize_path(self.ws_path),
        )


@dataclass(slots=True)
class SensorConfig:
    driver: str = "mpu6050"
    oversample_factor: float = DEFAULT_OVERSAMPLE_FACTOR
    i2c_bus: int = 1
    i2c_address: int = 0x68
    replay_path: Optional[str] = None
    synthetic_seed: int = 0

    def sanitized(self) -> SensorConfig:
        driver = str(self.driver or "mpu6050").strip().lower()
        if driver not in SENSOR_DRIVERS:
            raise ValueError(f"Unknown gyro driver {driver!r}, expected one of {', '.join(SENSOR_DRIVERS)}")
        if driver == "replay" and not self.replay_path:
            raise ValueError("replay driver needs sensor.replay_path")
        factor = _float_or(self.oversample_factor, DEFAULT_OVERSAMPLE_FACTOR)
        if factor <= 0.0 or factor > 1.0:
            factor = DEFAULT_OVERSAMPLE_FACTOR
        address = self.i2c_address
        if isinstance(address, str):
            address = int(address, 16) if address.lower().startswith("0x") else int(address)
        return SensorConfig(
            driver=driver,
            oversample_factor=factor,
            i2c_bus=_non_negative_int(self.i2c_bus, 1),
            i2c_address=int(address),
            replay_path=str(self.replay_path) if self.replay_path else None,
            synthetic_seed=_non_negative_int(self.synthetic_seed, 0),
        )


@dataclass(slots=True)
class GimbalConfig:
    """Settings of the gimbal emulator (mirrors the controller firmware)."""

    port: int = 80
    ws_path: str = "/ws"
    gain_x: float = 1.0
    gain_y: float = 1.0
    gain_z: float = 1.0
    deadband_rad_s: float = 0.01
    timeout_ms: int = 1000

    def sanitized(self) -> GimbalConfig:
        return GimbalConfig(
            port=min(65535, _non_negative_int(self.port, 80)),
            ws_path=_normalize_path(self.ws_path),
            gain_x=_float_or(self.gain_x, 1.0),
            gain_y=_float_or(self.gain_y, 1.0),
            gain_z=_float_or(self.gain_z, 1.0),
            deadband_rad_s=abs(_float_or(self.deadband_rad_s, 0.01)),
            timeout_ms=_non_negative_int(self.timeout_ms, 1000),
        )


@dataclass(slots=True)
class GyroStreamConfig:
    """
    Top-level settings for a streaming session.

    The defaults target the gimbal firmware's own access point
    (``192.168.4.1``) at 20 Hz.
    """

    host: str = "192.168.4.1"
    rate_hz: int = DEFAULT_RATE_HZ
    transport: TransportConfig = field(default_factory=TransportConfig)
    sensor: SensorConfig = field(default_factory=SensorConfig)
    gimbal: GimbalConfig = field(default_factory=GimbalConfig)

    def sanitized(self) -> GyroStreamConfig:
        """Return a copy with rates snapped to the supported set and limits applied."""
        return GyroStreamConfig(
            host=str(self.host or "").strip(),
            rate_hz=nearest_supported_rate(self.rate_hz),
            transport=self.transport.sanitized(),
            sensor=self.sensor.sanitized(),
            gimbal=self.gimbal.sanitized(),
        )

    def to_mapping(self) -> dict:
        return {
            "host": self.host,
            "rate_hz": self.rate_hz,
            "transport": {f.name: getattr(self.transport, f.name) for f in fields(TransportConfig)},
            "sensor": {f.name: getattr(self.sensor, f.name) for f in fields(SensorConfig)},
            "gimbal": {f.name: getattr(self.gimbal, f.name) for f in fields(GimbalConfig)},
        }


def config_from_mapping(data: Mapping[str, Any] | None) -> GyroStreamConfig:
    """Build :class:`GyroStreamConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return GyroStreamConfig()
    top = _pick(GyroStreamConfig, data)
    top.pop("transport", None)
    top.pop("sensor", None)
    top.pop("gimbal", None)
    cfg = GyroStreamConfig(
        transport=TransportConfig(**_pick(TransportConfig, data.get("transport"))),
        sensor=SensorConfig(**_pick(SensorConfig, data.get("sensor"))),
        gimbal=GimbalConfig(**_pick(GimbalConfig, data.get("gimbal"))),
        **top,
    )
    return cfg.sanitized()


def default_config_path() -> Path | None:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return None


def load_config(path: str | Path | None) -> GyroStreamConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`GyroStreamConfig`.
    """
    if path is None:
        return GyroStreamConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return GyroStreamConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


__all__ = [
    "CONFIG_ENV_VAR",
    "GimbalConfig",
    "GyroStreamConfig",
    "SENSOR_DRIVERS",
    "SensorConfig",
    "TransportConfig",
    "config_from_mapping",
    "default_config_path",
    "load_config",
]
