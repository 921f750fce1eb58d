"""Shared value types for the gyro streaming pipeline."""

from dataclasses import dataclass
from enum import Enum


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class GyroSample:
    """Angular rate about the three device axes, in rad/s."""

    gx: float
    gy: float
    gz: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.gx, self.gy, self.gz)
