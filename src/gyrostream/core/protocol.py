"""
Wire format spoken with the gimbal controller.

Every websocket text frame carries exactly one JSON object with a ``cmd``
field. Two commands are sent by the phone side:

  - ``{"cmd":"setMode","mode":0}``  hand control to the phone (manual)
  - ``{"cmd":"setMode","mode":1}``  give control back to the gimbal (auto)
  - ``{"cmd":"setPhoneGyro","gx":..,"gy":..,"gz":..}``  rates in rad/s

Frames are encoded compactly (no spaces) to keep them small on the wire.
"""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

from .models import GyroSample

CMD_SET_MODE = "setMode"
CMD_SET_PHONE_GYRO = "setPhoneGyro"

_SEPARATORS = (",", ":")


class ControlMode(IntEnum):
    MANUAL = 0
    AUTO = 1


class ProtocolError(ValueError):
    """Raised when an inbound frame is not a valid command object."""


def _dumps(payload: dict[str, Any]) -> str:
    # allow_nan=False: NaN/Infinity are not valid JSON and the firmware
    # parser rejects them.
    return json.dumps(payload, separators=_SEPARATORS, allow_nan=False)


def encode_set_mode(mode: ControlMode | int) -> str:
    return _dumps({"cmd": CMD_SET_MODE, "mode": int(ControlMode(mode))})


def encode_phone_gyro(sample: GyroSample) -> str:
    """
    Serialize ``sample`` into a ``setPhoneGyro`` frame.

    Raises ``ValueError`` for non-finite rates and ``TypeError`` for values
    that are not numbers.
    """
    payload = {
        "cmd": CMD_SET_PHONE_GYRO,
        "gx": sample.gx,
        "gy": sample.gy,
        "gz": sample.gz,
    }
    for key in ("gx", "gy", "gz"):
        value = payload[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{key} must be a number, got {type(value).__name__}")
    return _dumps(payload)


def decode_command(text: str | bytes) -> dict[str, Any]:
    """Parse one inbound frame into a command mapping."""
    try:
        obj = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(f"Bad JSON frame: {exc}") from exc
    if not isinstance(obj, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(obj).__name__}")
    cmd = obj.get("cmd")
    if not isinstance(cmd, str):
        raise ProtocolError("Missing 'cmd' field in frame")
    return obj


__all__ = [
    "CMD_SET_MODE",
    "CMD_SET_PHONE_GYRO",
    "ControlMode",
    "ProtocolError",
    "decode_command",
    "encode_phone_gyro",
    "encode_set_mode",
]
