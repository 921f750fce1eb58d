"""Core value types, wire format and the streaming pipeline.

:mod:`models` and :mod:`protocol` are dependency-free. :mod:`streamer`
holds the sampling loop and :mod:`session` the connect/disconnect entry
points used by the command line tools; import those modules directly.
"""

from .models import ConnectionState, GyroSample
from .protocol import ControlMode, ProtocolError, decode_command, encode_phone_gyro, encode_set_mode

__all__ = [
    "ConnectionState",
    "ControlMode",
    "GyroSample",
    "ProtocolError",
    "decode_command",
    "encode_phone_gyro",
    "encode_set_mode",
]
