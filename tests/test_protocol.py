import json
import math

import pytest

from gyrostream.core.models import GyroSample
from gyrostream.core.protocol import (
    ControlMode,
    ProtocolError,
    decode_command,
    encode_phone_gyro,
    encode_set_mode,
)


def test_set_mode_frames_match_wire_format() -> None:
    assert encode_set_mode(ControlMode.MANUAL) == '{"cmd":"setMode","mode":0}'
    assert encode_set_mode(1) == '{"cmd":"setMode","mode":1}'


def test_set_mode_rejects_unknown_mode() -> None:
    with pytest.raises(ValueError):
        encode_set_mode(7)


def test_gyro_frame_recovers_exact_values() -> None:
    sample = GyroSample(0.1234567890123, -3.5e-7, 12.75)
    obj = json.loads(encode_phone_gyro(sample))
    assert obj == {"cmd": "setPhoneGyro", "gx": 0.1234567890123, "gy": -3.5e-7, "gz": 12.75}


def test_gyro_frame_is_compact() -> None:
    frame = encode_phone_gyro(GyroSample(1.0, 2.0, 3.0))
    assert frame == '{"cmd":"setPhoneGyro","gx":1.0,"gy":2.0,"gz":3.0}'


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_gyro_frame_rejects_non_finite(bad: float) -> None:
    with pytest.raises(ValueError):
        encode_phone_gyro(GyroSample(bad, 0.0, 0.0))


def test_gyro_frame_rejects_non_numbers() -> None:
    with pytest.raises(TypeError):
        encode_phone_gyro(GyroSample("1.0", 0.0, 0.0))  # type: ignore[arg-type]


def test_decode_command_accepts_objects_with_cmd() -> None:
    assert decode_command('{"cmd":"setMode","mode":0}') == {"cmd": "setMode", "mode": 0}
    assert decode_command(b'{"cmd":"x"}')["cmd"] == "x"


@pytest.mark.parametrize("text", ["not-json", "[1, 2]", '{"mode": 0}', '{"cmd": 5}'])
def test_decode_command_rejects_malformed_frames(text: str) -> None:
    with pytest.raises(ProtocolError):
        decode_command(text)
