from __future__ import annotations

import json

import pytest
from PySide6.QtTest import QTest

from gyrostream.config.runtime import GyroStreamConfig, TransportConfig
from gyrostream.core.models import ConnectionState, GyroSample
from gyrostream.core.session import (
    INVALID_HOST_MESSAGE,
    GimbalSession,
    InvalidHostError,
    build_ws_url,
    status_text,
)
from gyrostream.core.streamer import GyroStreamer
from gyrostream.remote.transport import GimbalTransport

from fakes import FakeDriver, SocketRecorder


@pytest.fixture
def parts(qapp):
    recorder = SocketRecorder()
    config = GyroStreamConfig(
        host="192.168.4.1",
        rate_hz=20,
        transport=TransportConfig(manual_mode_delay_ms=1000, close_grace_ms=5),
    )
    transport = GimbalTransport(config.transport, socket_factory=recorder)
    driver = FakeDriver()
    streamer = GyroStreamer(driver)
    session = GimbalSession(transport, streamer, config=config)
    return session, recorder, driver


def test_build_ws_url_trims_host() -> None:
    assert build_ws_url("  192.168.4.1 ") == "ws://192.168.4.1/ws"
    assert build_ws_url("gimbal.local:8080") == "ws://gimbal.local:8080/ws"


@pytest.mark.parametrize("host", ["", "   ", "\t", "bad host", "a/b"])
def test_build_ws_url_rejects_invalid_host(host: str) -> None:
    with pytest.raises(InvalidHostError):
        build_ws_url(host)


def test_empty_host_never_reaches_transport(parts) -> None:
    session, recorder, _ = parts

    assert session.connect_to_gimbal("") is False

    assert recorder.sockets == []
    assert session.transport.state is ConnectionState.DISCONNECTED
    assert session.transport.last_error == INVALID_HOST_MESSAGE
    assert not session.streamer.is_streaming


def test_streaming_starts_once_socket_is_open(parts) -> None:
    session, recorder, driver = parts
    assert session.connect_to_gimbal()
    assert recorder.last.calls == [("open", "ws://192.168.4.1/ws")]
    assert not session.streamer.is_streaming

    recorder.last.accept()

    assert session.streamer.is_streaming
    assert session.streamer.rate_hz == 20.0
    driver.current = GyroSample(0.5, -0.5, 0.25)
    session.streamer.tick()
    frame = json.loads(recorder.last.sent[-1])
    assert frame == {"cmd": "setPhoneGyro", "gx": 0.5, "gy": -0.5, "gz": 0.25}


def test_rate_argument_overrides_config(parts) -> None:
    session, recorder, _ = parts
    session.connect_to_gimbal("10.0.0.7", rate_hz=50)
    recorder.last.accept()
    assert session.streamer.rate_hz == 50.0


def test_disconnect_stops_streamer_then_transport(parts) -> None:
    session, recorder, driver = parts
    session.connect_to_gimbal()
    sock = recorder.last
    sock.accept()
    sent = sock.sent

    session.disconnect_from_gimbal()

    assert not session.streamer.is_streaming
    assert driver.stop_calls == 1
    assert sent[-1] == '{"cmd":"setMode","mode":1}'
    QTest.qWait(40)
    assert session.transport.state is ConnectionState.DISCONNECTED


def test_remote_close_stops_streaming(parts) -> None:
    session, recorder, _ = parts
    session.connect_to_gimbal()
    recorder.last.accept()
    assert session.streamer.is_streaming

    recorder.last.remote_close()

    assert not session.streamer.is_streaming
    assert session.status().state is ConnectionState.DISCONNECTED


def test_status_snapshot_and_signal(parts) -> None:
    session, recorder, driver = parts
    statuses = []
    session.status_changed.connect(statuses.append)
    session.connect_to_gimbal()
    recorder.last.accept()
    driver.current = GyroSample(1.0, 2.0, 3.0)
    session.streamer.tick()

    status = session.status()
    assert status.state is ConnectionState.CONNECTED
    assert status.packet_count == 1
    assert status.last_sample == GyroSample(1.0, 2.0, 3.0)
    assert statuses[-1].packet_count == 1
    assert status.summary().startswith("Streaming | packets=1")


def test_status_text_labels() -> None:
    assert status_text(ConnectionState.DISCONNECTED) == "Disconnected"
    assert status_text(ConnectionState.CONNECTING) == "Connecting"
    assert status_text(ConnectionState.CONNECTED) == "Streaming"
