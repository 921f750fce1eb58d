"""Non-visual controller tying the gyro streamer to the gimbal transport."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, QUrl, Signal, Slot

from ..config.runtime import GyroStreamConfig
from ..remote.transport import GimbalTransport
from ..sensors import create_driver
from .models import ConnectionState, GyroSample
from .streamer import GyroStreamer

logger = logging.getLogger(__name__)

INVALID_HOST_MESSAGE = "Invalid host address"

_STATUS_TEXT = {
    ConnectionState.DISCONNECTED: "Disconnected",
    ConnectionState.CONNECTING: "Connecting",
    ConnectionState.CONNECTED: "Streaming",
}


class InvalidHostError(ValueError):
    """Raised for host strings that cannot form a websocket URL."""


def build_ws_url(host: str, path: str = "/ws") -> str:
    """Return ``ws://<host><path>`` for a user-entered host (IP or name[:port])."""
    trimmed = (host or "").strip()
    if not trimmed or any(ch.isspace() for ch in trimmed) or "/" in trimmed:
        raise InvalidHostError(INVALID_HOST_MESSAGE)
    url = QUrl(f"ws://{trimmed}{path}", QUrl.ParsingMode.StrictMode)
    if not url.isValid() or not url.host():
        raise InvalidHostError(INVALID_HOST_MESSAGE)
    return url.toString()


def status_text(state: ConnectionState) -> str:
    return _STATUS_TEXT[state]


@dataclass(frozen=True)
class SessionStatus:
    state: ConnectionState
    last_error: Optional[str]
    packet_count: int
    last_sample: Optional[GyroSample]
    measured_rate_hz: float

    def summary(self) -> str:
        text = f"{status_text(self.state)} | packets={self.packet_count} | {self.measured_rate_hz:.1f} Hz"
        if self.last_sample is not None:
            gx, gy, gz = self.last_sample.as_tuple()
            text += f" | gyro X={gx:.4f} Y={gy:.4f} Z={gz:.4f} rad/s"
        if self.last_error:
            text += f" | error: {self.last_error}"
        return text


class GimbalSession(QObject):
    """Connect/disconnect entry points for a UI or CLI.

    Streaming starts once the websocket is open and stops when it closes,
    so gyro frames never go out before the connection is up.
    """

    status_changed = Signal(object)  # SessionStatus

    def __init__(
        self,
        transport: GimbalTransport,
        streamer: GyroStreamer,
        *,
        config: GyroStreamConfig | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = config or GyroStreamConfig()
        self._transport = transport
        self._streamer = streamer
        self._pending_rate_hz: float | None = None

        transport.state_changed.connect(self._on_state_changed)
        transport.error_changed.connect(self._emit_status)
        streamer.packet_count_changed.connect(self._emit_status)

    @classmethod
    def from_config(cls, config: GyroStreamConfig, parent: QObject | None = None) -> GimbalSession:
        transport = GimbalTransport(config.transport)
        streamer = GyroStreamer(
            create_driver(config.sensor),
            oversample_factor=config.sensor.oversample_factor,
        )
        session = cls(transport, streamer, config=config, parent=parent)
        transport.setParent(session)
        streamer.setParent(session)
        return session

    @property
    def transport(self) -> GimbalTransport:
        return self._transport

    @property
    def streamer(self) -> GyroStreamer:
        return self._streamer

    def status(self) -> SessionStatus:
        return SessionStatus(
            state=self._transport.state,
            last_error=self._transport.last_error,
            packet_count=self._streamer.packet_count,
            last_sample=self._streamer.last_sample,
            measured_rate_hz=self._streamer.measured_rate_hz,
        )

    # --------------------------------------------------------------- connect/disconnect
    def connect_to_gimbal(self, host: str | None = None, rate_hz: float | None = None) -> bool:
        """
        Validate ``host`` and open the connection; streaming follows on open.

        Returns False without touching the socket when the host is invalid.
        """
        host = self._config.host if host is None else host
        rate = self._config.rate_hz if rate_hz is None else rate_hz
        try:
            url = build_ws_url(host, self._config.transport.ws_path)
        except InvalidHostError as exc:
            self._transport.report_error(str(exc))
            return False

        self._pending_rate_hz = float(rate)
        self._transport.connect_to(url)
        if self._transport.state is ConnectionState.CONNECTED:
            self._start_streaming()
        return True

    def disconnect_from_gimbal(self) -> None:
        """Stop the sampling loop first, then tear down the connection."""
        self._pending_rate_hz = None
        self._streamer.stop_streaming()
        self._transport.disconnect_from_host()

    # --------------------------------------------------------------- internals
    def _start_streaming(self) -> None:
        rate = self._pending_rate_hz
        if rate is None or self._streamer.is_streaming:
            return
        self._streamer.start_streaming(rate, self._transport)

    @Slot(object)
    def _on_state_changed(self, state: ConnectionState) -> None:
        logger.info("Connection state: %s", status_text(state))
        if state is ConnectionState.CONNECTED:
            self._start_streaming()
        elif state is ConnectionState.DISCONNECTED:
            self._pending_rate_hz = None
            self._streamer.stop_streaming()
        self._emit_status()

    def _emit_status(self, *_args) -> None:
        self.status_changed.emit(self.status())


__all__ = [
    "GimbalSession",
    "INVALID_HOST_MESSAGE",
    "InvalidHostError",
    "SessionStatus",
    "build_ws_url",
    "status_text",
]
