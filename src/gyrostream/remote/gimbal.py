"""
Gimbal controller emulator.

Behaves like the gimbal firmware on the other end of the websocket:

  - starts in AUTO mode; ``setMode`` switches between MANUAL (0) and AUTO (1)
  - ``setPhoneGyro`` rates are applied only in MANUAL mode, after a per-axis
    deadband and gain
  - no gyro frame for ``timeout_ms`` while in MANUAL mode, or the client
    going away, drops back to AUTO and zeroes the rates

:class:`GimbalController` is the pure command handler, :class:`GimbalServer`
puts it behind a ``QWebSocketServer``.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, List, Optional

from PySide6.QtCore import QObject, QTimer, Slot
from PySide6.QtNetwork import QHostAddress
from PySide6.QtWebSockets import QWebSocket, QWebSocketProtocol, QWebSocketServer

from ..config.runtime import GimbalConfig
from ..core.protocol import CMD_SET_MODE, CMD_SET_PHONE_GYRO, ControlMode, ProtocolError, decode_command

logger = logging.getLogger(__name__)

TIMEOUT_CHECK_INTERVAL_MS = 10
GYRO_LOG_INTERVAL_MS = 1000.0


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class GimbalController:
    """Applies inbound command frames to the emulated gimbal state."""

    def __init__(
        self,
        config: GimbalConfig | None = None,
        *,
        clock_ms: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self._config = (config or GimbalConfig()).sanitized()
        self._clock_ms = clock_ms
        self.mode = ControlMode.AUTO
        self.rates: tuple[float, float, float] = (0.0, 0.0, 0.0)
        self.frames_applied = 0
        self.frames_rejected = 0
        self._last_gyro_ms: Optional[float] = None
        self._last_log_ms: Optional[float] = None

    @property
    def control_output(self) -> tuple[float, float, float]:
        """Gyro rates scaled by the per-axis gains."""
        cfg = self._config
        gx, gy, gz = self.rates
        return (gx * cfg.gain_x, gy * cfg.gain_y, gz * cfg.gain_z)

    def set_mode(self, mode: ControlMode) -> None:
        self.mode = ControlMode(mode)
        if self.mode is ControlMode.AUTO:
            self.rates = (0.0, 0.0, 0.0)
            self._last_gyro_ms = None

    def handle_frame(self, text: str | bytes, now_ms: float | None = None) -> bool:
        """Apply one frame; return True when it changed the gimbal state."""
        try:
            command = decode_command(text)
        except ProtocolError as exc:
            logger.warning("Rejected frame: %s", exc)
            self.frames_rejected += 1
            return False

        cmd = command["cmd"]
        if cmd == CMD_SET_MODE:
            applied = self._handle_set_mode(command)
        elif cmd == CMD_SET_PHONE_GYRO:
            applied = self._handle_gyro(command, self._clock_ms() if now_ms is None else now_ms)
        else:
            logger.warning("Unknown command %r", cmd)
            applied = False

        if applied:
            self.frames_applied += 1
        else:
            self.frames_rejected += 1
        return applied

    def check_timeout(self, now_ms: float | None = None) -> bool:
        """Return to AUTO when MANUAL mode stopped receiving gyro frames."""
        if self.mode is not ControlMode.MANUAL or self._last_gyro_ms is None:
            return False
        now = self._clock_ms() if now_ms is None else now_ms
        if now - self._last_gyro_ms <= self._config.timeout_ms:
            return False
        logger.info("Phone gyro timeout - returning to AUTO mode")
        self.set_mode(ControlMode.AUTO)
        return True

    def client_disconnected(self) -> None:
        self.set_mode(ControlMode.AUTO)

    def _handle_set_mode(self, command: dict) -> bool:
        value = command.get("mode")
        if isinstance(value, bool) or not isinstance(value, int) or value not in (0, 1):
            logger.warning("Invalid mode value: %r", value)
            return False
        self.set_mode(ControlMode(value))
        logger.info("Mode set to: %s", self.mode.name)
        return True

    def _handle_gyro(self, command: dict, now_ms: float) -> bool:
        if self.mode is not ControlMode.MANUAL:
            logger.debug("Gyro frame ignored in AUTO mode")
            return False
        try:
            rates = tuple(float(command.get(axis, 0.0)) for axis in ("gx", "gy", "gz"))
        except (TypeError, ValueError) as exc:
            logger.warning("Bad gyro field in %r (%s)", command, exc)
            return False
        if not all(math.isfinite(v) for v in rates):
            logger.warning("Non-finite gyro rates in %r", command)
            return False

        deadband = self._config.deadband_rad_s
        self.rates = tuple(0.0 if abs(v) < deadband else v for v in rates)
        self._last_gyro_ms = now_ms

        if self._last_log_ms is None or now_ms - self._last_log_ms > GYRO_LOG_INTERVAL_MS:
            logger.info("Gyro: X=%.4f Y=%.4f Z=%.4f rad/s", *self.rates)
            self._last_log_ms = now_ms
        return True


class GimbalServer(QObject):
    """Websocket endpoint that feeds frames into a :class:`GimbalController`."""

    def __init__(
        self,
        config: GimbalConfig | None = None,
        *,
        controller: GimbalController | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = (config or GimbalConfig()).sanitized()
        self.controller = controller or GimbalController(self._config)
        self._server = QWebSocketServer(
            "gyrostream-gimbal", QWebSocketServer.SslMode.NonSecureMode, self
        )
        self._server.newConnection.connect(self._on_new_connection)
        self._clients: List[QWebSocket] = []
        self._timer = QTimer(self)
        self._timer.setInterval(TIMEOUT_CHECK_INTERVAL_MS)
        self._timer.timeout.connect(self._on_timer)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def server_port(self) -> int:
        return int(self._server.serverPort())

    def listen(self, address: QHostAddress | None = None) -> bool:
        host = address or QHostAddress(QHostAddress.SpecialAddress.Any)
        if not self._server.listen(host, self._config.port):
            logger.error("Cannot listen on port %d: %s", self._config.port, self._server.errorString())
            return False
        logger.info(
            "Gimbal emulator listening on ws://%s:%d%s",
            host.toString(),
            self.server_port(),
            self._config.ws_path,
        )
        self._timer.start()
        return True

    def close(self) -> None:
        self._timer.stop()
        for socket in list(self._clients):
            socket.close(QWebSocketProtocol.CloseCode.CloseCodeGoingAway, "")
        self._clients.clear()
        self._server.close()

    @Slot()
    def _on_new_connection(self) -> None:
        while self._server.hasPendingConnections():
            socket = self._server.nextPendingConnection()
            path = socket.requestUrl().path() or "/"
            if path != self._config.ws_path:
                logger.warning("Rejecting client on path %s", path)
                socket.close(QWebSocketProtocol.CloseCode.CloseCodePolicyViolated, "unknown path")
                socket.deleteLater()
                continue
            logger.info("Client connected from %s", socket.peerAddress().toString())
            socket.textMessageReceived.connect(self._on_text_message)
            socket.disconnected.connect(lambda s=socket: self._on_client_disconnected(s))
            self._clients.append(socket)

    def _on_text_message(self, text: str) -> None:
        self.controller.handle_frame(text)

    def _on_client_disconnected(self, socket: QWebSocket) -> None:
        logger.info("Client disconnected")
        if socket in self._clients:
            self._clients.remove(socket)
        socket.deleteLater()
        self.controller.client_disconnected()

    @Slot()
    def _on_timer(self) -> None:
        self.controller.check_timeout()


__all__ = ["GimbalController", "GimbalServer"]
