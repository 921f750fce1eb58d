"""Websocket client that carries command frames to the gimbal controller."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, QUrl, Signal, Slot
from PySide6.QtNetwork import QAbstractSocket
from PySide6.QtWebSockets import QWebSocket, QWebSocketProtocol

from ..config.runtime import TransportConfig
from ..core.models import ConnectionState
from ..core.protocol import ControlMode, encode_set_mode

logger = logging.getLogger(__name__)


class GimbalTransport(QObject):
    """Owns one websocket at a time and sends frames fire-and-forget.

    State and error text are published through ``state_changed`` and
    ``error_changed``. Failures never raise to the caller: they end up in
    :attr:`last_error` and it is up to the caller to connect again.

    All methods must be called from the thread that owns the object; the
    socket delivers its events on that same thread.
    """

    state_changed = Signal(object)  # ConnectionState
    error_changed = Signal(object)  # str | None

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        socket_factory: Callable[[], QWebSocket] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._config = (config or TransportConfig()).sanitized()
        self._socket_factory = socket_factory or QWebSocket
        self._socket: Optional[QWebSocket] = None
        self._state = ConnectionState.DISCONNECTED
        self._last_error: str | None = None
        self._listening = False
        self._received_count = 0

        self._mode_timer = QTimer(self)
        self._mode_timer.setSingleShot(True)
        self._mode_timer.timeout.connect(self._send_manual_mode)

        self._close_timer = QTimer(self)
        self._close_timer.setSingleShot(True)
        self._close_timer.timeout.connect(self._finish_disconnect)

    # --------------------------------------------------------------- observables
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def received_count(self) -> int:
        """Inbound frames seen by the listener since the last connect."""
        return self._received_count

    @property
    def is_open(self) -> bool:
        socket = self._socket
        return socket is not None and socket.state() == QAbstractSocket.SocketState.ConnectedState

    def report_error(self, message: str) -> None:
        logger.warning("Transport error: %s", message)
        self._set_error(str(message))

    # --------------------------------------------------------------- connect/disconnect
    def connect_to(self, url: str | QUrl) -> None:
        """Open a websocket to ``url``; ignored unless currently disconnected."""
        if self._state is not ConnectionState.DISCONNECTED:
            logger.debug("connect_to ignored in state %s", self._state.value)
            return

        # A disconnect that has not finished yet has nothing left to close.
        self._close_timer.stop()

        self._set_state(ConnectionState.CONNECTING)
        self._set_error(None)
        self._received_count = 0

        socket = self._socket_factory()
        socket.connected.connect(self._on_connected)
        socket.disconnected.connect(self._on_disconnected)
        socket.textMessageReceived.connect(self._on_text_message)
        socket.binaryMessageReceived.connect(self._on_binary_message)
        socket.errorOccurred.connect(self._on_socket_error)
        self._socket = socket
        self._listening = True

        target = url if isinstance(url, QUrl) else QUrl(url)
        logger.info("Connecting to %s", target.toString())
        socket.open(target)

        self._mode_timer.start(self._config.manual_mode_delay_ms)

    def disconnect_from_host(self) -> None:
        """
        Hand control back to the gimbal and close the socket.

        The close happens ``close_grace_ms`` later so the auto-mode frame can
        leave first. The state ends up DISCONNECTED whether or not the frame
        or the close actually made it.
        """
        self._mode_timer.stop()
        self.send_mode_command(ControlMode.AUTO)
        self._close_timer.start(self._config.close_grace_ms)

    # --------------------------------------------------------------- sending
    def send_message(self, text: str) -> None:
        """Send one text frame. Dropped silently when the socket is not open."""
        if not self.is_open:
            logger.debug("Socket not open, dropping frame %s", text)
            return
        expected = len(text.encode("utf-8"))
        sent = self._socket.sendTextMessage(text)
        if sent < expected:
            reason = self._socket.errorString() or f"wrote {sent} of {expected} bytes"
            self._set_error(f"Send error: {reason}")
            logger.warning("Send error: %s", reason)

    def send_mode_command(self, mode: ControlMode | int) -> None:
        try:
            frame = encode_set_mode(mode)
        except ValueError as exc:
            logger.warning("Cannot encode mode %r (%s)", mode, exc)
            self._set_error("Failed to create mode command")
            return
        self.send_message(frame)

    # --------------------------------------------------------------- timers
    @Slot()
    def _send_manual_mode(self) -> None:
        self.send_mode_command(ControlMode.MANUAL)

    @Slot()
    def _finish_disconnect(self) -> None:
        socket = self._release_socket()
        if socket is not None:
            socket.close(QWebSocketProtocol.CloseCode.CloseCodeGoingAway, "")
            socket.deleteLater()
        logger.info("Disconnected")
        self._set_state(ConnectionState.DISCONNECTED)

    # --------------------------------------------------------------- socket events
    @Slot()
    def _on_connected(self) -> None:
        logger.info("Websocket open")
        self._set_state(ConnectionState.CONNECTED)

    @Slot()
    def _on_disconnected(self) -> None:
        socket = self._release_socket()
        if socket is not None:
            socket.deleteLater()
        self._mode_timer.stop()
        logger.info("Websocket closed by peer")
        self._set_state(ConnectionState.DISCONNECTED)

    def _on_text_message(self, text: str) -> None:
        if not self._listening:
            return
        self._received_count += 1
        logger.debug("Inbound frame ignored: %s", text)

    def _on_binary_message(self, data) -> None:
        if not self._listening:
            return
        self._received_count += 1
        logger.debug("Inbound binary frame ignored (%d bytes)", len(data))

    def _on_socket_error(self, error: object) -> None:
        socket = self._socket
        reason = socket.errorString() if socket is not None else str(error)
        if self._state is ConnectionState.CONNECTED:
            # The listener is not re-armed until the next connect.
            if self._listening:
                self._listening = False
                self._set_error(f"Receive error: {reason}")
                logger.warning("Receive error: %s", reason)
            return

        logger.warning("Connection error: %s", reason)
        self._set_error(f"Connection error: {reason}")
        released = self._release_socket()
        if released is not None:
            released.abort()
            released.deleteLater()
        self._mode_timer.stop()
        self._set_state(ConnectionState.DISCONNECTED)

    # --------------------------------------------------------------- helpers
    def _release_socket(self) -> Optional[QWebSocket]:
        """Detach the current socket from this object and return it."""
        socket = self._socket
        self._socket = None
        self._listening = False
        if socket is not None:
            socket.connected.disconnect(self._on_connected)
            socket.disconnected.disconnect(self._on_disconnected)
            socket.textMessageReceived.disconnect(self._on_text_message)
            socket.binaryMessageReceived.disconnect(self._on_binary_message)
            socket.errorOccurred.disconnect(self._on_socket_error)
        return socket

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        self.state_changed.emit(state)

    def _set_error(self, message: str | None) -> None:
        if message == self._last_error:
            return
        self._last_error = message
        self.error_changed.emit(message)


__all__ = ["GimbalTransport"]
