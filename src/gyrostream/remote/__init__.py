"""Network side of GyroStream.

:class:`GimbalTransport` is the websocket client that carries command frames
to the gimbal; :class:`GimbalServer` / :class:`GimbalController` emulate the
gimbal firmware for bench testing without hardware.
"""

from .gimbal import GimbalController, GimbalServer
from .transport import GimbalTransport

__all__ = ["GimbalController", "GimbalServer", "GimbalTransport"]
