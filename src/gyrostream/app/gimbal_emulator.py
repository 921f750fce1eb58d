"""Run the gimbal emulator so the streamer can be tried without hardware."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import replace
from typing import Sequence

from PySide6.QtCore import QCoreApplication, QTimer

from ..config.runtime import default_config_path, load_config
from ..remote.gimbal import GimbalServer
from .application import EXIT_USAGE, configure_logging

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Emulate the gimbal controller websocket endpoint")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--port", type=int, default=None, help="Listen port (default from config: 80)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    raw_argv = list(argv if argv is not None else sys.argv)
    args, qt_args = _build_arg_parser().parse_known_args(raw_argv[1:])
    configure_logging(args.log_level)

    try:
        config = load_config(args.config if args.config is not None else default_config_path())
    except ValueError as exc:
        logger.error("Bad configuration: %s", exc)
        return EXIT_USAGE
    gimbal_cfg = config.gimbal
    if args.port is not None:
        gimbal_cfg = replace(gimbal_cfg, port=args.port).sanitized()

    app = QCoreApplication.instance() or QCoreApplication([raw_argv[0], *qt_args])
    server = GimbalServer(gimbal_cfg)
    if not server.listen():
        return 1

    def shutdown() -> None:
        server.close()
        app.quit()

    signal.signal(signal.SIGINT, lambda *_: shutdown())
    signal.signal(signal.SIGTERM, lambda *_: shutdown())
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
