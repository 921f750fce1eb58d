"""Headless entry point that streams gyro data to a gimbal.

``python main.py`` and the ``gyrostream`` console script both land in
:func:`main`: arguments are merged over the YAML config, a
:class:`~gyrostream.core.session.GimbalSession` is built and the Qt event
loop runs until SIGINT/SIGTERM or ``--duration`` elapses.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from dataclasses import replace
from typing import Sequence

from PySide6.QtCore import QCoreApplication, QTimer

from ..config.runtime import SENSOR_DRIVERS, GyroStreamConfig, default_config_path, load_config
from ..config.sampling import SUPPORTED_RATES_HZ
from ..core.session import GimbalSession

logger = logging.getLogger(__name__)

STATUS_LOG_INTERVAL_MS = 1000
EXIT_USAGE = 2


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stream gyroscope rates to a gimbal controller")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (default: $GYROSTREAM_CONFIG)",
    )
    parser.add_argument("--host", type=str, default=None, help="Gimbal host or IP address")
    parser.add_argument(
        "--rate",
        type=int,
        choices=SUPPORTED_RATES_HZ,
        default=None,
        help="Stream rate in Hz",
    )
    parser.add_argument(
        "--driver",
        choices=SENSOR_DRIVERS,
        default=None,
        help="Gyro source (default from config: mpu6050)",
    )
    parser.add_argument("--replay", type=str, default=None, help="Gyro log to replay (implies --driver replay)")
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: INFO)",
    )
    return parser


def build_config(args: argparse.Namespace) -> GyroStreamConfig:
    """Load the config file and apply command line overrides."""
    path = args.config if args.config is not None else default_config_path()
    config = load_config(path)

    sensor = config.sensor
    if args.replay:
        sensor = replace(sensor, driver="replay", replay_path=args.replay)
    elif args.driver:
        sensor = replace(sensor, driver=args.driver)

    return replace(
        config,
        host=args.host if args.host is not None else config.host,
        rate_hz=args.rate if args.rate is not None else config.rate_hz,
        sensor=sensor,
    ).sanitized()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> int:
    raw_argv = list(argv if argv is not None else sys.argv)
    args, qt_args = _build_arg_parser().parse_known_args(raw_argv[1:])
    configure_logging(args.log_level)

    app = QCoreApplication.instance() or QCoreApplication([raw_argv[0], *qt_args])
    try:
        config = build_config(args)
        session = GimbalSession.from_config(config)
    except ValueError as exc:
        logger.error("Bad configuration: %s", exc)
        return EXIT_USAGE

    if not session.connect_to_gimbal():
        logger.error("%s: %r", session.transport.last_error, config.host)
        return EXIT_USAGE

    shutting_down = False

    def shutdown() -> None:
        nonlocal shutting_down
        if shutting_down:
            return
        shutting_down = True
        logger.info("Shutting down")
        session.disconnect_from_gimbal()
        # Quit once the close grace delay has passed.
        QTimer.singleShot(config.transport.close_grace_ms + 50, app.quit)

    signal.signal(signal.SIGINT, lambda *_: shutdown())
    signal.signal(signal.SIGTERM, lambda *_: shutdown())

    # Python signal handlers only run when the interpreter gets control back
    # from the Qt event loop.
    wakeup = QTimer()
    wakeup.timeout.connect(lambda: None)
    wakeup.start(200)

    status_timer = QTimer()
    status_timer.timeout.connect(lambda: logger.info("%s", session.status().summary()))
    status_timer.start(STATUS_LOG_INTERVAL_MS)

    if args.duration > 0:
        QTimer.singleShot(int(args.duration * 1000), shutdown)

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
