from __future__ import annotations

import sys
from collections.abc import Sequence
from pathlib import Path

# Make sure the 'src' directory is on sys.path so 'gyrostream' can be imported
REPO_ROOT = Path(__file__).resolve().parent
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from gyrostream.app.application import main as run_streamer_main


def main(argv: Sequence[str] | None = None) -> int:
    """
    Entry point for streaming gyro data from a checkout.

    Parameters
    ----------
    argv:
        Command-line arguments to pass through. If None, uses sys.argv.
    """
    if argv is None:
        argv = sys.argv
    return run_streamer_main(list(argv))


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
