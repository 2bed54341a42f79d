"""Entry point for the PySide6 GUI application."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Sequence

from PySide6 import QtWidgets

from usbsorter.services.paths import LOG_DIR
from usbsorter.ui import MainWindow

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Path = LOG_DIR) -> Path:
    """Send records to the console and to ``application.log``; return the log path."""

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "application.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, mode="a", encoding="utf-8"),
        ],
    )
    logger.info("Stereo USB Sorter started; logging to %s", log_file)
    return log_file


def main(argv: Sequence[str] | None = None) -> None:
    """Launch the GUI, opening the folder given on the command line if any."""

    args = list(sys.argv if argv is None else argv)
    setup_logging()

    app = QtWidgets.QApplication(args)
    app.setApplicationName("Stereo USB Sorter")
    window = MainWindow()
    window.show()
    if len(args) > 1:
        window.open_directory(Path(args[1]).expanduser())
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
