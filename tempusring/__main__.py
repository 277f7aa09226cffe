"""Allow running Tempus Ring as a module: python -m tempusring."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .app import TempusRingApp
from .commands import Backend
from .logging_setup import configure_logging
from .settings import app_data_dir


def main() -> None:
    data_dir = app_data_dir()
    configure_logging(data_dir)
    backend = Backend.from_data_dir(data_dir)
    logging.getLogger(__name__).info("data directory: %s", data_dir)

    app = QApplication(sys.argv)
    app.setApplicationName("Tempus Ring")
    app.setOrganizationName("Tempus Ring")
    app.setQuitOnLastWindowClosed(False)

    window = TempusRingApp(backend)
    window.show()
    window.start()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
