"""
NoteCrypt Desktop Edition — Entry Point
=======================================

Launch the PySide6 GUI application.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``import notecrypt`` works
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QApplication

from main_window import APP_VERSION, NoteCryptMainWindow
from styles import STYLESHEET


def main() -> None:
    """Application entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    app = QApplication(sys.argv)
    app.setApplicationName("NoteCrypt")
    app.setOrganizationName("NoteCrypt")
    app.setApplicationVersion(APP_VERSION)

    font = QFont("Segoe UI", 10)
    font.setStyleStrategy(QFont.StyleStrategy.PreferAntialias)
    app.setFont(font)
    app.setStyleSheet(STYLESHEET)

    window = NoteCryptMainWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
