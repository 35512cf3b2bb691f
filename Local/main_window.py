"""
NoteCrypt Main Window
=====================

Single-tab window around :class:`DecryptTab`, with a menu bar and an
about box.
"""

from __future__ import annotations

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from decrypt_tab import DecryptTab
from settings import Settings
from styles import COLOR_MUTED

APP_VERSION = "1.0.0"


class NoteCryptMainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, settings: Settings | None = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("NoteCrypt — NotepadCrypt Decryptor")
        self.setMinimumSize(520, 440)
        self.resize(760, 560)

        self.settings = settings if settings is not None else Settings()

        self._setup_ui()
        self._setup_menubar()
        self.setStatusBar(QStatusBar())
        self.statusBar().showMessage("Ready")

    def _setup_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(10, 8, 10, 4)

        header = QHBoxLayout()
        title = QLabel("NOTECRYPT")
        title.setStyleSheet("font-size: 20px; font-weight: 800; letter-spacing: 3px;")
        header.addWidget(title)
        header.addStretch()
        version_label = QLabel(f"v{APP_VERSION}")
        version_label.setStyleSheet(f"font-size: 11px; color: {COLOR_MUTED};")
        header.addWidget(version_label)
        layout.addLayout(header)

        self.tabs = QTabWidget()
        self.tabs.setDocumentMode(True)
        self.decrypt_tab = DecryptTab(self.settings)
        self.tabs.addTab(self.decrypt_tab, "  Decrypt  ")
        layout.addWidget(self.tabs)

    def _setup_menubar(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        help_menu = menubar.addMenu("&Help")
        about_action = QAction("&About NoteCrypt", self)
        about_action.triggered.connect(self._show_about)
        help_menu.addAction(about_action)

    def _show_about(self) -> None:
        QMessageBox.about(
            self,
            "About NoteCrypt",
            "<h2>NoteCrypt</h2>"
            f"<p>Desktop Edition v{APP_VERSION}</p>"
            "<p>Decrypts notes saved by NotepadCrypt (AES-256-CBC, "
            "SHA-256 passphrase key, optional master key).</p>"
            "<p>The format has no authentication tag: a wrong passphrase is "
            "detected by the padding check only.</p>",
        )
