"""
NoteCrypt Decrypt Tab
=====================

Decrypts a NotepadCrypt file with:
  - Drag-and-drop or browse file selection
  - Header summary (format, master key present, body size)
  - Passphrase entry with show/hide
  - Optional master-key unlock
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QCheckBox,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

import notecrypt
from settings import Settings, normalize_suffix
from styles import COLOR_ERROR, COLOR_MUTED, COLOR_SUCCESS, COLOR_WARNING
from workers import FileDecryptWorker


def _human_size(size: float) -> str:
    """Format byte count as human-readable string."""
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def describe_header(header: notecrypt.FileHeader) -> str:
    """One-line summary of a parsed header for the info label."""
    master = "master key present" if header.has_master_key else "no master key"
    return f"NotepadCrypt  |  {master}  |  Ciphertext: {_human_size(header.body_length)}"


class FileDropArea(QLabel):
    """Label that accepts a dropped file."""

    _BASE = (
        "QLabel {{ border: 2px {style} {color}; border-radius: 10px;"
        " background-color: #14213d; color: {color}; font-size: 14px; padding: 18px; }}"
    )
    _HINT = "Drop a NotepadCrypt file here\nor click Browse"

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setMinimumHeight(80)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        self._callback = None
        self._loaded = False
        self.reset()

    def set_callback(self, callback) -> None:
        self._callback = callback

    def _paint(self, style: str, color: str) -> None:
        self.setStyleSheet(self._BASE.format(style=style, color=color))

    def set_loaded(self, filename: str) -> None:
        self.setText(filename)
        self._loaded = True
        self._paint("solid", COLOR_SUCCESS)

    def reset(self) -> None:
        self.setText(self._HINT)
        self._loaded = False
        self._paint("dashed", COLOR_MUTED)

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
            self._paint("dashed", COLOR_WARNING)

    def dragLeaveEvent(self, event) -> None:
        if self._loaded:
            self._paint("solid", COLOR_SUCCESS)
        else:
            self._paint("dashed", COLOR_MUTED)

    def dropEvent(self, event) -> None:
        urls = event.mimeData().urls()
        path = urls[0].toLocalFile() if urls else ""
        if path and os.path.isfile(path):
            if self._callback:
                self._callback(path)
        else:
            self.reset()


class DecryptTab(QWidget):
    """NotepadCrypt file decryption tab."""

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self._settings = settings
        self._worker = None
        self._input_path: str | None = None
        self._header: notecrypt.FileHeader | None = None
        self._last_output_path: str | None = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(12)

        # ----- File -----
        file_group = QGroupBox("Encrypted File")
        file_layout = QVBoxLayout(file_group)

        self._drop_area = FileDropArea()
        self._drop_area.set_callback(self._on_file_selected)
        file_layout.addWidget(self._drop_area)

        browse_row = QHBoxLayout()
        self._file_path_label = QLabel("No file selected")
        self._file_path_label.setWordWrap(True)
        self._file_path_label.setProperty("class", "muted")
        browse_row.addWidget(self._file_path_label, 1)
        self._browse_btn = QPushButton("Browse...")
        self._browse_btn.setProperty("class", "secondary")
        self._browse_btn.clicked.connect(self._browse_file)
        browse_row.addWidget(self._browse_btn)
        file_layout.addLayout(browse_row)

        self._header_label = QLabel("")
        self._header_label.setProperty("class", "muted")
        file_layout.addWidget(self._header_label)
        layout.addWidget(file_group)

        # ----- Passphrase -----
        key_group = QGroupBox("Passphrase")
        key_layout = QVBoxLayout(key_group)

        pass_row = QHBoxLayout()
        self._passphrase_input = QLineEdit()
        self._passphrase_input.setPlaceholderText("Enter the passphrase...")
        self._passphrase_input.setEchoMode(QLineEdit.EchoMode.Password)
        self._passphrase_input.returnPressed.connect(self._on_decrypt)
        self._show_pass_btn = QPushButton("Show")
        self._show_pass_btn.setProperty("class", "secondary")
        self._show_pass_btn.setFixedWidth(60)
        self._show_pass_btn.clicked.connect(self._toggle_passphrase_visibility)
        pass_row.addWidget(self._passphrase_input, 1)
        pass_row.addWidget(self._show_pass_btn)
        key_layout.addLayout(pass_row)

        self._master_check = QCheckBox("Use master key")
        self._master_check.setChecked(self._settings.use_master_key)
        self._master_check.setToolTip(
            "Unlock with the master passphrase. Only files saved with a master key support this."
        )
        key_layout.addWidget(self._master_check)
        layout.addWidget(key_group)

        # ----- Output -----
        output_group = QGroupBox("Output")
        output_layout = QHBoxLayout(output_group)
        output_layout.addWidget(QLabel("Decrypted suffix:"))
        self._suffix_input = QLineEdit(self._settings.output_suffix)
        self._suffix_input.setFixedWidth(100)
        output_layout.addWidget(self._suffix_input)
        output_layout.addStretch()
        layout.addWidget(output_group)

        # ----- Actions -----
        btn_row = QHBoxLayout()
        btn_row.addStretch()
        self._decrypt_btn = QPushButton("  Decrypt File  ")
        self._decrypt_btn.setFixedHeight(40)
        self._decrypt_btn.clicked.connect(self._on_decrypt)
        btn_row.addWidget(self._decrypt_btn)

        self._open_folder_btn = QPushButton("  Open Folder  ")
        self._open_folder_btn.setFixedHeight(40)
        self._open_folder_btn.setProperty("class", "success")
        self._open_folder_btn.setVisible(False)
        self._open_folder_btn.clicked.connect(self._open_output_folder)
        btn_row.addWidget(self._open_folder_btn)
        btn_row.addStretch()
        layout.addLayout(btn_row)

        self._status_label = QLabel("")
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._status_label.setMinimumHeight(24)
        layout.addWidget(self._status_label)
        layout.addStretch()

    # ----- File selection -----

    def _browse_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Select Encrypted File", self._settings.last_directory, "All Files (*)"
        )
        if path:
            self._on_file_selected(path)

    def _on_file_selected(self, path: str) -> None:
        self._input_path = path
        self._open_folder_btn.setVisible(False)
        self._file_path_label.setText(path)
        self._drop_area.set_loaded(Path(path).name)
        self._settings.remember_file(path)
        self._inspect_header(path)

    def _inspect_header(self, path: str) -> None:
        self._header = None
        self._master_check.setEnabled(True)
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            self._header_label.setText("")
            self._set_status(f"Cannot read file: {e}", "error")
            return
        if not data:
            self._header_label.setText("Empty file (decrypts to an empty note)")
            self._set_status("", "")
            return
        try:
            self._header = notecrypt.parse_header(data)
        except notecrypt.FormatError as e:
            self._header_label.setText("")
            self._set_status(f"Not a NotepadCrypt file: {e}", "error")
            return
        self._header_label.setText(describe_header(self._header))
        if not self._header.has_master_key:
            self._master_check.setChecked(False)
            self._master_check.setEnabled(False)
        self._set_status("", "")

    def _toggle_passphrase_visibility(self) -> None:
        if self._passphrase_input.echoMode() == QLineEdit.EchoMode.Password:
            self._passphrase_input.setEchoMode(QLineEdit.EchoMode.Normal)
            self._show_pass_btn.setText("Hide")
        else:
            self._passphrase_input.setEchoMode(QLineEdit.EchoMode.Password)
            self._show_pass_btn.setText("Show")

    # ----- Decrypt -----

    def _output_path(self) -> str:
        p = Path(self._input_path)
        suffix = normalize_suffix(self._suffix_input.text())
        return str(p.with_name(p.stem + suffix)) if p.suffix else str(p) + suffix

    def _on_decrypt(self) -> None:
        if not self._input_path:
            self._set_status("Please select an encrypted file.", "error")
            return
        if self._worker is not None and self._worker.isRunning():
            return

        output_path = self._output_path()
        if output_path == self._input_path:
            self._set_status("Output would overwrite the encrypted file; change the suffix.", "error")
            return
        if Path(output_path).exists():
            reply = QMessageBox.question(
                self,
                "File Exists",
                f"Output file already exists:\n{output_path}\n\nOverwrite?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                return

        self._settings.use_master_key = self._master_check.isChecked()
        self._settings.output_suffix = normalize_suffix(self._suffix_input.text())
        self._settings.save()

        self._set_busy(True)
        self._open_folder_btn.setVisible(False)
        self._set_status("Decrypting...", "warning")

        self._worker = FileDecryptWorker(
            self._input_path,
            output_path,
            self._passphrase_input.text(),
            use_master_key=self._master_check.isChecked(),
            parent=self,
        )
        self._worker.finished.connect(self._on_done)
        self._worker.error.connect(self._on_error)
        self._worker.start()

    def _on_done(self, output_path: str, elapsed: float) -> None:
        self._last_output_path = output_path
        try:
            size = _human_size(Path(output_path).stat().st_size)
        except OSError:
            size = "?"
        self._set_status(
            f"Decrypted in {elapsed:.1f}s  |  {size}  |  {Path(output_path).name}", "success"
        )
        self._open_folder_btn.setVisible(True)
        self._set_busy(False)

    def _on_error(self, msg: str) -> None:
        self._set_status(f"Error: {msg}", "error")
        self._set_busy(False)

    def _set_busy(self, busy: bool) -> None:
        self._decrypt_btn.setDisabled(busy)
        self._browse_btn.setDisabled(busy)

    def _open_output_folder(self) -> None:
        if not self._last_output_path:
            return
        folder = str(Path(self._last_output_path).parent)
        try:
            if sys.platform == "win32":
                os.startfile(folder)
            elif sys.platform == "darwin":
                subprocess.Popen(["open", folder])
            else:
                subprocess.Popen(["xdg-open", folder])
        except OSError:
            self._set_status(f"Could not open: {folder}", "error")

    def _set_status(self, msg: str, level: str) -> None:
        colors = {"success": COLOR_SUCCESS, "error": COLOR_ERROR, "warning": COLOR_WARNING}
        self._status_label.setText(msg)
        color = colors.get(level, COLOR_MUTED)
        self._status_label.setStyleSheet(f"color: {color}; font-weight: 600;")
