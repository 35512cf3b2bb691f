"""
NoteCrypt Background Workers
============================

QThread-based worker so decryption does not block the UI. The pure-Python
cipher is slow on large notes, so even a single in-memory decode runs off
the main thread.
"""

from __future__ import annotations

import logging
import time

from PySide6.QtCore import QThread, Signal

import notecrypt

logger = logging.getLogger(__name__)


class FileDecryptWorker(QThread):
    """Decrypt a NoteCrypt file in a background thread."""

    finished = Signal(str, float)  # (output_path, elapsed_sec)
    error = Signal(str)            # error message

    def __init__(
        self,
        input_path: str,
        output_path: str,
        passphrase: str,
        use_master_key: bool = False,
        parent=None,
    ):
        super().__init__(parent)
        self._input_path = input_path
        self._output_path = output_path
        self._passphrase = passphrase
        self._use_master_key = use_master_key

    def run(self) -> None:
        t0 = time.perf_counter()
        try:
            notecrypt.decrypt_file(
                self._input_path,
                self._output_path,
                self._passphrase,
                self._use_master_key,
            )
        except notecrypt.NoteCryptError as exc:
            logger.warning("Decryption of %s failed: %s", self._input_path, exc)
            self.error.emit(str(exc))
            return
        except OSError as exc:
            logger.exception("I/O error while decrypting %s", self._input_path)
            self.error.emit(str(exc))
            return
        self.finished.emit(self._output_path, time.perf_counter() - t0)
