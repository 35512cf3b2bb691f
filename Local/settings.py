"""
NoteCrypt Desktop Settings
==========================

Remembers a few UI preferences between runs:
  - the last directory a file was opened from
  - whether "Use master key" was ticked
  - the suffix appended to decrypted output files

Stored as JSON in an OS-appropriate config directory. Passphrases are
never written to disk.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".txt"


def normalize_suffix(text: str) -> str:
    """Turn user input such as ``txt`` or `` .md `` into a dotted suffix."""
    suffix = text.strip().replace("/", "").replace("\\", "").lstrip(".")
    if not suffix:
        return DEFAULT_SUFFIX
    return "." + suffix


# ---------------------------------------------------------------------------
# Config directory
# ---------------------------------------------------------------------------

def config_dir() -> Path:
    """Return the OS-appropriate config directory for NoteCrypt."""
    if platform.system() == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif platform.system() == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "NoteCrypt"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings:
    """Persisted desktop preferences."""

    def __init__(self, path: Optional[Path] = None):
        self._path = path if path is not None else config_dir() / "settings.json"
        self.last_directory: str = ""
        self.use_master_key: bool = False
        self.output_suffix: str = DEFAULT_SUFFIX
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def to_dict(self) -> dict:
        return {
            "last_directory": self.last_directory,
            "use_master_key": self.use_master_key,
            "output_suffix": self.output_suffix,
        }

    # ----- persistence -----

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            # Unreadable or corrupt file: keep defaults
            logger.warning("Ignoring unreadable settings file %s", self._path)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed settings file %s", self._path)
            return
        self.last_directory = str(data.get("last_directory", ""))
        self.use_master_key = bool(data.get("use_master_key", False))
        self.output_suffix = normalize_suffix(str(data.get("output_suffix") or ""))

    def save(self) -> None:
        """Persist settings to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.to_dict(), indent=2), "utf-8")

    def remember_file(self, file_path: str) -> None:
        """Record the directory of a chosen file and save."""
        self.last_directory = str(Path(file_path).parent)
        self.save()
