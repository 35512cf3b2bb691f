"""
NoteCrypt Web — Utility Helpers
===============================

Shared helpers for file size formatting, output filename generation
and header summaries.
"""

from __future__ import annotations

import sys
from pathlib import Path

_root = str(Path(__file__).resolve().parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

import notecrypt  # noqa: E402

# Extensions NotepadCrypt users commonly give encrypted notes
ENCRYPTED_SUFFIXES = (".enc", ".crypt", ".bin")


# ---------------------------------------------------------------------------
# Human-readable file size
# ---------------------------------------------------------------------------

def human_file_size(size_bytes: float) -> str:
    """Convert byte count to a human-readable string (e.g. '1.5 MB')."""
    if size_bytes < 0:
        return "0 B"
    for unit in ("B", "KB", "MB", "GB"):
        if size_bytes < 1024.0:
            if unit == "B":
                return f"{int(size_bytes)} {unit}"
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"


# ---------------------------------------------------------------------------
# Output filename helper
# ---------------------------------------------------------------------------

def decrypted_filename(original: str) -> str:
    """
    Derive a download name for the plaintext.

    A known encrypted suffix is replaced by ``.txt``; anything else gets
    ``.txt`` appended.
    """
    lower = original.lower()
    for suffix in ENCRYPTED_SUFFIXES:
        if lower.endswith(suffix) and len(original) > len(suffix):
            return original[: -len(suffix)] + ".txt"
    return original + ".txt"


def header_summary(header: notecrypt.FileHeader) -> str:
    """Markdown summary of a parsed header."""
    master = "yes" if header.has_master_key else "no"
    return (
        f"**Format:** NotepadCrypt  ·  **Master key:** {master}  ·  "
        f"**Ciphertext:** {human_file_size(header.body_length)}"
    )
