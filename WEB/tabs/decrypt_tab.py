"""
NoteCrypt Web — Decrypt Tab
===========================

Decrypt an uploaded NotepadCrypt file with its passphrase, or with the
master passphrase when the file carries a master key. The file is handled
entirely in memory and the plaintext is offered as a download.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import streamlit as st

# -- project-root import ---------------------------------------------------
_root = str(Path(__file__).resolve().parent.parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

import notecrypt  # noqa: E402

from utils import decrypted_filename, header_summary, human_file_size  # noqa: E402

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public render function
# ---------------------------------------------------------------------------

def render() -> None:
    """Render the Decrypt tab."""

    uploaded = st.file_uploader("Choose an encrypted note", key="decrypt_uploader")

    header: notecrypt.FileHeader | None = None
    if uploaded:
        data = uploaded.getvalue()
        st.caption(f"**{uploaded.name}**  —  {human_file_size(uploaded.size)}")
        if data:
            try:
                header = notecrypt.parse_header(data)
            except notecrypt.FormatError as e:
                st.error(f"Not a NotepadCrypt file: {e}")
                return
            st.markdown(header_summary(header))
        else:
            st.info("Empty file: it decrypts to an empty note.")

    passphrase = st.text_input(
        "Passphrase",
        type="password",
        placeholder="Enter the passphrase…",
        key="decrypt_passphrase",
    )
    use_master_key = st.checkbox(
        "Use master key",
        key="decrypt_master",
        disabled=header is not None and not header.has_master_key,
        help="Unlock with the master passphrase (files saved with a master key only).",
    )

    st.markdown("---")
    if st.button("🔓 Decrypt", type="primary", use_container_width=True, key="decrypt_action"):
        if not uploaded:
            st.error("Please upload a file first.")
            return

        try:
            with st.spinner("Decrypting…"):
                plaintext = notecrypt.decrypt_data(uploaded.getvalue(), passphrase, use_master_key)
        except notecrypt.BadPaddingOrKeyError:
            st.error("Decryption failed: incorrect passphrase or corrupt file.")
            return
        except notecrypt.NoMasterKeyPresentError:
            st.error("This file has no master key. Untick “Use master key”.")
            return
        except notecrypt.FormatError as e:
            st.error(f"Format error: {e}")
            return
        except notecrypt.NoteCryptError as e:
            logger.warning("Decryption of %s failed: %s", uploaded.name, e)
            st.error(f"Error: {e}")
            return

        out_name = decrypted_filename(uploaded.name)
        st.success(f"Decryption successful!  ({human_file_size(len(plaintext))})")
        st.download_button(
            f"📥 Download {out_name}",
            data=plaintext,
            file_name=out_name,
            mime="text/plain",
            key="decrypt_download",
        )
