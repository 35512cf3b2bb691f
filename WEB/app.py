"""
NoteCrypt — Web Edition
=======================

Streamlit application entry point.

Launch:
    streamlit run WEB/app.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# -- Ensure project root is importable ------------------------------------
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

# -- Ensure WEB/ directory is importable ----------------------------------
_web_root = str(Path(__file__).resolve().parent)
if _web_root not in sys.path:
    sys.path.insert(0, _web_root)

import streamlit as st  # noqa: E402

# ---------------------------------------------------------------------------
# Page config — must be the first Streamlit command
# ---------------------------------------------------------------------------

st.set_page_config(
    page_title="NoteCrypt",
    page_icon="🔓",
    layout="centered",
)

st.markdown(
    """
    <style>
    .stButton > button[kind="primary"] {
        background-color: #f0a500;
        border-color: #f0a500;
        color: #101828;
    }
    .notecrypt-header { text-align: center; padding: 1rem 0 0.5rem 0; }
    .notecrypt-header p { color: #8b95ab; font-size: 0.95rem; }
    </style>
    <div class="notecrypt-header">
        <h1>🔓 NoteCrypt</h1>
        <p>NotepadCrypt file decryptor — Web Edition</p>
    </div>
    """,
    unsafe_allow_html=True,
)

with st.sidebar:
    st.markdown("### About")
    st.markdown(
        "Decrypts notes saved by **NotepadCrypt**: AES-256-CBC with a "
        "SHA-256 passphrase key and an optional master key."
    )
    st.markdown("---")
    st.markdown("#### Notice")
    st.markdown(
        "• Files and passphrases stay in this session's memory.  \n"
        "• The format has no integrity tag; a wrong passphrase is only "
        "caught by the padding check."
    )
    st.caption("NoteCrypt v1.0 — Web Edition")

from tabs.decrypt_tab import render as render_decrypt  # noqa: E402

render_decrypt()
