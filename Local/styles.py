"""
NoteCrypt Dark Theme Stylesheet
===============================

Dark theme for the PySide6 desktop application. The colour constants
are also used for inline status colouring.
"""

COLOR_BG = "#101828"
COLOR_PANEL = "#18233a"
COLOR_INPUT = "#0c1424"
COLOR_BORDER = "#2b3a58"
COLOR_ACCENT = "#f0a500"
COLOR_ACCENT_HOVER = "#ffc233"
COLOR_TEXT = "#e6e9f0"
COLOR_MUTED = "#8b95ab"
COLOR_SUCCESS = "#3ccf7e"
COLOR_WARNING = "#f0a500"
COLOR_ERROR = "#ef5350"

STYLESHEET = f"""
QWidget {{
    background-color: {COLOR_BG};
    color: {COLOR_TEXT};
    font-size: 13px;
}}

QTabWidget::pane {{
    border: 1px solid {COLOR_BORDER};
    border-radius: 6px;
    background-color: {COLOR_PANEL};
}}

QTabBar::tab {{
    background-color: {COLOR_BG};
    color: {COLOR_MUTED};
    padding: 8px 18px;
    border-bottom: 2px solid transparent;
}}

QTabBar::tab:selected {{
    color: {COLOR_TEXT};
    border-bottom: 2px solid {COLOR_ACCENT};
}}

QGroupBox {{
    background-color: {COLOR_PANEL};
    border: 1px solid {COLOR_BORDER};
    border-radius: 6px;
    margin-top: 14px;
    padding: 18px 10px 8px 10px;
    font-weight: 600;
}}

QGroupBox::title {{
    subcontrol-origin: margin;
    padding: 4px 10px;
    color: {COLOR_ACCENT};
}}

QLabel {{
    background-color: transparent;
}}

QLabel[class="muted"] {{
    color: {COLOR_MUTED};
    font-size: 12px;
}}

QPushButton {{
    background-color: {COLOR_ACCENT};
    color: {COLOR_BG};
    border: none;
    border-radius: 5px;
    padding: 7px 16px;
    font-weight: 600;
}}

QPushButton:hover {{
    background-color: {COLOR_ACCENT_HOVER};
}}

QPushButton:disabled {{
    background-color: {COLOR_BORDER};
    color: {COLOR_MUTED};
}}

QPushButton[class="secondary"] {{
    background-color: transparent;
    color: {COLOR_TEXT};
    border: 1px solid {COLOR_BORDER};
}}

QPushButton[class="success"] {{
    background-color: {COLOR_SUCCESS};
}}

QLineEdit {{
    background-color: {COLOR_INPUT};
    border: 1px solid {COLOR_BORDER};
    border-radius: 5px;
    padding: 6px 8px;
}}

QLineEdit:focus {{
    border: 1px solid {COLOR_ACCENT};
}}

QCheckBox:disabled {{
    color: {COLOR_MUTED};
}}

QStatusBar, QMenuBar, QMenu {{
    background-color: {COLOR_BG};
    color: {COLOR_MUTED};
}}

QMenu::item:selected, QMenuBar::item:selected {{
    background-color: {COLOR_PANEL};
    color: {COLOR_TEXT};
}}
"""
