# ui/themes.py

LIGHT_PALETTE = {
    'window': '#f8fafc',
    'panel': '#ffffff',
    'border': '#e2e8f0',
    'text': '#1e293b',
    'title': '#3b82f6',
    'button': '#3b82f6',
    'button_hover': '#2563eb',
    'input': '#ffffff',
    'header': '#f1f5f9',
    # plot colours
    'positive': '#3b82f6',
    'negative': '#f59e0b',
    'line': '#8b5cf6',
    'converged': '#10b981',
    'failed': '#ef4444',
    'highlight': '#ef4444',
    'axes': '#ffffff',
}

DARK_PALETTE = {
    'window': '#0f172a',
    'panel': '#111c31',
    'border': '#334155',
    'text': '#e2e8f0',
    'title': '#93c5fd',
    'button': '#2563eb',
    'button_hover': '#1d4ed8',
    'input': '#0b1324',
    'header': '#1e293b',
    'positive': '#60a5fa',
    'negative': '#fbbf24',
    'line': '#a78bfa',
    'converged': '#34d399',
    'failed': '#f87171',
    'highlight': '#f87171',
    'axes': '#0f172a',
}

_STYLESHEET = """
QWidget {{
    background-color: {window};
    color: {text};
    font-family: 'Segoe UI', Roboto, Arial, sans-serif;
    font-size: 13px;
}}
QGroupBox {{
    background-color: {panel};
    border: 1px solid {border};
    border-radius: 8px;
    margin-top: 8px;
    padding: 8px;
}}
QGroupBox::title {{
    subcontrol-origin: margin;
    left: 10px;
    padding: 0 6px;
    color: {title};
    font-weight: 600;
}}
QPushButton {{
    background-color: {button};
    color: #ffffff;
    border-radius: 6px;
    padding: 6px 12px;
}}
QPushButton:hover {{ background-color: {button_hover}; }}
QPushButton:disabled {{ background-color: {border}; }}
QLineEdit, QTextEdit, QComboBox, QSpinBox, QDoubleSpinBox {{
    background-color: {input};
    border: 1px solid {border};
    border-radius: 6px;
    padding: 4px;
    color: {text};
}}
QTableWidget {{
    background-color: {input};
    border: 1px solid {border};
    color: {text};
    gridline-color: {border};
}}
QHeaderView::section {{ background-color: {header}; color: {text}; padding: 4px; }}
"""


def stylesheet(palette: dict) -> str:
    return _STYLESHEET.format(**palette)


LIGHT_THEME = stylesheet(LIGHT_PALETTE)
DARK_THEME = stylesheet(DARK_PALETTE)
