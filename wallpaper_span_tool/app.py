"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m wallpaper_span_tool
    wallpaper-span-tool          (after pip install)
"""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from wallpaper_span_tool.main_window import MainWindow

DARK_STYLESHEET = """
    QMainWindow { background: #2b2b2b; }
    QWidget { background: #2b2b2b; color: #ddd; font-size: 10pt; }
    QLineEdit { background: #1e1e1e; border: 1px solid #555; border-radius: 4px; padding: 3px 6px; }
    QComboBox { background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 3px 8px; }
    QComboBox QAbstractItemView { background: #1e1e1e; selection-background-color: #3a6ea5; }
    QToolBar { background: #333; border-bottom: 1px solid #444; spacing: 4px; padding: 4px; }
    QToolButton { padding: 4px 8px; border-radius: 4px; }
    QToolButton:hover { background: #4a4a4a; }
    QToolButton:disabled { color: #666; }
    QStatusBar { background: #333; border-top: 1px solid #444; }
    QProgressDialog { background: #2b2b2b; }
"""


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = QApplication(sys.argv)
    app.setApplicationName("Wallpaper Span Tool")
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()

    try:
        sys.exit(app.exec())
    except (SystemExit, KeyboardInterrupt):
        pass


if __name__ == "__main__":
    main()
