import logging
import sys

# Try PyQt5, fallback to PySide6 (consistent with UI code)
try:
    from PyQt5.QtWidgets import QApplication
except Exception:
    try:
        from PySide6.QtWidgets import QApplication
    except Exception:
        raise RuntimeError("Install PyQt5 or PySide6 (pip install pyqt5 OR pip install pyside6)")

from ui.main_window import PerceptronTrainerMainWindow


def main():
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app = QApplication(sys.argv)
    win = PerceptronTrainerMainWindow()
    win.show()
    win.on_restart()
    sys.exit(app.exec_() if hasattr(app, 'exec_') else app.exec())


if __name__ == "__main__":
    main()
