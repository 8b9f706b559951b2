import sys

from PyQt6 import QtWidgets

from .log import configure_logging
from .ui.main_window import MainWindow


def main() -> int:
    configure_logging()
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("DevForge")
    win = MainWindow()
    win.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
