import sys

from PySide6.QtWidgets import QApplication

from ui.main_window import BridgeEditorWindow
from utils.logger import setup_bridge_logger


def run_application():
    logger = setup_bridge_logger()
    logger.info("Starting TextMate bridge editor...")

    app = QApplication(sys.argv)

    window = BridgeEditorWindow()
    window.show()

    exit_code = app.exec()
    logger.info(f"Application finished with code: {exit_code}")
    sys.exit(exit_code)


if __name__ == "__main__":
    run_application()
