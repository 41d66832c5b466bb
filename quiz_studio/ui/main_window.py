"""Qt main window hosting the single-page quiz client."""

from __future__ import annotations

from PySide6.QtCore import QUrl
from PySide6.QtGui import QAction
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QMainWindow

from quiz_studio.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_studio.constants.ui_constants import WINDOW_TITLE
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.ui.dialog_helpers import show_info


class QuizMainWindow(QMainWindow):
    """Desktop window that shows the web client served by the local API."""

    def __init__(self, quiz_manager: QuizManager, app_url: str) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.resize(1000, 760)

        self.quiz_manager = quiz_manager
        self.app_url = app_url

        self.web_view = QWebEngineView(self)
        self.setCentralWidget(self.web_view)
        self._build_menu()
        self.web_view.load(QUrl(app_url))

    def _build_menu(self) -> None:
        reload_action = QAction("Reload", self)
        reload_action.setShortcut("Ctrl+R")
        reload_action.triggered.connect(self.web_view.reload)

        about_action = QAction(f"About {APP_NAME}", self)
        about_action.triggered.connect(self._handle_about)

        menu = self.menuBar().addMenu(APP_NAME)
        menu.addAction(reload_action)
        menu.addAction(about_action)

    def _handle_about(self) -> None:
        show_info(
            self,
            f"About {APP_NAME}",
            f"{APP_NAME} {APP_VERSION}\n\n{APP_ABOUT_TEXT}\n\n{APP_LICENSE}",
        )

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.quiz_manager.shutdown()
        super().closeEvent(event)
