"""Application entry point for QuizStudio."""

from __future__ import annotations

import os
import sys

from quiz_studio.config import HEADLESS_ENV, ConfigurationError, Settings, load_settings, parse_flag
from quiz_studio.constants.ui_constants import STARTUP_FAILED_TITLE
from quiz_studio.core.backend_factory import create_quiz_manager
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.server.api_server import run_api_server, start_api_server
from quiz_studio.utils.logging_config import configure_logging


def _app_url(settings: Settings) -> str:
    host = "127.0.0.1" if settings.host in ("0.0.0.0", "") else settings.host
    return f"http://{host}:{settings.port}/"


def _run_desktop(manager: QuizManager, settings: Settings) -> int:
    from PySide6.QtWidgets import QApplication

    from quiz_studio.ui.main_window import QuizMainWindow

    start_api_server(quiz_manager=manager, host=settings.host, port=settings.port)
    app = QApplication.instance() or QApplication(sys.argv)
    window = QuizMainWindow(quiz_manager=manager, app_url=_app_url(settings))
    window.show()
    return app.exec()


def _report_fatal(message: str, headless: bool) -> None:
    if headless:
        return
    from PySide6.QtWidgets import QApplication

    from quiz_studio.ui.dialog_helpers import show_error

    _app = QApplication.instance() or QApplication(sys.argv)
    show_error(None, STARTUP_FAILED_TITLE, message)


def main() -> None:
    """Initialize logging, resolve the session, start the API server and the UI."""
    logger = configure_logging()
    logger.info("Starting QuizStudio…")

    try:
        settings = load_settings()
        manager = create_quiz_manager(settings)
    except ConfigurationError as exc:
        logger.critical("Startup failed: %s", exc)
        headless = "--headless" in sys.argv[1:] or parse_flag(os.environ.get(HEADLESS_ENV))
        _report_fatal(str(exc), headless)
        sys.exit(1)

    headless = settings.headless or "--headless" in sys.argv[1:]
    manager.start()
    logger.info("App page available at %s", _app_url(settings))
    try:
        if headless:
            run_api_server(quiz_manager=manager, host=settings.host, port=settings.port)
            exit_code = 0
        else:
            exit_code = _run_desktop(manager, settings)
    finally:
        manager.shutdown()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
