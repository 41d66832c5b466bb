"""Qt desktop shell for the quiz application."""

from .dialog_helpers import show_error, show_info
from .main_window import QuizMainWindow

__all__ = [
    "QuizMainWindow",
    "show_error",
    "show_info",
]
