"""Service holding the latest quiz list delivered by the subscription."""

from __future__ import annotations

from quiz_studio.core.models import Quiz


class QuizList:
    """Latest snapshot of the quiz collection."""

    def __init__(self) -> None:
        self._quizzes: list[Quiz] = []
        self._loading: bool = True

    def replace(self, quizzes: list[Quiz]) -> None:
        """Swap in a new snapshot in delivery order."""
        self._quizzes = list(quizzes)
        self._loading = False

    def mark_failed(self) -> None:
        """Stop loading after an error; the last list stays in place."""
        self._loading = False

    def get_quizzes(self) -> list[Quiz]:
        return list(self._quizzes)

    def find(self, quiz_id: str) -> Quiz:
        for quiz in self._quizzes:
            if quiz.id == quiz_id:
                return quiz
        raise LookupError(f"Quiz {quiz_id!r} was not found.")

    def is_loading(self) -> bool:
        return self._loading
