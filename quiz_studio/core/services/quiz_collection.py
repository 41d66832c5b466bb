"""Service for reading and writing quizzes in the shared collection."""

from __future__ import annotations

from collections.abc import Callable
import logging

from quiz_studio.constants.quiz_constants import QUIZ_COLLECTION_PATH_TEMPLATE
from quiz_studio.core.models import Quiz
from quiz_studio.core.services.document_store import (
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Subscription,
)

logger = logging.getLogger(__name__)


class QuizCollection:
    """Quiz documents scoped to one application namespace."""

    def __init__(self, store: DocumentStore, app_id: str) -> None:
        if not app_id.strip():
            raise ValueError("Application id must not be empty.")
        self._store = store
        self._path = QUIZ_COLLECTION_PATH_TEMPLATE.format(app_id=app_id.strip())

    @property
    def path(self) -> str:
        return self._path

    def subscribe(
        self,
        on_quizzes: Callable[[list[Quiz]], None],
        on_error: ErrorCallback,
    ) -> Subscription:
        """Deliver the full decoded quiz list on every change."""

        def handle_snapshot(documents: list[DocumentSnapshot]) -> None:
            on_quizzes(decode_quizzes(documents))

        return self._store.on_snapshot(self._path, handle_snapshot, on_error)

    def create(self, quiz: Quiz) -> str:
        """Write a new quiz and return the id assigned by the store."""
        quiz_id = self._store.add(self._path, quiz.to_document())
        logger.info("Saved quiz %r as %s", quiz.title, quiz_id)
        return quiz_id


def decode_quizzes(documents: list[DocumentSnapshot]) -> list[Quiz]:
    """Decode snapshot documents, skipping any that are not valid quizzes."""
    quizzes: list[Quiz] = []
    for document in documents:
        try:
            quizzes.append(Quiz.from_document(document.id, document.data))
        except ValueError as exc:
            logger.warning("Skipping malformed quiz document %s: %s", document.id, exc)
    return quizzes
