from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone

import pytest

from quiz_studio.core.models import AnswerOption, Question, Quiz
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.core.services.document_store import (
    DocumentStore,
    ErrorCallback,
    MemoryDocumentStore,
    SnapshotCallback,
    StorageError,
    Subscription,
)
from quiz_studio.core.services.identity_provider import LocalIdentityProvider
from quiz_studio.core.services.quiz_collection import QuizCollection
from quiz_studio.core.services.session_bootstrapper import SessionBootstrapper


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ControlledStore(DocumentStore):
    """Memory store whose failures are triggered by the test."""

    def __init__(self) -> None:
        self.inner = MemoryDocumentStore()
        self.fail_writes = False
        self.on_add: Callable[[], None] | None = None
        self._error_callbacks: list[ErrorCallback] = []

    def add(self, path: str, fields: Mapping[str, object]) -> str:
        if self.on_add is not None:
            self.on_add()
        if self.fail_writes:
            raise StorageError("network unavailable")
        return self.inner.add(path, fields)

    def on_snapshot(
        self,
        path: str,
        on_next: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        if on_error is not None:
            self._error_callbacks.append(on_error)
        return self.inner.on_snapshot(path, on_next, on_error)

    def emit_error(self, error: Exception) -> None:
        for callback in list(self._error_callbacks):
            callback(error)


def make_quiz(title: str = "Cells", question_count: int = 3, correct_index: int = 1) -> Quiz:
    questions = tuple(
        Question(
            question=f"Question {number}?",
            answer_options=tuple(
                AnswerOption(
                    text=f"Option {letter}",
                    is_correct=index == correct_index,
                    rationale=f"Because {letter}",
                )
                for index, letter in enumerate("ABCD")
            ),
            hint=f"Hint {number}" if number % 2 else "",
        )
        for number in range(1, question_count + 1)
    )
    return Quiz(id="", title=title, questions=questions, created_by="seed")


def fill_cells_quiz(manager: QuizManager) -> None:
    """Author the example quiz from the requirements through the manager."""
    manager.set_quiz_title("Cells")
    manager.set_question_text(0, "What is the powerhouse of the cell?")
    manager.set_question_hint(0, "It produces ATP.")
    for index, text in enumerate(["Nucleus", "Mitochondria", "Ribosome", "Golgi"]):
        manager.set_option_text(0, index, text)
    manager.set_option_rationale(0, 1, "Mitochondria generate most of the cell's ATP.")
    manager.set_correct_option(0, 1)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> ControlledStore:
    return ControlledStore()


@pytest.fixture
def collection(store: ControlledStore) -> QuizCollection:
    return QuizCollection(store, "test-app")


@pytest.fixture
def identity() -> LocalIdentityProvider:
    return LocalIdentityProvider(custom_tokens={"good-token": "teacher-1"})


@pytest.fixture
def manager(collection: QuizCollection, identity: LocalIdentityProvider, clock: FakeClock):
    quiz_manager = QuizManager(collection, SessionBootstrapper(identity), clock=clock)
    quiz_manager.start()
    yield quiz_manager
    quiz_manager.shutdown()
