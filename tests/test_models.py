from __future__ import annotations

from datetime import datetime, timezone
import logging

import pytest

from conftest import make_quiz
from quiz_studio.core.models import Quiz
from quiz_studio.core.services.document_store import DocumentSnapshot
from quiz_studio.core.services.quiz_collection import QuizCollection, decode_quizzes


def _document(**overrides) -> dict:
    document = make_quiz(question_count=1).to_document()
    document.update(overrides)
    return document


def test_document_round_trip_keeps_fields():
    created_at = datetime(2024, 3, 2, 9, 30, tzinfo=timezone.utc)
    quiz = Quiz(
        id="",
        title="Cells",
        questions=make_quiz(question_count=2).questions,
        created_at=created_at,
        created_by="user-1",
    )

    restored = Quiz.from_document("quiz-1", quiz.to_document())

    assert restored.id == "quiz-1"
    assert restored.created_at == created_at
    assert restored.questions == quiz.questions
    assert restored.questions[0].correct_option_index == 1


def test_missing_optional_fields_default():
    document = _document()
    del document["createdAt"]
    del document["questions"][0]["hint"]
    del document["questions"][0]["answerOptions"][0]["rationale"]

    quiz = Quiz.from_document("quiz-1", document)

    assert quiz.created_at is None
    assert quiz.questions[0].hint == ""
    assert quiz.questions[0].answer_options[0].rationale == ""


def test_zulu_timestamps_are_accepted():
    quiz = Quiz.from_document("quiz-1", _document(createdAt="2024-03-02T09:30:00Z"))

    assert quiz.created_at == datetime(2024, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "document",
    [
        None,
        {"title": "Cells"},
        {"title": " ", "questions": [{"question": "Q?", "answerOptions": [{"text": "A"}]}]},
        {"title": "Cells", "questions": []},
        {"title": "Cells", "questions": [{"question": "", "answerOptions": [{"text": "A"}]}]},
        {"title": "Cells", "questions": [{"question": "Q?", "answerOptions": []}]},
        {"title": "Cells", "questions": [{"question": "Q?", "answerOptions": [{"text": 3}]}]},
    ],
)
def test_malformed_documents_raise(document):
    with pytest.raises(ValueError):
        Quiz.from_document("quiz-1", document)


def test_decode_quizzes_skips_bad_documents(caplog):
    documents = [
        DocumentSnapshot(id="good", data=_document(title="Cells")),
        DocumentSnapshot(id="bad", data={"title": "Broken"}),
    ]

    with caplog.at_level(logging.WARNING):
        quizzes = decode_quizzes(documents)

    assert [quiz.id for quiz in quizzes] == ["good"]
    assert "bad" in caplog.text


def test_collection_path_is_scoped_to_app(store):
    assert QuizCollection(store, "demo").path == "artifacts/demo/public/data/quizzes"
    with pytest.raises(ValueError):
        QuizCollection(store, "  ")
