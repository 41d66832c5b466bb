"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from quiz_studio.constants.quiz_constants import OPTIONS_PER_QUESTION


@dataclass(frozen=True, slots=True)
class AnswerOption:
    """One selectable answer of a question."""

    text: str
    is_correct: bool = False
    rationale: str = ""

    def to_document(self) -> dict[str, object]:
        return {"text": self.text, "isCorrect": self.is_correct, "rationale": self.rationale}

    @classmethod
    def from_document(cls, data: object) -> AnswerOption:
        if not isinstance(data, dict):
            raise ValueError("Answer option must be a mapping.")
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Answer option text missing.")
        rationale = data.get("rationale") or ""
        return cls(text=text, is_correct=bool(data.get("isCorrect")), rationale=str(rationale))


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question as stored in the quiz collection."""

    question: str
    answer_options: tuple[AnswerOption, ...]
    hint: str = ""

    @property
    def correct_option_index(self) -> int | None:
        return next((i for i, option in enumerate(self.answer_options) if option.is_correct), None)

    def to_document(self) -> dict[str, object]:
        return {
            "question": self.question,
            "answerOptions": [option.to_document() for option in self.answer_options],
            "hint": self.hint,
        }

    @classmethod
    def from_document(cls, data: object) -> Question:
        if not isinstance(data, dict):
            raise ValueError("Question must be a mapping.")
        text = data.get("question")
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Question text missing.")
        raw_options = data.get("answerOptions")
        if not isinstance(raw_options, list) or not raw_options:
            raise ValueError("Question must have answer options.")
        options = tuple(AnswerOption.from_document(option) for option in raw_options)
        hint = data.get("hint") or ""
        return cls(question=text, answer_options=options, hint=str(hint))


@dataclass(frozen=True, slots=True)
class Quiz:
    """A saved quiz. Read-only once it has been written."""

    id: str
    title: str
    questions: tuple[Question, ...]
    created_at: datetime | None = None
    created_by: str | None = None

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_document(self) -> dict[str, object]:
        """Return the stored field set (the id lives outside the document)."""
        created_at = self.created_at or datetime.now(timezone.utc)
        return {
            "title": self.title,
            "questions": [question.to_document() for question in self.questions],
            "createdAt": _format_timestamp(created_at),
            "createdBy": self.created_by,
        }

    @classmethod
    def from_document(cls, quiz_id: str, data: object) -> Quiz:
        if not isinstance(data, dict):
            raise ValueError("Quiz document must be a mapping.")
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("Quiz title missing.")
        raw_questions = data.get("questions")
        if not isinstance(raw_questions, list) or not raw_questions:
            raise ValueError("Quiz must contain at least one question.")
        created_by = data.get("createdBy")
        return cls(
            id=quiz_id,
            title=title,
            questions=tuple(Question.from_document(question) for question in raw_questions),
            created_at=_parse_timestamp(data.get("createdAt")),
            created_by=str(created_by) if created_by is not None else None,
        )


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """The answer given to one question during a taking session."""

    option_index: int
    selected_option: AnswerOption
    is_correct: bool


@dataclass(slots=True)
class OptionDraft:
    """Editable answer option inside the authoring buffer."""

    text: str = ""
    rationale: str = ""


@dataclass(slots=True)
class QuestionDraft:
    """Editable question with a fixed number of options.

    The correct answer is kept as an index so that at most one option can be
    marked correct; ``None`` means none has been chosen yet.
    """

    question: str = ""
    hint: str = ""
    options: list[OptionDraft] = field(
        default_factory=lambda: [OptionDraft() for _ in range(OPTIONS_PER_QUESTION)]
    )
    correct_option_index: int | None = None

    def to_question(self) -> Question:
        return Question(
            question=self.question.strip(),
            answer_options=tuple(
                AnswerOption(
                    text=option.text.strip(),
                    is_correct=index == self.correct_option_index,
                    rationale=option.rationale.strip(),
                )
                for index, option in enumerate(self.options)
            ),
            hint=self.hint.strip(),
        )


def _format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
