"""Service holding the quiz being authored and validating it for saving."""

from __future__ import annotations

from datetime import datetime

from quiz_studio.constants.quiz_constants import OPTIONS_PER_QUESTION
from quiz_studio.constants.ui_constants import VALIDATION_FAILED_PREFIX
from quiz_studio.core.models import QuestionDraft, Quiz


class AuthoringValidationError(ValueError):
    """Raised when the authoring buffer is not ready to be saved."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__(f"{VALIDATION_FAILED_PREFIX}: {'; '.join(self.problems)}.")


class AuthoringBuffer:
    """Title plus an append-only list of question drafts."""

    def __init__(self) -> None:
        self._title: str = ""
        self._questions: list[QuestionDraft] = [QuestionDraft()]

    def reset(self) -> None:
        self._title = ""
        self._questions = [QuestionDraft()]

    def get_title(self) -> str:
        return self._title

    def get_questions(self) -> list[QuestionDraft]:
        return list(self._questions)

    def get_question_count(self) -> int:
        return len(self._questions)

    def set_title(self, title: str) -> None:
        self._title = title

    def add_question(self) -> int:
        """Append a blank question and return its index."""
        self._questions.append(QuestionDraft())
        return len(self._questions) - 1

    def set_question_text(self, question_index: int, text: str) -> None:
        self._question_at(question_index).question = text

    def set_hint(self, question_index: int, hint: str) -> None:
        self._question_at(question_index).hint = hint

    def set_option_text(self, question_index: int, option_index: int, text: str) -> None:
        draft = self._question_at(question_index)
        self._check_option_index(option_index)
        draft.options[option_index].text = text

    def set_option_rationale(self, question_index: int, option_index: int, rationale: str) -> None:
        draft = self._question_at(question_index)
        self._check_option_index(option_index)
        draft.options[option_index].rationale = rationale

    def set_correct_option(self, question_index: int, option_index: int) -> None:
        """Mark one option as correct, clearing its siblings in the same question."""
        draft = self._question_at(question_index)
        self._check_option_index(option_index)
        draft.correct_option_index = option_index

    def validate(self) -> list[str]:
        """Return every problem that blocks saving; empty when valid."""
        problems: list[str] = []
        if not self._title.strip():
            problems.append("quiz title is required")
        for number, draft in enumerate(self._questions, start=1):
            if not draft.question.strip():
                problems.append(f"question {number} needs text")
            if any(not option.text.strip() for option in draft.options):
                problems.append(f"question {number} has empty answer options")
            if draft.correct_option_index is None:
                problems.append(f"question {number} needs a correct answer")
        return problems

    def build_quiz(self, created_by: str, created_at: datetime) -> Quiz:
        """Validate and convert the buffer into a quiz ready to be written.

        The returned quiz has no id; storage assigns one on creation.
        """
        problems = self.validate()
        if problems:
            raise AuthoringValidationError(problems)
        return Quiz(
            id="",
            title=self._title.strip(),
            questions=tuple(draft.to_question() for draft in self._questions),
            created_at=created_at,
            created_by=created_by,
        )

    def _question_at(self, question_index: int) -> QuestionDraft:
        if not 0 <= question_index < len(self._questions):
            raise IndexError(f"Question index {question_index} out of range")
        return self._questions[question_index]

    @staticmethod
    def _check_option_index(option_index: int) -> None:
        if not 0 <= option_index < OPTIONS_PER_QUESTION:
            raise IndexError(f"Option index {option_index} out of range")
