"""Service for taking a quiz one question at a time."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from quiz_studio.constants.ui_constants import FEEDBACK_CORRECT, FEEDBACK_INCORRECT
from quiz_studio.core.models import AnswerOption, AnswerRecord, Question, Quiz


class TakingPhase(Enum):
    """Phase of the quiz-taking state machine."""

    IDLE = auto()
    ANSWERING = auto()
    RATIONALE_SHOWN = auto()
    RESULTS = auto()


class OptionHighlight(Enum):
    """How an answer option is drawn."""

    NEUTRAL = "neutral"
    SELECTED = "selected"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True, slots=True)
class QuestionReview:
    """Summary line for one question on the results screen."""

    index: int
    question: Question
    record: AnswerRecord | None

    @property
    def correct_option(self) -> AnswerOption | None:
        index = self.question.correct_option_index
        return self.question.answer_options[index] if index is not None else None


class TakingSession:
    """State machine for a single quiz attempt.

    ``IDLE`` -> ``ANSWERING(i)`` -> ``RATIONALE_SHOWN(i)`` -> ``ANSWERING(i + 1)``
    or ``RESULTS`` after the last question. Answers are recorded once per
    question and never changed.
    """

    def __init__(self) -> None:
        self._quiz: Quiz | None = None
        self._phase = TakingPhase.IDLE
        self._question_index: int = 0
        self._answers: dict[int, AnswerRecord] = {}
        self._feedback: str | None = None
        self._hint_visible: bool = False

    def select_quiz(self, quiz: Quiz) -> None:
        if not quiz.questions:
            raise ValueError("Quiz has no questions.")
        self._quiz = quiz
        self._phase = TakingPhase.ANSWERING
        self._question_index = 0
        self._answers = {}
        self._feedback = None
        self._hint_visible = False

    def select_answer(self, option_index: int) -> bool:
        """Record the answer for the current question.

        Returns False without changing anything unless the session is
        waiting for an answer.
        """
        if self._phase is not TakingPhase.ANSWERING or self._quiz is None:
            return False
        if self._question_index in self._answers:
            return False
        options = self.get_current_question().answer_options
        if not 0 <= option_index < len(options):
            raise ValueError(f"Option index {option_index} out of range.")

        option = options[option_index]
        self._answers[self._question_index] = AnswerRecord(
            option_index=option_index,
            selected_option=option,
            is_correct=option.is_correct,
        )
        self._feedback = FEEDBACK_CORRECT if option.is_correct else FEEDBACK_INCORRECT
        self._phase = TakingPhase.RATIONALE_SHOWN
        return True

    def advance(self) -> bool:
        if self._phase is not TakingPhase.RATIONALE_SHOWN or self._quiz is None:
            return False
        if self._question_index >= len(self._quiz.questions) - 1:
            self._phase = TakingPhase.RESULTS
        else:
            self._question_index += 1
            self._phase = TakingPhase.ANSWERING
        self._feedback = None
        self._hint_visible = False
        return True

    def can_advance(self) -> bool:
        if self._phase not in (TakingPhase.ANSWERING, TakingPhase.RATIONALE_SHOWN):
            return False
        return self._question_index in self._answers or self._phase is TakingPhase.RATIONALE_SHOWN

    def toggle_hint(self) -> bool:
        if self._phase not in (TakingPhase.ANSWERING, TakingPhase.RATIONALE_SHOWN):
            return False
        if not self.get_current_question().hint.strip():
            return False
        self._hint_visible = not self._hint_visible
        return self._hint_visible

    def retake(self) -> None:
        if self._phase is not TakingPhase.RESULTS or self._quiz is None:
            raise RuntimeError("A quiz can only be retaken from the results screen.")
        self.select_quiz(self._quiz)

    def exit_to_list(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._quiz = None
        self._phase = TakingPhase.IDLE
        self._question_index = 0
        self._answers = {}
        self._feedback = None
        self._hint_visible = False

    def calculate_score(self) -> int:
        return sum(1 for record in self._answers.values() if record.is_correct)

    def get_total_questions(self) -> int:
        return len(self._quiz.questions) if self._quiz else 0

    def get_phase(self) -> TakingPhase:
        return self._phase

    def get_quiz(self) -> Quiz | None:
        return self._quiz

    def get_question_index(self) -> int:
        return self._question_index

    def get_current_question(self) -> Question:
        if self._quiz is None:
            raise RuntimeError("No quiz selected.")
        return self._quiz.questions[self._question_index]

    def get_answers(self) -> dict[int, AnswerRecord]:
        return dict(self._answers)

    def get_current_answer(self) -> AnswerRecord | None:
        return self._answers.get(self._question_index)

    def get_feedback(self) -> str | None:
        return self._feedback

    def is_rationale_shown(self) -> bool:
        return self._phase is TakingPhase.RATIONALE_SHOWN

    def is_hint_visible(self) -> bool:
        return self._hint_visible

    def get_option_highlights(self) -> list[OptionHighlight]:
        """Highlight state for each option of the current question.

        After the rationale is shown a wrong pick is marked incorrect while
        the right answer is marked correct at the same time.
        """
        question = self.get_current_question()
        record = self._answers.get(self._question_index)
        selected = record.option_index if record else None
        highlights: list[OptionHighlight] = []
        for index, option in enumerate(question.answer_options):
            if not self.is_rationale_shown():
                highlights.append(
                    OptionHighlight.SELECTED if index == selected else OptionHighlight.NEUTRAL
                )
            elif option.is_correct:
                highlights.append(OptionHighlight.CORRECT)
            elif index == selected:
                highlights.append(OptionHighlight.INCORRECT)
            else:
                highlights.append(OptionHighlight.NEUTRAL)
        return highlights

    def get_visible_rationales(self) -> list[str | None]:
        """Rationales to show under each option; only after answering."""
        question = self.get_current_question()
        if not self.is_rationale_shown():
            return [None] * len(question.answer_options)
        record = self._answers.get(self._question_index)
        selected = record.option_index if record else None
        return [
            (option.rationale or None) if option.is_correct or index == selected else None
            for index, option in enumerate(question.answer_options)
        ]

    def get_review(self) -> list[QuestionReview]:
        if self._quiz is None:
            return []
        return [
            QuestionReview(index=index, question=question, record=self._answers.get(index))
            for index, question in enumerate(self._quiz.questions)
        ]
