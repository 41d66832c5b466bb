"""Immutable snapshots of the application state handed to UI layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from quiz_studio.core.models import AnswerRecord, Question, QuestionDraft, Quiz
from quiz_studio.core.services.session_bootstrapper import SessionState
from quiz_studio.core.services.taking_session import (
    OptionHighlight,
    QuestionReview,
    TakingPhase,
)


class View(Enum):
    """Top-level screen. Exactly one is shown at a time."""

    LIST = auto()
    TAKING = auto()
    AUTHORING = auto()


@dataclass(frozen=True, slots=True)
class TakingView:
    quiz: Quiz
    phase: TakingPhase
    question_index: int
    total_questions: int
    question: Question
    current_answer: AnswerRecord | None
    highlights: tuple[OptionHighlight, ...]
    rationales: tuple[str | None, ...]
    feedback: str | None
    hint_visible: bool
    can_advance: bool
    score: int
    review: tuple[QuestionReview, ...]


@dataclass(frozen=True, slots=True)
class AuthoringView:
    title: str
    questions: tuple[QuestionDraft, ...]
    is_saving: bool


@dataclass(frozen=True, slots=True)
class ViewState:
    view: View
    session_state: SessionState
    user_id: str | None
    fatal_error: str | None
    error_message: str | None
    notice: str | None
    quizzes: tuple[Quiz, ...]
    list_loading: bool
    taking: TakingView | None
    authoring: AuthoringView | None
