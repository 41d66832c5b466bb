"""Business logic for the quiz application shared between UI and API."""

from __future__ import annotations

from collections.abc import Callable
import copy
from datetime import datetime, timedelta, timezone
import logging
from threading import RLock

from quiz_studio.constants.quiz_constants import NOTICE_DURATION_SECONDS
from quiz_studio.constants.ui_constants import (
    LOAD_FAILED_TEMPLATE,
    QUIZ_SAVED_MESSAGE,
    SAVE_FAILED_TEMPLATE,
    SESSION_FAILED_TEMPLATE,
)
from quiz_studio.core.models import AnswerRecord, Quiz
from quiz_studio.core.services.authoring_buffer import AuthoringBuffer, AuthoringValidationError
from quiz_studio.core.services.document_store import StorageError, Subscription
from quiz_studio.core.services.quiz_collection import QuizCollection
from quiz_studio.core.services.quiz_list import QuizList
from quiz_studio.core.services.session_bootstrapper import SessionBootstrapper, SessionState
from quiz_studio.core.services.taking_session import TakingPhase, TakingSession
from quiz_studio.core.view_state import AuthoringView, TakingView, View, ViewState

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuizManager:
    """Facade for quiz services: Session, List, Taking and Authoring."""

    def __init__(
        self,
        collection: QuizCollection,
        bootstrapper: SessionBootstrapper,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._lock = RLock()
        self._clock = clock

        # Services
        self._collection = collection
        self._bootstrapper = bootstrapper
        self._quiz_list = QuizList()
        self._taking = TakingSession()
        self._authoring = AuthoringBuffer()

        self._view = View.LIST
        self._subscription: Subscription | None = None
        self._fatal_error: str | None = None
        self._error_message: str | None = None
        self._notice: str | None = None
        self._notice_expires_at: datetime | None = None
        self._saving: bool = False

    # --- Lifecycle ---

    def start(self) -> None:
        """Resolve the identity, then subscribe to the quiz collection."""
        self._bootstrapper.add_ready_listener(self._open_subscription)
        state = self._bootstrapper.start()
        if state is SessionState.FAILED:
            with self._lock:
                self._fatal_error = SESSION_FAILED_TEMPLATE.format(error=self._bootstrapper.error)

    def shutdown(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()
        self._bootstrapper.close()
        logger.info("Quiz manager shut down")

    def _open_subscription(self, user_id: str) -> None:
        logger.info("Subscribing to %s for %s", self._collection.path, user_id)
        subscription = self._collection.subscribe(self._handle_quizzes, self._handle_subscription_error)
        with self._lock:
            self._subscription = subscription

    def _handle_quizzes(self, quizzes: list[Quiz]) -> None:
        with self._lock:
            self._quiz_list.replace(quizzes)
        logger.debug("Quiz list updated (%d quizzes)", len(quizzes))

    def _handle_subscription_error(self, error: Exception) -> None:
        logger.error("Quiz subscription failed: %s", error)
        with self._lock:
            self._quiz_list.mark_failed()
            self._error_message = LOAD_FAILED_TEMPLATE.format(error=error)

    # --- Session / list ---

    def is_session_ready(self) -> bool:
        return self._bootstrapper.is_ready

    def get_user_id(self) -> str | None:
        return self._bootstrapper.user_id

    def get_quizzes(self) -> list[Quiz]:
        with self._lock:
            return self._quiz_list.get_quizzes()

    def get_view(self) -> View:
        with self._lock:
            return self._view

    # --- Messages ---

    def get_error_message(self) -> str | None:
        with self._lock:
            return self._error_message

    def dismiss_error(self) -> None:
        with self._lock:
            self._error_message = None

    def get_notice(self) -> str | None:
        with self._lock:
            return self._current_notice()

    def _current_notice(self) -> str | None:
        if self._notice_expires_at is not None and self._clock() >= self._notice_expires_at:
            self._notice = None
            self._notice_expires_at = None
        return self._notice

    def _show_notice(self, text: str) -> None:
        self._notice = text
        self._notice_expires_at = self._clock() + timedelta(seconds=NOTICE_DURATION_SECONDS)

    # --- Quiz taking ---

    def select_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            self._require_no_save()
            quiz = self._quiz_list.find(quiz_id)
            self._taking.select_quiz(quiz)
            self._authoring.reset()
            self._view = View.TAKING
            logger.info("Started quiz %s", quiz_id)
            return quiz

    def select_answer(self, option_index: int) -> bool:
        with self._lock:
            self._require_view(View.TAKING)
            return self._taking.select_answer(option_index)

    def advance(self) -> bool:
        with self._lock:
            self._require_view(View.TAKING)
            return self._taking.advance()

    def toggle_hint(self) -> bool:
        with self._lock:
            self._require_view(View.TAKING)
            return self._taking.toggle_hint()

    def retake_quiz(self) -> None:
        with self._lock:
            self._require_view(View.TAKING)
            self._taking.retake()

    def exit_to_list(self) -> None:
        with self._lock:
            self._require_no_save()
            self._taking.exit_to_list()
            if self._view is View.AUTHORING:
                self._authoring.reset()
            self._view = View.LIST

    def calculate_score(self) -> int:
        with self._lock:
            return self._taking.calculate_score()

    def get_current_question_index(self) -> int:
        with self._lock:
            return self._taking.get_question_index()

    def get_taking_phase(self) -> TakingPhase:
        with self._lock:
            return self._taking.get_phase()

    def get_user_answers(self) -> dict[int, AnswerRecord]:
        with self._lock:
            return self._taking.get_answers()

    def is_showing_results(self) -> bool:
        with self._lock:
            return self._view is View.TAKING and self._taking.get_phase() is TakingPhase.RESULTS

    # --- Authoring ---

    def open_authoring(self) -> None:
        with self._lock:
            self._require_no_save()
            self._taking.reset()
            self._authoring.reset()
            self._view = View.AUTHORING

    def close_authoring(self) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.reset()
            self._view = View.LIST

    def set_quiz_title(self, title: str) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_title(title)

    def add_question(self) -> int:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            return self._authoring.add_question()

    def set_question_text(self, question_index: int, text: str) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_question_text(question_index, text)

    def set_question_hint(self, question_index: int, hint: str) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_hint(question_index, hint)

    def set_option_text(self, question_index: int, option_index: int, text: str) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_option_text(question_index, option_index, text)

    def set_option_rationale(self, question_index: int, option_index: int, rationale: str) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_option_rationale(question_index, option_index, rationale)

    def set_correct_option(self, question_index: int, option_index: int) -> None:
        with self._lock:
            self._require_view(View.AUTHORING)
            self._require_no_save()
            self._authoring.set_correct_option(question_index, option_index)

    def is_saving(self) -> bool:
        with self._lock:
            return self._saving

    def save_quiz(self) -> str:
        """Validate the buffer and write it as a new quiz.

        Validation and write failures are recorded as the error message and
        re-raised; the buffer is kept so the user can retry.
        """
        with self._lock:
            self._require_view(View.AUTHORING)
            if self._saving:
                raise RuntimeError("A save is already in progress.")
            user_id = self._bootstrapper.user_id
            if not self._bootstrapper.is_ready or user_id is None:
                raise RuntimeError("Session is not ready yet.")
            try:
                quiz = self._authoring.build_quiz(created_by=user_id, created_at=self._clock())
            except AuthoringValidationError as exc:
                self._error_message = str(exc)
                raise
            self._saving = True

        # The write runs outside the lock: snapshot callbacks need it.
        try:
            quiz_id = self._collection.create(quiz)
        except StorageError as exc:
            self._record_save_failure(quiz, exc)
            raise
        except Exception as exc:
            self._record_save_failure(quiz, exc)
            raise StorageError(str(exc)) from exc
        else:
            with self._lock:
                self._authoring.reset()
                self._view = View.LIST
                self._error_message = None
                self._show_notice(QUIZ_SAVED_MESSAGE)
        finally:
            with self._lock:
                self._saving = False
        return quiz_id

    def _record_save_failure(self, quiz: Quiz, error: Exception) -> None:
        logger.error("Saving quiz %r failed: %s", quiz.title, error)
        with self._lock:
            self._error_message = SAVE_FAILED_TEMPLATE.format(error=error)

    # --- Snapshot for UI layers ---

    def get_view_state(self) -> ViewState:
        with self._lock:
            return ViewState(
                view=self._view,
                session_state=self._bootstrapper.state,
                user_id=self._bootstrapper.user_id,
                fatal_error=self._fatal_error,
                error_message=self._error_message,
                notice=self._current_notice(),
                quizzes=tuple(self._quiz_list.get_quizzes()),
                list_loading=self._quiz_list.is_loading(),
                taking=self._build_taking_view(),
                authoring=self._build_authoring_view(),
            )

    def _build_taking_view(self) -> TakingView | None:
        quiz = self._taking.get_quiz()
        if self._view is not View.TAKING or quiz is None:
            return None
        return TakingView(
            quiz=quiz,
            phase=self._taking.get_phase(),
            question_index=self._taking.get_question_index(),
            total_questions=self._taking.get_total_questions(),
            question=self._taking.get_current_question(),
            current_answer=self._taking.get_current_answer(),
            highlights=tuple(self._taking.get_option_highlights()),
            rationales=tuple(self._taking.get_visible_rationales()),
            feedback=self._taking.get_feedback(),
            hint_visible=self._taking.is_hint_visible(),
            can_advance=self._taking.can_advance(),
            score=self._taking.calculate_score(),
            review=tuple(self._taking.get_review()),
        )

    def _build_authoring_view(self) -> AuthoringView | None:
        if self._view is not View.AUTHORING:
            return None
        return AuthoringView(
            title=self._authoring.get_title(),
            questions=tuple(copy.deepcopy(self._authoring.get_questions())),
            is_saving=self._saving,
        )

    def _require_view(self, view: View) -> None:
        if self._view is not view:
            raise RuntimeError(f"Action not available in the {self._view.name.lower()} view.")

    def _require_no_save(self) -> None:
        if self._saving:
            raise RuntimeError("A save is in progress.")
