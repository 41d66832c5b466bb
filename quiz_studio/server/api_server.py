"""FastAPI server exposing the single-page client and its JSON endpoints."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from quiz_studio.constants.about import APP_NAME, APP_VERSION
from quiz_studio.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_studio.core.markdown_math_renderer import renderer
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.core.services.document_store import StorageError
from quiz_studio.core.services.taking_session import TakingPhase
from quiz_studio.core.view_state import AuthoringView, TakingView, ViewState
from quiz_studio.server.app_page import APP_PAGE_HTML


class OptionIndexPayload(BaseModel):
    """Payload naming one answer option."""

    option_index: int


class TitlePayload(BaseModel):
    title: str


class QuestionPayload(BaseModel):
    """Partial update of a question draft; omitted fields are unchanged."""

    text: str | None = None
    hint: str | None = None


class OptionPayload(BaseModel):
    """Partial update of an option draft; omitted fields are unchanged."""

    text: str | None = None
    rationale: str | None = None


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Translate quiz manager exceptions into HTTP errors."""
    try:
        yield
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


def _serialize_taking(taking: TakingView) -> dict[str, object]:
    question = taking.question
    answer = taking.current_answer
    payload: dict[str, object] = {
        "quiz_id": taking.quiz.id,
        "quiz_title": taking.quiz.title,
        "phase": taking.phase.name.lower(),
        "question_index": taking.question_index,
        "total_questions": taking.total_questions,
        "question_html": renderer.render_fragment(question.question),
        "has_hint": bool(question.hint.strip()),
        "hint_visible": taking.hint_visible,
        "hint_html": renderer.render_optional(question.hint) if taking.hint_visible else None,
        "options": [
            {
                "text": option.text,
                "highlight": highlight.value,
                "rationale_html": renderer.render_optional(rationale),
            }
            for option, highlight, rationale in zip(
                question.answer_options, taking.highlights, taking.rationales
            )
        ],
        "selected_option_index": answer.option_index if answer else None,
        "is_correct": answer.is_correct if answer else None,
        "feedback": taking.feedback,
        "can_advance": taking.can_advance,
        "score": taking.score,
        "review": None,
    }
    if taking.phase is TakingPhase.RESULTS:
        review = []
        for item in taking.review:
            correct = item.correct_option
            review.append(
                {
                    "question_html": renderer.render_fragment(item.question.question),
                    "selected_text": item.record.selected_option.text if item.record else None,
                    "is_correct": bool(item.record and item.record.is_correct),
                    "correct_text": correct.text if correct else None,
                    "rationale_html": renderer.render_optional(correct.rationale if correct else None),
                }
            )
        payload["review"] = review
    return payload


def _serialize_authoring(authoring: AuthoringView) -> dict[str, object]:
    return {
        "title": authoring.title,
        "is_saving": authoring.is_saving,
        "questions": [
            {
                "question": draft.question,
                "hint": draft.hint,
                "correct_option_index": draft.correct_option_index,
                "options": [
                    {"text": option.text, "rationale": option.rationale}
                    for option in draft.options
                ],
            }
            for draft in authoring.questions
        ],
    }


def build_state_payload(state: ViewState) -> dict[str, object]:
    """Convert a view state snapshot into the JSON the page renders."""
    return {
        "view": state.view.name.lower(),
        "session": {
            "state": state.session_state.name.lower(),
            "user_id": state.user_id,
        },
        "fatal_error": state.fatal_error,
        "error_message": state.error_message,
        "notice": state.notice,
        "list": {
            "loading": state.list_loading,
            "quizzes": [
                {
                    "id": quiz.id,
                    "title": quiz.title,
                    "question_count": quiz.question_count,
                    "created_by": quiz.created_by,
                    "created_at": quiz.created_at.isoformat() if quiz.created_at else None,
                }
                for quiz in state.quizzes
            ],
        },
        "taking": _serialize_taking(state.taking) if state.taking else None,
        "authoring": _serialize_authoring(state.authoring) if state.authoring else None,
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    def state_of(manager: QuizManager) -> dict[str, object]:
        return build_state_payload(manager.get_view_state())

    @app.get("/", response_class=HTMLResponse)
    def serve_app_page() -> str:
        return APP_PAGE_HTML

    @app.get("/state")
    def get_state(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return state_of(manager)

    @app.post("/messages/dismiss")
    def dismiss_message(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        manager.dismiss_error()
        return state_of(manager)

    # --- Quiz taking ---

    @app.post("/quizzes/{quiz_id}/select")
    def select_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.select_quiz(quiz_id)
        return state_of(manager)

    @app.post("/taking/answer")
    def select_answer(
        payload: OptionIndexPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            manager.select_answer(payload.option_index)
        return state_of(manager)

    @app.post("/taking/advance")
    def advance(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.advance()
        return state_of(manager)

    @app.post("/taking/hint")
    def toggle_hint(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.toggle_hint()
        return state_of(manager)

    @app.post("/taking/retake")
    def retake(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.retake_quiz()
        return state_of(manager)

    @app.post("/taking/exit")
    def exit_to_list(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.exit_to_list()
        return state_of(manager)

    # --- Authoring ---

    @app.post("/authoring/open")
    def open_authoring(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.open_authoring()
        return state_of(manager)

    @app.post("/authoring/close")
    def close_authoring(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.close_authoring()
        return state_of(manager)

    @app.put("/authoring/title")
    def set_title(payload: TitlePayload, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.set_quiz_title(payload.title)
        return state_of(manager)

    @app.post("/authoring/questions", status_code=201)
    def add_question(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        with _domain_errors():
            manager.add_question()
        return state_of(manager)

    @app.put("/authoring/questions/{question_index}")
    def update_question(
        question_index: int,
        payload: QuestionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            if payload.text is not None:
                manager.set_question_text(question_index, payload.text)
            if payload.hint is not None:
                manager.set_question_hint(question_index, payload.hint)
        return state_of(manager)

    @app.put("/authoring/questions/{question_index}/options/{option_index}")
    def update_option(
        question_index: int,
        option_index: int,
        payload: OptionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            if payload.text is not None:
                manager.set_option_text(question_index, option_index, payload.text)
            if payload.rationale is not None:
                manager.set_option_rationale(question_index, option_index, payload.rationale)
        return state_of(manager)

    @app.put("/authoring/questions/{question_index}/correct")
    def set_correct_option(
        question_index: int,
        payload: OptionIndexPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        with _domain_errors():
            manager.set_correct_option(question_index, payload.option_index)
        return state_of(manager)

    @app.post("/authoring/save", status_code=201)
    def save_quiz(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            with _domain_errors():
                quiz_id = manager.save_quiz()
        except StorageError as exc:
            raise HTTPException(status_code=502, detail=manager.get_error_message() or str(exc)) from exc
        return {"id": quiz_id}

    return app


def _build_server(quiz_manager: QuizManager, host: str, port: int) -> uvicorn.Server:
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    return uvicorn.Server(config)


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    server = _build_server(quiz_manager, host, port)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve in the calling thread until interrupted."""
    _build_server(quiz_manager, host, port).run()
