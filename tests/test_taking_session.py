from __future__ import annotations

import pytest

from conftest import make_quiz
from quiz_studio.constants.ui_constants import FEEDBACK_CORRECT, FEEDBACK_INCORRECT
from quiz_studio.core.services.taking_session import OptionHighlight, TakingPhase, TakingSession


def _started(question_count: int = 3) -> TakingSession:
    session = TakingSession()
    session.select_quiz(make_quiz(question_count=question_count))
    return session


def test_select_quiz_starts_at_first_question():
    session = _started()

    assert session.get_phase() is TakingPhase.ANSWERING
    assert session.get_question_index() == 0
    assert session.get_answers() == {}
    assert session.get_feedback() is None


def test_correct_answer_records_and_shows_rationale():
    session = _started()

    assert session.select_answer(1)

    record = session.get_current_answer()
    assert record is not None
    assert record.option_index == 1
    assert record.is_correct
    assert record.selected_option.text == "Option B"
    assert session.get_feedback() == FEEDBACK_CORRECT
    assert session.get_phase() is TakingPhase.RATIONALE_SHOWN


def test_wrong_answer_feedback():
    session = _started()

    session.select_answer(0)

    assert session.get_feedback() == FEEDBACK_INCORRECT
    assert not session.get_current_answer().is_correct


def test_second_selection_does_not_change_recorded_answer():
    session = _started()
    session.select_answer(0)

    assert not session.select_answer(1)

    record = session.get_current_answer()
    assert record.option_index == 0
    assert not record.is_correct
    assert session.get_feedback() == FEEDBACK_INCORRECT


def test_select_answer_rejects_unknown_option():
    session = _started()

    with pytest.raises(ValueError):
        session.select_answer(4)
    assert session.get_answers() == {}


def test_advance_disabled_until_answered():
    session = _started()

    assert not session.can_advance()
    assert not session.advance()
    assert session.get_question_index() == 0

    session.select_answer(2)
    assert session.can_advance()


def test_advance_moves_to_next_question_and_clears_feedback():
    session = _started()
    session.select_answer(1)

    assert session.advance()

    assert session.get_phase() is TakingPhase.ANSWERING
    assert session.get_question_index() == 1
    assert session.get_feedback() is None
    assert not session.is_rationale_shown()
    assert not session.can_advance()


def test_last_question_leads_to_results():
    session = _started(question_count=2)
    session.select_answer(1)
    session.advance()
    session.select_answer(0)

    session.advance()

    assert session.get_phase() is TakingPhase.RESULTS
    assert not session.can_advance()
    assert not session.select_answer(1)


def test_score_counts_correct_answers():
    session = _started(question_count=3)
    for option_index in (1, 0, 1):
        session.select_answer(option_index)
        session.advance()

    assert session.calculate_score() == 2
    assert 0 <= session.calculate_score() <= session.get_total_questions()


def test_highlights_before_answer_are_neutral():
    session = _started()

    assert session.get_option_highlights() == [OptionHighlight.NEUTRAL] * 4


def test_highlights_after_wrong_answer_show_both_picks():
    session = _started()
    session.select_answer(3)

    assert session.get_option_highlights() == [
        OptionHighlight.NEUTRAL,
        OptionHighlight.CORRECT,
        OptionHighlight.NEUTRAL,
        OptionHighlight.INCORRECT,
    ]


def test_highlights_after_right_answer():
    session = _started()
    session.select_answer(1)

    assert session.get_option_highlights() == [
        OptionHighlight.NEUTRAL,
        OptionHighlight.CORRECT,
        OptionHighlight.NEUTRAL,
        OptionHighlight.NEUTRAL,
    ]


def test_rationales_only_for_selected_and_correct_options():
    session = _started()
    assert session.get_visible_rationales() == [None] * 4

    session.select_answer(2)

    assert session.get_visible_rationales() == [None, "Because B", "Because C", None]


def test_hint_toggle():
    session = _started()

    assert session.toggle_hint()
    assert session.is_hint_visible()
    assert not session.toggle_hint()

    session.toggle_hint()
    session.select_answer(1)
    session.advance()
    assert not session.is_hint_visible()
    # Question 2 has no hint.
    assert not session.toggle_hint()


def test_retake_resets_progress_but_keeps_questions():
    quiz = make_quiz(question_count=2)
    session = TakingSession()
    session.select_quiz(quiz)
    for _ in range(2):
        session.select_answer(1)
        session.advance()

    session.retake()

    assert session.get_phase() is TakingPhase.ANSWERING
    assert session.get_question_index() == 0
    assert session.get_answers() == {}
    assert session.calculate_score() == 0
    assert session.get_quiz() == quiz


def test_retake_only_from_results():
    session = _started()

    with pytest.raises(RuntimeError):
        session.retake()


def test_exit_to_list_returns_to_idle():
    session = _started(question_count=1)
    session.select_answer(1)
    session.advance()

    session.exit_to_list()

    assert session.get_phase() is TakingPhase.IDLE
    assert session.get_quiz() is None


def test_review_lists_every_question():
    session = _started(question_count=2)
    session.select_answer(0)
    session.advance()
    session.select_answer(1)
    session.advance()

    review = session.get_review()

    assert [item.index for item in review] == [0, 1]
    assert not review[0].record.is_correct
    assert review[0].correct_option.text == "Option B"
    assert review[1].record.is_correct
