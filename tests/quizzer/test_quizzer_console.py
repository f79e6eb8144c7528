from __future__ import annotations

from typing import Iterable

import pytest
from rich.console import Console

from fixtures import mcq, tfq
from study_quiz.quizzer.console import (
    SessionCommand,
    option_key,
    parse_session_command,
    resolve_answer,
    run_quiz_session,
)
from study_quiz.quizzer.content import QuizContent
from study_quiz.quizzer.session import FeedbackTier, QuizSession


def _scripted(inputs: Iterable[str]):
    iterator = iter(inputs)
    return lambda: next(iterator)


def _console() -> Console:
    return Console(record=True, width=100, force_terminal=False)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("", SessionCommand("next")),
        ("  N ", SessionCommand("next")),
        ("next", SessionCommand("next")),
        ("q", SessionCommand("quit")),
        ("EXIT", SessionCommand("quit")),
        ("r", SessionCommand("restart")),
        ("b", SessionCommand("select", "b")),
        ("2", SessionCommand("select", "2")),
        ("true", SessionCommand("select", "true")),
    ],
)
def test_parse_session_command(raw, expected):
    assert parse_session_command(raw) == expected


@pytest.mark.parametrize("raw", [None, "a b", "?", "--"])
def test_parse_session_command_rejects_noise(raw):
    assert parse_session_command(raw) is None


def test_resolve_answer_for_multiple_choice():
    question = mcq()

    assert resolve_answer(question, "a") == 0
    assert resolve_answer(question, "D") == 3
    assert resolve_answer(question, "2") == 1
    assert resolve_answer(question, "5") is None
    assert resolve_answer(question, "0") is None
    assert resolve_answer(question, "e") is None
    assert resolve_answer(question, "yes") is None
    assert resolve_answer(question, None) is None


def test_resolve_answer_for_true_false():
    question = tfq()

    assert resolve_answer(question, "T") is True
    assert resolve_answer(question, "yes") is True
    assert resolve_answer(question, "f") is False
    assert resolve_answer(question, "No") is False
    # "n" is next, so neither "y" nor "n" answers true/false.
    assert resolve_answer(question, "y") is None
    assert resolve_answer(question, "n") is None
    assert resolve_answer(question, "a") is None


def test_option_key_labels():
    assert option_key(mcq(), 0) == "A"
    assert option_key(mcq(), 3) == "D"
    assert option_key(tfq(), True) == "T"
    assert option_key(tfq(), False) == "F"


def test_full_session_reports_score(content):
    console = _console()

    result = run_quiz_session(
        content, console, _scripted(["b", "", "a", "n", "f", ""])
    )

    assert result.exit_action == "finished"
    assert result.report is not None
    assert result.report.final_score == 2
    assert result.report.percentage == 67
    assert result.report.feedback_tier is FeedbackTier.FAIR
    output = console.export_text()
    assert "Question 1 / 3" in output
    assert "Correct!" in output
    assert "Incorrect. The answer is C." in output
    assert "Quiz Results" in output
    assert "2 / 3" in output
    assert "(67%)" in output
    assert FeedbackTier.FAIR.message in output


def test_explanations_can_be_hidden(content):
    console = _console()

    run_quiz_session(
        content,
        console,
        _scripted(["b", "", "c", "", "f", ""]),
        show_explanations=False,
    )

    output = console.export_text()
    assert "Basic addition." not in output
    assert "Explanation" not in output


def test_explanation_is_shown_after_answer(content):
    console = _console()

    run_quiz_session(content, console, _scripted(["b", "q"]))

    assert "Basic addition." in console.export_text()


def test_quit_returns_without_report(content):
    console = _console()

    result = run_quiz_session(content, console, _scripted(["a", "", "q"]))

    assert result.exit_action == "quit"
    assert result.report is None
    assert result.snapshot.position == 1
    assert "Ending session early." in console.export_text()


def test_interrupt_is_reported(content):
    console = _console()

    def provider():
        raise KeyboardInterrupt

    result = run_quiz_session(content, console, provider)

    assert result.exit_action == "interrupted"
    assert result.report is None
    assert "Session interrupted." in console.export_text()


def test_exhausted_input_counts_as_interrupt(content):
    console = _console()

    result = run_quiz_session(content, console, _scripted(["b"]))

    assert result.exit_action == "interrupted"
    assert result.snapshot.is_revealed


def test_wrong_state_commands_are_ignored(content):
    console = _console()

    result = run_quiz_session(
        content, console, _scripted(["", "b", "c", "q"])
    )

    output = console.export_text()
    assert "Answer the question first." in output
    assert "Already answered. Press Enter to continue." in output
    assert result.snapshot.score == 1
    assert result.snapshot.current_selection == 1


def test_invalid_choice_and_noise_are_reported(content):
    console = _console()

    run_quiz_session(content, console, _scripted(["z", "?!", "q"]))

    output = console.export_text()
    assert "'z' is not a valid choice for this question." in output
    assert "Unrecognized command. Try again." in output


def test_restart_resets_progress(content):
    console = _console()

    result = run_quiz_session(
        content, console, _scripted(["b", "", "r", "q"])
    )

    assert "Restarting quiz." in console.export_text()
    assert result.snapshot.position == 0
    assert result.snapshot.score == 0


def test_accepts_existing_session(content):
    session = QuizSession(content)
    session.submit_answer(1)
    session.advance()
    console = _console()

    result = run_quiz_session(
        session, console, _scripted(["c", "", "f", ""])
    )

    assert result.report.final_score == 3
    assert result.report.feedback_tier is FeedbackTier.EXCELLENT


def test_true_false_hint_lists_keys():
    content = QuizContent(
        multiple_choice=(mcq(),), true_false=(tfq(correct=True),)
    )
    console = _console()

    run_quiz_session(content, console, _scripted(["b", "", "q"]))

    output = console.export_text()
    assert "True / False" in output
    assert "Answer [T/F]" in output


def test_report_lists_answer_history(content):
    console = _console()

    run_quiz_session(content, console, _scripted(["b", "", "a", "", "t", ""]))

    output = console.export_text()
    assert "Answers" in output
    assert "Capital of France?" in output
    assert "✅" in output
    assert "❌" in output
    assert FeedbackTier.NEEDS_IMPROVEMENT.message in output
