from __future__ import annotations

import random

from fixtures import bank_text, question_block
from rich.console import Console

from quizbank.engine import ExamSession, Phase, ReviewFilter
from quizbank.view import (
    SessionCommand,
    parse_session_command,
    run_exam_session,
)

SINGLE = "1. Q?\nA. x*\nB. y\nC. z\nD. w"


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def make_console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def started(clock, *texts: str, **kwargs) -> ExamSession:
    session = ExamSession(clock=clock, rng=random.Random(1), **kwargs)
    assert session.start_session(list(texts)).ok
    return session


def test_parse_session_command_variants() -> None:
    assert parse_session_command("a") == SessionCommand("select", ("A",))
    assert parse_session_command("a c") == SessionCommand(
        "select", ("A", "C")
    )
    assert parse_session_command("B,d") == SessionCommand(
        "select", ("B", "D")
    )
    assert parse_session_command("  Next ") == SessionCommand("next")
    assert parse_session_command("p") == SessionCommand("prev")
    assert parse_session_command("submit") == SessionCommand("grade")
    assert parse_session_command("grade") == SessionCommand("grade")
    assert parse_session_command("quit") == SessionCommand("quit")
    assert parse_session_command("f") == SessionCommand("flag")
    assert parse_session_command("flag 3") == SessionCommand("flag", number=3)
    assert parse_session_command("r") == SessionCommand(
        "review", review_filter=ReviewFilter.ALL
    )
    assert parse_session_command("review Flagged") == SessionCommand(
        "review", review_filter=ReviewFilter.FLAGGED
    )
    assert parse_session_command("4") == SessionCommand("goto", number=4)
    assert parse_session_command("goto 12") == SessionCommand(
        "goto", number=12
    )
    assert parse_session_command("#2") == SessionCommand("goto", number=2)
    assert parse_session_command(None) is None
    assert parse_session_command("") is None
    assert parse_session_command("e") is None
    assert parse_session_command("?unknown") is None


def test_run_exam_session_grade_flow(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    outcome = run_exam_session(
        session, console, make_provider(["b", "a", "grade"])
    )

    text = console.export_text()
    assert outcome.exit_action == "completed"
    assert outcome.summary.correct == 1
    assert outcome.questions[0].user_selected == frozenset({"A"})
    assert "Question 1 of 1" in text
    assert "Selected: B" in text
    assert "Quiz Complete!" in text
    assert "Final Score" in text
    assert "100%" in text


def test_run_exam_session_quit_keeps_session_active(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    outcome = run_exam_session(session, console, make_provider(["q"]))

    assert outcome.exit_action == "quit"
    assert session.phase is Phase.ACTIVE
    assert "Ending session without grading." in console.export_text()


def test_run_exam_session_handles_exhausted_input(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    outcome = run_exam_session(session, console, make_provider([]))

    assert outcome.exit_action == "quit"
    assert "Session interrupted." in console.export_text()


def test_run_exam_session_handles_eof(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    def _eof() -> str:
        raise EOFError

    outcome = run_exam_session(session, console, _eof)

    assert outcome.exit_action == "quit"


def test_run_exam_session_reports_bad_input(clock) -> None:
    console = make_console()
    session = started(
        clock, bank_text(question_block(1, "One"), question_block(2, "Two"))
    )

    run_exam_session(session, console, make_provider(["???", "9", "q"]))

    text = console.export_text()
    assert "Unrecognized command. Try again." in text
    assert "Pick a question between 1 and 2." in text


def test_run_exam_session_without_questions() -> None:
    console = make_console()

    outcome = run_exam_session(ExamSession(), console, make_provider([]))

    assert outcome.exit_action == "empty"
    assert "No questions loaded." in console.export_text()


def test_review_screen_and_revisit(clock) -> None:
    console = make_console()
    session = started(
        clock, bank_text(question_block(1, "One"), question_block(2, "Two"))
    )

    outcome = run_exam_session(
        session,
        console,
        make_provider(
            ["f", "r", "a", "r flagged", "2", "a", "r unanswered", "grade"]
        ),
    )

    text = console.export_text()
    assert outcome.exit_action == "completed"
    assert "[flagged]" in text
    assert "Review Your Answers" in text
    assert "Flagged (1)" in text
    assert "Open a question with its number before answering." in text
    assert "No questions match this filter." not in text
    assert outcome.questions[1].user_selected == frozenset({"A"})
    assert outcome.questions[0].is_flagged_for_review is True


def test_review_filter_with_no_matches(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    run_exam_session(
        session, console, make_provider(["a", "r unanswered", "q"])
    )

    text = console.export_text()
    assert "Showing: unanswered" in text
    assert "No questions match this filter." in text


def test_review_is_refused_in_study_mode(clock) -> None:
    console = make_console()
    session = started(
        clock,
        bank_text(question_block(1, "One"), question_block(2, "Two")),
        mode="study",
    )

    run_exam_session(session, console, make_provider(["r", "q"]))

    text = console.export_text()
    assert "Review is only available in exam mode." in text
    assert "r (review)" not in text


def test_study_mode_feedback_and_auto_complete(clock) -> None:
    console = make_console()
    session = started(
        clock,
        bank_text(question_block(1, "One"), question_block(2, "Two")),
        mode="study",
    )

    outcome = run_exam_session(session, console, make_provider(["b", "n", "a"]))

    text = console.export_text()
    assert "Incorrect! Correct answer: A" in text
    assert outcome.exit_action == "completed"
    assert outcome.summary.correct == 1
    assert "Quiz Complete!" in text


def test_study_mode_multi_answer_prompts_to_continue(clock) -> None:
    console = make_console()
    session = started(
        clock,
        bank_text(
            question_block(1, "Pick two", correct=("A", "C")),
            question_block(2, "Pick two again", correct=("A", "C")),
        ),
        mode="study",
    )

    run_exam_session(session, console, make_provider(["a", "c", "q"]))

    text = console.export_text()
    assert "(Select all that apply)" in text
    assert "Keep going: select all that apply." in text
    assert "Correct!" in text


def test_time_running_out_ends_the_loop(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE, time_limit_minutes=1)

    def _slow_answer() -> str:
        clock.advance(120)
        return "a"

    outcome = run_exam_session(session, console, _slow_answer)

    text = console.export_text()
    assert outcome.exit_action == "completed"
    assert outcome.summary.expired is True
    assert outcome.summary.answered == 0
    assert "Time's up!" in text


def test_time_running_out_on_review_screen(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE, time_limit_minutes=1)
    steps = iter(["r", "1"])

    def _provider() -> str:
        command = next(steps)
        if command == "1":
            clock.advance(120)
        return command

    outcome = run_exam_session(session, console, _provider)

    text = console.export_text()
    assert outcome.exit_action == "completed"
    assert outcome.summary.expired is True
    assert "Review Your Answers" in text
    assert "Time's up!" in text


def test_retake_after_summary_starts_a_fresh_attempt(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    outcome = run_exam_session(
        session,
        console,
        make_provider(["a", "grade", "y", "b", "grade", "n"]),
    )

    text = console.export_text()
    assert outcome.exit_action == "completed"
    assert outcome.summary.correct == 0
    assert outcome.questions[0].user_selected == frozenset({"B"})
    assert text.count("Quiz Complete!") == 2
    assert "Retake with a fresh order? [y/N]" in text
    assert "Starting a new attempt." in text


def test_declining_retake_keeps_the_graded_attempt(clock) -> None:
    console = make_console()
    session = started(clock, SINGLE)

    outcome = run_exam_session(
        session, console, make_provider(["a", "grade", "no"])
    )

    assert outcome.summary.correct == 1
    assert session.phase is Phase.COMPLETED
    assert "Starting a new attempt." not in console.export_text()
