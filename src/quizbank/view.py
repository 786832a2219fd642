"""Rich console render layer for an :class:`~quizbank.engine.ExamSession`.

The loop renders one question (or the review list) at a time, reads a command
from ``input_provider`` and forwards it to the session. It keeps only a
navigation cursor of its own; answers, flags, score and time always come from
the session.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .engine import (
    LETTERS,
    ExamSession,
    Mode,
    Phase,
    QuestionView,
    ReviewFilter,
    ScoreSummary,
    SessionStateError,
    format_clock,
)

InputProvider = Callable[[], str]
ExitAction = Literal["completed", "quit", "empty"]
CommandType = Literal[
    "select", "next", "prev", "flag", "review", "goto", "grade", "quit"
]

_LETTERS_RE = re.compile(r"^[A-Da-d](?:[\s,]*[A-Da-d])*$")
_GOTO_RE = re.compile(r"^(?:g|goto|#)?\s*(\d+)$", re.IGNORECASE)
_FLAG_RE = re.compile(r"^(?:f|flag)(?:\s+(\d+))?$", re.IGNORECASE)
_REVIEW_RE = re.compile(
    r"^(?:r|review)(?:\s+(all|unanswered|flagged))?$", re.IGNORECASE
)


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    letters: tuple[str, ...] = ()
    number: Optional[int] = None
    review_filter: Optional[ReviewFilter] = None


@dataclass
class ViewState:
    """Cursor and transient messages owned by the console loop."""

    index: int = 0
    review_filter: ReviewFilter = ReviewFilter.ALL
    feedback: Optional[str] = None


@dataclass(frozen=True)
class SessionOutcome:
    """Return value from :func:`run_exam_session`."""

    summary: ScoreSummary
    exit_action: ExitAction
    questions: list[QuestionView] = field(default_factory=list)


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"grade", "submit", "s"}:
        return SessionCommand("grade")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    match = _FLAG_RE.match(text)
    if match:
        number = int(match.group(1)) if match.group(1) else None
        return SessionCommand("flag", number=number)
    match = _REVIEW_RE.match(text)
    if match:
        kind = ReviewFilter((match.group(1) or "all").lower())
        return SessionCommand("review", review_filter=kind)
    match = _GOTO_RE.match(text)
    if match:
        return SessionCommand("goto", number=int(match.group(1)))
    if _LETTERS_RE.match(text):
        letters = tuple(ch.upper() for ch in text if ch.upper() in LETTERS)
        return SessionCommand("select", letters=letters)
    return None


def run_exam_session(
    session: ExamSession,
    console: Console,
    input_provider: InputProvider,
) -> SessionOutcome:
    """Drive ``session`` from console input until it completes or the user quits.

    After a completed attempt the user may retake the same questions in a new
    order; the outcome of the last attempt is returned.
    """

    if session.phase is Phase.LOADING or session.total_questions == 0:
        console.print(
            Panel(
                "No questions loaded.",
                title="Quiz Session",
                border_style="yellow",
            )
        )
        return SessionOutcome(session.summary(), "empty")

    while True:
        exit_action = _run_attempt(session, console, input_provider)
        outcome = SessionOutcome(
            session.summary(), exit_action, session.questions
        )
        if exit_action != "completed":
            return outcome
        _render_summary(console, session, outcome)
        if not _wants_retake(console, input_provider):
            return outcome
        session.retake()
        console.print("\n[bold cyan]Starting a new attempt.[/]")


def _run_attempt(
    session: ExamSession,
    console: Console,
    input_provider: InputProvider,
) -> ExitAction:
    state = ViewState()
    while True:
        if session.poll_timer():
            return "completed"
        if session.phase is Phase.REVIEWING:
            _render_review(console, session, state)
        else:
            _render_question(console, session, state)
        state.feedback = None
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return "quit"
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if _apply_command(command, session, state, console) == "quit":
            console.print("\n[bold yellow]Ending session without grading.[/]")
            return "quit"
        if session.phase is Phase.COMPLETED:
            return "completed"


def _wants_retake(console: Console, input_provider: InputProvider) -> bool:
    console.print(Text("Retake with a fresh order? [y/N]", style="bold"))
    try:
        answer = input_provider()
    except (EOFError, KeyboardInterrupt, StopIteration):
        return False
    return answer.strip().lower() in {"y", "yes"}


def _current(session: ExamSession, state: ViewState) -> QuestionView:
    return session.question(state.index + 1)


def _apply_command(
    command: SessionCommand,
    session: ExamSession,
    state: ViewState,
    console: Console,
) -> Optional[str]:
    if command.type == "quit":
        return "quit"
    if command.type == "grade":
        session.grade()
        return None
    if command.type == "next":
        if state.index + 1 < session.total_questions:
            state.index += 1
        return None
    if command.type == "prev":
        if state.index > 0:
            state.index -= 1
        return None
    if command.type == "goto":
        _goto(command.number, session, state, console)
        return None
    if command.type == "review":
        _review(command, session, state, console)
        return None
    if command.type == "flag":
        number = command.number or state.index + 1
        if not _in_range(number, session, console):
            return None
        flagged = session.toggle_flag(number)
        state.feedback = (
            f"Question {number} flagged for review."
            if flagged
            else f"Question {number} unflagged."
        )
        return None
    if command.type == "select" and command.letters:
        _select(command.letters, session, state, console)
    return None


def _in_range(
    number: Optional[int], session: ExamSession, console: Console
) -> bool:
    if number is None or not 1 <= number <= session.total_questions:
        console.print(
            f"[red]Pick a question between 1 and "
            f"{session.total_questions}.[/red]"
        )
        return False
    return True


def _goto(
    number: Optional[int],
    session: ExamSession,
    state: ViewState,
    console: Console,
) -> None:
    if number is None or not _in_range(number, session, console):
        return
    if session.phase is Phase.REVIEWING:
        try:
            session.revisit(number)
        except SessionStateError as exc:
            console.print(f"[red]{exc}[/red]")
            return
    state.index = number - 1


def _review(
    command: SessionCommand,
    session: ExamSession,
    state: ViewState,
    console: Console,
) -> None:
    state.review_filter = command.review_filter or ReviewFilter.ALL
    if session.phase is Phase.REVIEWING:
        return
    try:
        session.begin_review()
    except SessionStateError as exc:
        console.print(f"[red]{exc}[/red]")


def _select(
    letters: tuple[str, ...],
    session: ExamSession,
    state: ViewState,
    console: Console,
) -> None:
    if session.phase is Phase.REVIEWING:
        console.print(
            "[red]Open a question with its number before answering.[/red]"
        )
        return
    question = _current(session, state)
    try:
        session.record_answer(question.number, letters)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    updated = session.question(question.number)
    if session.mode is Mode.STUDY and updated.is_answered:
        state.feedback = _study_feedback(updated)
    else:
        chosen = ", ".join(sorted(updated.user_selected)) or "none"
        state.feedback = f"Selected: {chosen}"


def _study_feedback(question: QuestionView) -> str:
    if question.is_correct:
        return "Correct!"
    if question.is_multiple and question.user_selected < question.correct_letters:
        return "Keep going: select all that apply."
    answer = ", ".join(sorted(question.correct_letters))
    return f"Incorrect! Correct answer: {answer}"


def _status_line(session: ExamSession) -> str:
    return (
        f"Answered {session.answered_count}/{session.total_questions} | "
        f"Time left {format_clock(session.time_remaining_seconds)}"
    )


def _render_question(
    console: Console, session: ExamSession, state: ViewState
) -> None:
    question = _current(session, state)
    header = Text.assemble(
        (f"Question {question.number}", "bold cyan"),
        (f" of {session.total_questions}", "dim"),
    )
    if question.is_flagged_for_review:
        header.append("  [flagged]", style="bold yellow")
    console.print()
    console.rule(header)
    stem = Text(question.text, style="bold")
    if question.is_multiple:
        stem.append("  (Select all that apply)", style="italic dim")
    console.print(stem)

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Answer")
    for letter, text in question.answers:
        chosen = letter in question.user_selected
        row = Text(("•" if chosen else " ") + " ")
        row.append(text, style="bold green" if chosen else "")
        table.add_row(letter, row)
    console.print(table)

    if state.feedback:
        style = "green" if state.feedback.startswith("Correct") else "yellow"
        console.print(Text(state.feedback, style=style))

    commands = "letters [A-D], n, p, f (flag), <number>, "
    if session.mode is Mode.EXAM:
        commands += "r (review), "
    commands += "grade, q"
    console.print(
        Text(f"{_status_line(session)} | Commands: {commands}", style="dim")
    )


def _render_review(
    console: Console, session: ExamSession, state: ViewState
) -> None:
    everything = session.filter_review(ReviewFilter.ALL)
    unanswered = session.filter_review(ReviewFilter.UNANSWERED)
    flagged = session.filter_review(ReviewFilter.FLAGGED)
    shown = session.filter_review(state.review_filter)

    console.print()
    console.rule(Text("Review Your Answers", style="bold magenta"))
    console.print(
        Text(
            f"All ({len(everything)})  Unanswered ({len(unanswered)})  "
            f"Flagged ({len(flagged)})  Showing: {state.review_filter.value}",
            style="dim",
        )
    )
    if not shown:
        console.print("No questions match this filter.")
    else:
        table = Table(box=box.SIMPLE, expand=False)
        table.add_column("#", justify="right")
        table.add_column("Status")
        table.add_column("Flag", justify="center")
        for question in shown:
            table.add_row(
                f"Question {question.number}",
                "Answered" if question.is_answered else "Unanswered",
                "⚑" if question.is_flagged_for_review else "",
            )
        console.print(table)
    if state.feedback:
        console.print(Text(state.feedback, style="yellow"))
    console.print(
        Text(
            f"{_status_line(session)} | Commands: <number> (open), "
            "r all|unanswered|flagged, f <number>, grade, q",
            style="dim",
        )
    )


def _render_summary(
    console: Console, session: ExamSession, outcome: SessionOutcome
) -> None:
    summary = outcome.summary
    headline = "Time's up!" if summary.expired else "Quiz Complete!"
    console.print()
    console.rule(Text(headline, style="bold magenta"))

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total Questions", str(summary.total))
    overview.add_row("Answered", str(summary.answered))
    overview.add_row("Correct Questions", str(summary.correct))
    overview.add_row("Incorrect Questions", str(summary.incorrect))
    overview.add_row("Final Score", f"{summary.percentage}%")
    overview.add_row("Time Used", format_clock(session.elapsed_seconds))
    console.print(overview)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer")
    responses.add_column("Correct answer")
    responses.add_column("Result", justify="center")
    for question in outcome.questions:
        responses.add_row(
            str(question.number),
            question.text,
            ", ".join(sorted(question.user_selected)) or "—",
            ", ".join(sorted(question.correct_letters)),
            "✅" if question.is_correct else "❌",
        )
    console.print(responses)
