"""Structural checks applied to a whole batch of questions."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .models import LETTERS, Answer

__all__ = ["validate"]

logger = logging.getLogger(__name__)


class _Checkable(Protocol):
    number: int
    text: str
    answers: Sequence[Answer]

    @property
    def correct_letters(self) -> frozenset[str]: ...


def validate(questions: Sequence[_Checkable]) -> list[str]:
    """Return one message per rule violation; empty means the batch is usable.

    Every question is checked independently and all violations are collected.
    Messages carry the question number and, when the parser recorded it, the
    file and line where the block starts.
    """

    errors: list[str] = []
    for question in questions:
        errors.extend(_check_question(question))
    if errors:
        logger.info(
            "Validation rejected batch",
            extra={"question_count": len(questions), "errors": errors},
        )
    return errors


def _label(question: _Checkable) -> str:
    """Name a question by session number plus where it sits in its file."""

    source = getattr(question, "source", None)
    line = getattr(question, "line", None)
    if line is None:
        return f"Question {question.number}"
    where = f"{source}, line {line}" if source else f"line {line}"
    return f"Question {question.number} ({where})"


def _check_question(question: _Checkable) -> list[str]:
    label = _label(question)
    answers = list(question.answers or ())
    problems: list[str] = []

    if not str(question.text or "").strip():
        problems.append(f"{label} has no question text.")

    if len(answers) != len(LETTERS):
        problems.append(f"{label} does not have exactly four answers.")

    correct = question.correct_letters
    matched = sum(1 for answer in answers if answer.letter in correct)
    if not correct or matched != len(correct):
        problems.append(
            f"{label} does not have a valid correct answer marking."
        )

    letters = tuple(answer.letter for answer in answers)
    if letters != LETTERS:
        problems.append(f"{label} has incorrect answer lettering.")

    return problems
