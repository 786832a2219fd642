"""Builders for plain-text question banks."""

from __future__ import annotations

from typing import Iterable, Sequence


def question_block(
    number: int,
    text: str,
    answers: Sequence[str] = ("alpha", "beta", "gamma", "delta"),
    correct: Iterable[str] = ("A",),
) -> str:
    """Render one well-formed question block.

    ``correct`` lists the letters that receive a trailing ``*``.
    """

    marked = {letter.upper() for letter in correct}
    lines = [f"{number}. {text}"]
    for letter, answer in zip("ABCD", answers):
        suffix = "*" if letter in marked else ""
        lines.append(f"{letter}. {answer}{suffix}")
    return "\n".join(lines)


def bank_text(*blocks: str) -> str:
    return "\n\n".join(blocks) + "\n"
