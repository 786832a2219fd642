"""Turn plain-text question banks into candidate questions.

A bank is a sequence of blocks separated by blank lines::

    1. What is the capital of France?
    A. Paris*
    B. London
    C. Rome
    D. Berlin

A trailing ``*`` marks a correct answer; more than one marks a "select all
that apply" question. Blocks that do not follow the layout are dropped without
raising. :func:`parse_report` keeps a record of what was dropped and why.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator

from .models import LETTERS, Answer, CandidateQuestion, key_for

__all__ = [
    "Block",
    "DroppedBlock",
    "ParseReport",
    "iter_blocks",
    "parse",
    "parse_block",
    "parse_report",
]

logger = logging.getLogger(__name__)

_QUESTION_RE = re.compile(r"^(\d+)\.\s*(.*)")
_ANSWER_RE = re.compile(r"^([A-D])\.\s*(.*)")
# Any lettered line after D counts as a surplus answer.
_SURPLUS_ANSWER_RE = re.compile(r"^[A-Z]\.(?:\s|$)")
_CORRECT_MARKER = "*"


@dataclass(frozen=True)
class Block:
    """Trimmed lines of one block and the source line it starts on."""

    line: int
    lines: tuple[str, ...]


@dataclass(frozen=True)
class DroppedBlock:
    source: str | None
    line: int
    reason: str

    def describe(self) -> str:
        where = f"{self.source}, line {self.line}" if self.source else (
            f"line {self.line}"
        )
        return f"Skipped block at {where}: {self.reason}."


@dataclass
class ParseReport:
    candidates: list[CandidateQuestion] = field(default_factory=list)
    dropped: list[DroppedBlock] = field(default_factory=list)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def iter_blocks(text: str) -> Iterator[Block]:
    """Yield blocks of non-blank lines in source order.

    Whitespace-only lines count as blank, so runs of them separate blocks just
    like empty lines do.
    """

    current: list[str] = []
    start = 0
    for number, raw in enumerate(normalize_newlines(text).split("\n"), 1):
        stripped = raw.strip()
        if not stripped:
            if current:
                yield Block(start, tuple(current))
                current = []
            continue
        if not current:
            start = number
        current.append(stripped)
    if current:
        yield Block(start, tuple(current))


def parse_block(
    block: Block, source: str | None = None
) -> CandidateQuestion | str:
    """Parse one block, returning a candidate or the reason it was dropped."""

    header = _QUESTION_RE.match(block.lines[0])
    if not header:
        return "no question header"
    number = int(header.group(1))
    text = header.group(2).strip()

    answer_lines = block.lines[1 : 1 + len(LETTERS)]
    answers: list[Answer] = []
    for line in answer_lines:
        match = _ANSWER_RE.match(line)
        if not match:
            break
        answers.append(_build_answer(match.group(1), match.group(2)))
    if len(answers) != len(LETTERS):
        return f"expected 4 answer lines, found {len(answers)}"

    extra = block.lines[1 + len(LETTERS) :]
    if extra and _SURPLUS_ANSWER_RE.match(extra[0]):
        return "more than 4 answer lines"

    correct = [answer.letter for answer in answers if answer.is_correct]
    if not correct:
        return "no answer marked correct with '*'"

    return CandidateQuestion(
        number=number,
        text=text,
        answers=tuple(answers),
        key=key_for(correct),
        source=source,
        line=block.line,
    )


def _build_answer(letter: str, raw_text: str) -> Answer:
    text = raw_text.strip()
    is_correct = text.endswith(_CORRECT_MARKER)
    if is_correct:
        text = text[: -len(_CORRECT_MARKER)].strip()
    return Answer(letter=letter, text=text, is_correct=is_correct)


def parse_report(raw_text: str, source: str | None = None) -> ParseReport:
    """Parse ``raw_text`` and keep track of dropped blocks."""

    report = ParseReport()
    for block in iter_blocks(raw_text):
        outcome = parse_block(block, source)
        if isinstance(outcome, CandidateQuestion):
            report.candidates.append(outcome)
            continue
        dropped = DroppedBlock(source=source, line=block.line, reason=outcome)
        report.dropped.append(dropped)
        logger.debug(
            "Dropped malformed block",
            extra={
                "source": source,
                "line": block.line,
                "reason": outcome,
            },
        )
    logger.debug(
        "Parsed question text",
        extra={
            "source": source,
            "candidate_count": len(report.candidates),
            "dropped_count": len(report.dropped),
        },
    )
    return report


def parse(raw_text: str, source: str | None = None) -> list[CandidateQuestion]:
    """Return the candidate questions found in ``raw_text``, in source order."""

    return parse_report(raw_text, source).candidates
