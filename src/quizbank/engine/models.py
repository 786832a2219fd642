"""Question data structures shared by the parser, validator and session.

Parsed questions start life as :class:`CandidateQuestion` records that keep the
number written in the source file. Once a batch is shuffled and renumbered the
session owns mutable :class:`Question` objects, and render layers only ever see
frozen :class:`QuestionView` snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Union

__all__ = [
    "LETTERS",
    "Answer",
    "SingleChoice",
    "MultipleChoice",
    "AnswerKey",
    "key_for",
    "CandidateQuestion",
    "Question",
    "QuestionView",
]

LETTERS: tuple[str, ...] = ("A", "B", "C", "D")


@dataclass(frozen=True)
class Answer:
    """One lettered option of a question."""

    letter: str
    text: str
    is_correct: bool = False


@dataclass(frozen=True)
class SingleChoice:
    """Answer key for a question with exactly one correct letter."""

    correct: str

    @property
    def letters(self) -> frozenset[str]:
        return frozenset({self.correct})

    def is_satisfied_by(self, selected: Iterable[str]) -> bool:
        return set(selected) == {self.correct}


@dataclass(frozen=True)
class MultipleChoice:
    """Answer key for a "select all that apply" question.

    Only an exact match of the selection counts as correct; a strict subset
    earns nothing.
    """

    correct: frozenset[str]

    @property
    def letters(self) -> frozenset[str]:
        return self.correct

    def is_satisfied_by(self, selected: Iterable[str]) -> bool:
        return frozenset(selected) == self.correct


AnswerKey = Union[SingleChoice, MultipleChoice]


def key_for(letters: Iterable[str]) -> AnswerKey:
    """Build the answer key variant matching ``letters``."""

    marked = frozenset(letters)
    if len(marked) == 1:
        (only,) = marked
        return SingleChoice(only)
    return MultipleChoice(marked)


@dataclass(frozen=True)
class CandidateQuestion:
    """A question as parsed from a source, before shuffling and renumbering."""

    number: int
    text: str
    answers: tuple[Answer, ...]
    key: AnswerKey
    source: str | None = None
    line: int | None = None

    @property
    def correct_letters(self) -> frozenset[str]:
        return self.key.letters


@dataclass(eq=False)
class Question:
    """Session-owned question with the user's selection and review flag."""

    number: int
    text: str
    answers: tuple[Answer, ...]
    key: AnswerKey
    user_selected: set[str] = field(default_factory=set)
    is_flagged_for_review: bool = False
    source: str | None = None
    line: int | None = None

    @classmethod
    def from_candidate(
        cls, candidate: CandidateQuestion, number: int
    ) -> "Question":
        return cls(
            number=number,
            text=candidate.text,
            answers=tuple(candidate.answers),
            key=candidate.key,
            source=candidate.source,
            line=candidate.line,
        )

    @property
    def correct_letters(self) -> frozenset[str]:
        return self.key.letters

    @property
    def is_multiple(self) -> bool:
        return isinstance(self.key, MultipleChoice)

    @property
    def is_answered(self) -> bool:
        return bool(self.user_selected)

    @property
    def is_correct(self) -> bool:
        return self.key.is_satisfied_by(self.user_selected)

    def view(self) -> "QuestionView":
        return QuestionView(
            number=self.number,
            text=self.text,
            answers=tuple((a.letter, a.text) for a in self.answers),
            correct_letters=self.correct_letters,
            user_selected=frozenset(self.user_selected),
            is_flagged_for_review=self.is_flagged_for_review,
            is_multiple=self.is_multiple,
        )


@dataclass(frozen=True)
class QuestionView:
    """Read-only snapshot of a question for render layers."""

    number: int
    text: str
    answers: tuple[tuple[str, str], ...]
    correct_letters: frozenset[str]
    user_selected: frozenset[str]
    is_flagged_for_review: bool
    is_multiple: bool

    @property
    def is_answered(self) -> bool:
        return bool(self.user_selected)

    @property
    def is_correct(self) -> bool:
        return self.user_selected == self.correct_letters

    def as_dict(self) -> dict[str, object]:
        """Return the mapping shape consumed by render layers."""

        return {
            "number": self.number,
            "text": self.text,
            "answers": [
                {"letter": letter, "text": text}
                for letter, text in self.answers
            ],
            "correctLetters": sorted(self.correct_letters),
            "userSelected": sorted(self.user_selected),
            "isFlaggedForReview": self.is_flagged_for_review,
        }
