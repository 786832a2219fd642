from __future__ import annotations

from quizbank.engine.models import (
    Answer,
    CandidateQuestion,
    MultipleChoice,
    Question,
    SingleChoice,
    key_for,
)
from quizbank.engine.validator import validate


def make_candidate(
    number: int = 1,
    text: str = "Which one?",
    letters: str = "ABCD",
    correct: str = "A",
) -> CandidateQuestion:
    answers = tuple(
        Answer(letter, f"option {letter}", letter in correct)
        for letter in letters
    )
    return CandidateQuestion(
        number=number, text=text, answers=answers, key=key_for(correct)
    )


def test_validate_accepts_well_formed_batch() -> None:
    batch = [make_candidate(1), make_candidate(2, correct="BD")]

    assert validate(batch) == []


def test_validate_reports_missing_text() -> None:
    assert validate([make_candidate(text="   ")]) == [
        "Question 1 has no question text."
    ]


def test_validate_reports_wrong_answer_count() -> None:
    errors = validate([make_candidate(4, letters="ABC")])

    assert errors == [
        "Question 4 does not have exactly four answers.",
        "Question 4 has incorrect answer lettering.",
    ]


def test_validate_reports_bad_lettering_only() -> None:
    assert validate([make_candidate(2, letters="ACBD")]) == [
        "Question 2 has incorrect answer lettering."
    ]


def test_validate_reports_key_outside_answers() -> None:
    candidate = make_candidate(3)
    broken = CandidateQuestion(
        number=3,
        text=candidate.text,
        answers=candidate.answers,
        key=SingleChoice("E"),
    )

    assert validate([broken]) == [
        "Question 3 does not have a valid correct answer marking."
    ]


def test_validate_reports_empty_key() -> None:
    candidate = make_candidate(5)
    broken = CandidateQuestion(
        number=5,
        text=candidate.text,
        answers=candidate.answers,
        key=MultipleChoice(frozenset()),
    )

    assert validate([broken]) == [
        "Question 5 does not have a valid correct answer marking."
    ]


def test_validate_collects_errors_across_questions() -> None:
    batch = [
        make_candidate(1),
        make_candidate(2, text=""),
        make_candidate(3, letters="ABCE"),
    ]

    assert validate(batch) == [
        "Question 2 has no question text.",
        "Question 3 has incorrect answer lettering.",
    ]


def test_validate_accepts_session_questions() -> None:
    question = Question.from_candidate(make_candidate(8), number=1)

    assert validate([question]) == []


def test_validate_names_file_and_line_when_known() -> None:
    candidate = make_candidate(7, text="")
    located = CandidateQuestion(
        number=4,
        text=candidate.text,
        answers=candidate.answers,
        key=candidate.key,
        source="bank.txt",
        line=31,
    )
    unnamed = CandidateQuestion(
        number=5,
        text="",
        answers=candidate.answers,
        key=candidate.key,
        line=12,
    )

    assert validate([located, unnamed]) == [
        "Question 4 (bank.txt, line 31) has no question text.",
        "Question 5 (line 12) has no question text.",
    ]
