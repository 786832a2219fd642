"""Exam session state machine.

An :class:`ExamSession` owns the questions of one quiz attempt together with
the user's selections, review flags and countdown timer. Render layers read
:class:`~quizbank.engine.models.QuestionView` snapshots and forward user
actions; they never keep their own counters. Score and progress are always
derived from the questions.

Lifecycle::

    LOADING -> ACTIVE -> (REVIEWING <-> ACTIVE) -> COMPLETED

``REVIEWING`` is only reachable in exam mode. A new import or a retake
discards the attempt and starts again from ``LOADING``.
"""

from __future__ import annotations

import enum
import logging
import math
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .errors import SessionStateError, UnknownQuestionError
from .importer import (
    ImportResult,
    RawSource,
    build_from_candidates,
    build_questions,
    import_files,
)
from .models import LETTERS, CandidateQuestion, Question, QuestionView
from .timer import CountdownTimer, resolve_time_limit

__all__ = [
    "CompletionReason",
    "ExamSession",
    "Mode",
    "Phase",
    "ReviewFilter",
    "ScoreSummary",
]

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    LOADING = "loading"
    ACTIVE = "active"
    REVIEWING = "reviewing"
    COMPLETED = "completed"


class Mode(str, enum.Enum):
    STUDY = "study"
    EXAM = "exam"


class CompletionReason(str, enum.Enum):
    ANSWERED_ALL = "answered_all"
    GRADED = "graded"
    EXPIRED = "expired"


class ReviewFilter(str, enum.Enum):
    ALL = "all"
    UNANSWERED = "unanswered"
    FLAGGED = "flagged"


@dataclass(frozen=True)
class ScoreSummary:
    """Score and progress derived from the session's questions."""

    total: int
    answered: int
    correct: int
    reason: Optional[CompletionReason] = None

    @property
    def incorrect(self) -> int:
        return self.total - self.correct

    @property
    def unanswered(self) -> int:
        return self.total - self.answered

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return math.floor(self.correct * 100 / self.total + 0.5)

    @property
    def expired(self) -> bool:
        return self.reason is CompletionReason.EXPIRED


_LIVE_PHASES = (Phase.ACTIVE, Phase.REVIEWING)


class ExamSession:
    """Authoritative in-memory state of a single quiz attempt."""

    def __init__(
        self,
        *,
        mode: Mode | str = Mode.EXAM,
        time_limit_minutes: object = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        strict: bool = False,
        max_workers: int = 4,
    ) -> None:
        self.mode = Mode(mode)
        self.time_limit_seconds = resolve_time_limit(time_limit_minutes)
        self.strict = strict
        self.max_workers = max_workers
        self._rng = rng or random.Random()
        self._clock = clock
        self._phase = Phase.LOADING
        self._questions: list[Question] = []
        self._by_number: dict[int, Question] = {}
        self._candidates: list[CandidateQuestion] = []
        self._timer: Optional[CountdownTimer] = None
        self._reason: Optional[CompletionReason] = None

    # ------------------------------------------------------------------
    # Introspection

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def completion_reason(self) -> Optional[CompletionReason]:
        return self._reason

    @property
    def expired(self) -> bool:
        return self._reason is CompletionReason.EXPIRED

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self._questions if q.is_answered)

    @property
    def time_remaining_seconds(self) -> int:
        if self._timer is None:
            return 0
        return self._timer.remaining_seconds

    @property
    def elapsed_seconds(self) -> int:
        if self._timer is None:
            return 0
        return self._timer.elapsed_seconds

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and self._timer.running

    @property
    def questions(self) -> list[QuestionView]:
        return [question.view() for question in self._questions]

    def question(self, number: int) -> QuestionView:
        return self._lookup(number).view()

    # ------------------------------------------------------------------
    # Loading

    def start_session(self, raw_texts: Iterable[RawSource]) -> ImportResult:
        """Import raw bank texts and, when they are usable, begin the attempt."""

        self._discard()
        result = build_questions(raw_texts, rng=self._rng, strict=self.strict)
        return self._begin(result)

    def load_files(self, paths: Sequence[Path]) -> ImportResult:
        self._discard()
        result = import_files(
            paths,
            rng=self._rng,
            strict=self.strict,
            max_workers=self.max_workers,
        )
        return self._begin(result)

    def load_questions(
        self, candidates: Sequence[CandidateQuestion]
    ) -> ImportResult:
        self._discard()
        result = build_from_candidates(candidates, rng=self._rng)
        return self._begin(result)

    def retake(self) -> ImportResult:
        """Start a fresh attempt over the same questions in a new order."""

        if not self._candidates:
            raise SessionStateError("No question set loaded to retake.")
        candidates = list(self._candidates)
        self._discard()
        result = build_from_candidates(candidates, rng=self._rng)
        return self._begin(result)

    def _discard(self) -> None:
        if self._timer is not None:
            self._timer.stop()
        self._timer = None
        self._questions = []
        self._by_number = {}
        self._candidates = []
        self._reason = None
        self._set_phase(Phase.LOADING)

    def _begin(self, result: ImportResult) -> ImportResult:
        if not result.ok:
            logger.info(
                "Session not started",
                extra={"messages": result.messages},
            )
            return result
        self._candidates = list(result.candidates)
        self._questions = list(result.questions)
        self._by_number = {q.number: q for q in self._questions}
        self._timer = CountdownTimer(
            self.time_limit_seconds, clock=self._clock
        )
        self._timer.subscribe(self._on_expired)
        self._set_phase(Phase.ACTIVE)
        self._timer.start()
        logger.info(
            "Session started",
            extra={
                "mode": self.mode.value,
                "question_count": len(self._questions),
                "time_limit_seconds": self.time_limit_seconds,
            },
        )
        return result

    # ------------------------------------------------------------------
    # User actions

    def poll_timer(self) -> bool:
        """Let elapsed wall time reach the timer; True once completed."""

        if self._timer is not None and self._phase in _LIVE_PHASES:
            self._timer.poll()
        return self._phase is Phase.COMPLETED

    def record_answer(self, number: int, letters: Iterable[str] | str) -> bool:
        """Apply a selection to question ``number``.

        Single-choice questions take exactly one letter, which replaces any
        previous selection. Multiple-choice questions toggle every given
        letter. Returns ``False`` without changing anything once the session
        is completed.
        """

        question = self._lookup(number)
        chosen = _normalize_letters(letters)
        self.poll_timer()
        if self._phase is Phase.COMPLETED:
            return False
        self._require_live("record an answer")

        if question.is_multiple:
            question.user_selected ^= set(chosen)
        else:
            if len(chosen) != 1:
                raise ValueError(
                    f"Question {number} accepts exactly one letter, "
                    f"got {len(chosen)}."
                )
            question.user_selected = set(chosen)

        logger.debug(
            "Recorded answer",
            extra={
                "question": number,
                "selected": sorted(question.user_selected),
            },
        )
        if self.mode is Mode.STUDY and self._all_answered():
            self._complete(CompletionReason.ANSWERED_ALL)
        return True

    def toggle_flag(self, number: int) -> bool:
        """Flip the review flag of ``number`` and return the new value."""

        question = self._lookup(number)
        self.poll_timer()
        if self._phase is Phase.COMPLETED:
            return question.is_flagged_for_review
        self._require_live("flag a question")
        question.is_flagged_for_review = not question.is_flagged_for_review
        return question.is_flagged_for_review

    def begin_review(self) -> list[QuestionView]:
        """Enter the pre-grading review screen (exam mode only)."""

        if self.poll_timer():
            raise SessionStateError("The session is already completed.")
        if self.mode is not Mode.EXAM:
            raise SessionStateError("Review is only available in exam mode.")
        if self._phase is not Phase.ACTIVE:
            raise SessionStateError(
                f"Cannot start review while {self._phase.value}."
            )
        self._set_phase(Phase.REVIEWING)
        return self.filter_review(ReviewFilter.ALL)

    def revisit(self, number: int) -> QuestionView:
        """Leave the review screen to look at one question again."""

        question = self._lookup(number)
        if self.poll_timer():
            raise SessionStateError("The session is already completed.")
        if self._phase is not Phase.REVIEWING:
            raise SessionStateError(
                f"Cannot revisit a question while {self._phase.value}."
            )
        self._set_phase(Phase.ACTIVE)
        return question.view()

    def grade(self) -> ScoreSummary:
        """Finish the attempt on the user's request and return the summary."""

        if self._phase is Phase.LOADING:
            raise SessionStateError("No active session to grade.")
        if not self.poll_timer():
            self._complete(CompletionReason.GRADED)
        return self.summary()

    # ------------------------------------------------------------------
    # Derived values

    def compute_score(self) -> int:
        """Count questions whose selection equals the correct letters exactly."""

        return sum(1 for q in self._questions if q.is_correct)

    def summary(self) -> ScoreSummary:
        return ScoreSummary(
            total=self.total_questions,
            answered=self.answered_count,
            correct=self.compute_score(),
            reason=self._reason,
        )

    def filter_review(
        self, predicate: ReviewFilter | str = ReviewFilter.ALL
    ) -> list[QuestionView]:
        kind = ReviewFilter(predicate)
        if kind is ReviewFilter.UNANSWERED:
            selected = [q for q in self._questions if not q.is_answered]
        elif kind is ReviewFilter.FLAGGED:
            selected = [q for q in self._questions if q.is_flagged_for_review]
        else:
            selected = list(self._questions)
        return [question.view() for question in selected]

    # ------------------------------------------------------------------
    # Internals

    def _lookup(self, number: int) -> Question:
        try:
            return self._by_number[number]
        except (KeyError, TypeError) as exc:
            raise UnknownQuestionError(number) from exc

    def _require_live(self, action: str) -> None:
        if self._phase not in _LIVE_PHASES:
            raise SessionStateError(
                f"Cannot {action} while {self._phase.value}."
            )

    def _all_answered(self) -> bool:
        return bool(self._questions) and all(
            q.is_answered for q in self._questions
        )

    def _on_expired(self) -> None:
        if self._phase in _LIVE_PHASES:
            self._complete(CompletionReason.EXPIRED)

    def _complete(self, reason: CompletionReason) -> None:
        if self._timer is not None:
            self._timer.stop()
        self._reason = reason
        self._set_phase(Phase.COMPLETED)
        summary = self.summary()
        logger.info(
            "Session completed",
            extra={
                "reason": reason.value,
                "total": summary.total,
                "answered": summary.answered,
                "correct": summary.correct,
            },
        )

    def _set_phase(self, phase: Phase) -> None:
        if phase is self._phase:
            return
        logger.info(
            "Phase transition",
            extra={"from_phase": self._phase.value, "to_phase": phase.value},
        )
        self._phase = phase


def _normalize_letters(letters: Iterable[str] | str) -> list[str]:
    if isinstance(letters, str):
        raw = [ch for ch in letters if not ch.isspace() and ch != ","]
    else:
        raw = [str(item).strip() for item in letters]
    chosen: list[str] = []
    for item in raw:
        letter = item.upper()
        if letter not in LETTERS:
            raise ValueError(f"Unknown answer letter: {item!r}")
        if letter not in chosen:
            chosen.append(letter)
    return chosen
