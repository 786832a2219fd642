"""Randomized ordering and renumbering of question batches."""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

from .models import CandidateQuestion, Question

__all__ = ["shuffle", "renumber", "shuffle_and_renumber"]

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> list[T]:
    """Return a Fisher-Yates shuffled copy of ``items``.

    Walks from the last index down to 1 and swaps each slot with a uniformly
    drawn index in ``[0, i]``. The input sequence is left untouched.
    """

    rnd = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rnd.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def renumber(candidates: Sequence[CandidateQuestion]) -> list[Question]:
    """Build session questions numbered ``1..N`` in the given order."""

    return [
        Question.from_candidate(candidate, position)
        for position, candidate in enumerate(candidates, start=1)
    ]


def shuffle_and_renumber(
    candidates: Sequence[CandidateQuestion],
    rng: Optional[random.Random] = None,
) -> list[Question]:
    return renumber(shuffle(candidates, rng))
