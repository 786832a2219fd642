"""Import boundary: raw texts or files in, a usable question batch out.

Nothing raised while parsing, validating or reading files escapes this
module. Every failure is turned into an :class:`ImportIssue` on the returned
:class:`ImportResult` and the caller decides how to present it.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ..core.files import read_files
from .errors import EmptyBatchError, FileReadError, ValidationError
from .models import CandidateQuestion, Question
from .parser import parse_report
from .shuffler import shuffle_and_renumber
from .validator import validate

__all__ = [
    "IssueKind",
    "ImportIssue",
    "ImportResult",
    "SourceText",
    "build_from_candidates",
    "build_questions",
    "collect_candidates",
    "import_files",
]

logger = logging.getLogger(__name__)


class IssueKind(str, enum.Enum):
    MALFORMED_BLOCK = "malformed_block"
    VALIDATION = "validation"
    FILE_READ = "file_read"
    EMPTY_BATCH = "empty_batch"


# File read failures are reported but never reject the rest of the batch.
_NON_BLOCKING = {IssueKind.FILE_READ}


@dataclass(frozen=True)
class SourceText:
    """A raw question bank text and the label used in messages."""

    label: str
    text: str


@dataclass(frozen=True)
class ImportIssue:
    kind: IssueKind
    message: str
    source: Optional[str] = None

    @property
    def blocking(self) -> bool:
        return self.kind not in _NON_BLOCKING


@dataclass
class ImportResult:
    """Questions ready for a session plus every problem met on the way."""

    questions: list[Question] = field(default_factory=list)
    issues: list[ImportIssue] = field(default_factory=list)
    candidates: list[CandidateQuestion] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.questions) and not any(
            issue.blocking for issue in self.issues
        )

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]

    def issues_of(self, kind: IssueKind) -> list[ImportIssue]:
        return [issue for issue in self.issues if issue.kind is kind]


RawSource = Union[str, SourceText]


def _as_sources(raw_texts: Iterable[RawSource]) -> list[SourceText]:
    sources: list[SourceText] = []
    for idx, raw in enumerate(raw_texts, start=1):
        if isinstance(raw, SourceText):
            sources.append(raw)
        else:
            sources.append(SourceText(label=f"text {idx}", text=str(raw)))
    return sources


def collect_candidates(
    sources: Sequence[SourceText], *, strict: bool = False
) -> tuple[list[CandidateQuestion], list[ImportIssue]]:
    """Parse every source and concatenate the candidates in source order."""

    candidates: list[CandidateQuestion] = []
    issues: list[ImportIssue] = []
    for source in sources:
        report = parse_report(source.text, source.label)
        if not report.candidates:
            logger.warning(
                "No questions parsed from source",
                extra={"source": source.label},
            )
        candidates.extend(report.candidates)
        if strict:
            issues.extend(
                ImportIssue(
                    IssueKind.MALFORMED_BLOCK,
                    dropped.describe(),
                    source.label,
                )
                for dropped in report.dropped
            )
    return candidates, issues


def _prepare(
    candidates: Sequence[CandidateQuestion],
    rng: Optional[random.Random],
) -> list[Question]:
    if not candidates:
        raise EmptyBatchError()
    questions = shuffle_and_renumber(candidates, rng)
    errors = validate(questions)
    if errors:
        raise ValidationError(errors)
    return questions


def build_from_candidates(
    candidates: Sequence[CandidateQuestion],
    *,
    rng: Optional[random.Random] = None,
    issues: Sequence[ImportIssue] = (),
) -> ImportResult:
    """Shuffle, renumber and validate already-parsed candidates."""

    result = ImportResult(issues=list(issues), candidates=list(candidates))
    if any(issue.blocking for issue in result.issues):
        logger.warning(
            "Import rejected due to malformed blocks",
            extra={"issue_count": len(result.issues)},
        )
        return result
    try:
        result.questions = _prepare(candidates, rng)
    except EmptyBatchError as exc:
        result.issues.append(ImportIssue(IssueKind.EMPTY_BATCH, str(exc)))
        logger.warning("Import produced no questions")
    except ValidationError as exc:
        result.issues.extend(
            ImportIssue(IssueKind.VALIDATION, message)
            for message in exc.messages
        )
        logger.warning(
            "Import rejected by validation",
            extra={"error_count": len(exc.messages)},
        )
    else:
        logger.info(
            "Imported question batch",
            extra={"question_count": len(result.questions)},
        )
    return result


def build_questions(
    raw_texts: Iterable[RawSource],
    *,
    rng: Optional[random.Random] = None,
    strict: bool = False,
) -> ImportResult:
    """Turn one or more raw bank texts into a validated, shuffled batch.

    Either every question of the combined batch is returned or none is: a
    single validation error rejects the whole import.
    """

    sources = _as_sources(raw_texts)
    candidates, issues = collect_candidates(sources, strict=strict)
    return build_from_candidates(candidates, rng=rng, issues=issues)


def import_files(
    paths: Sequence[Path],
    *,
    rng: Optional[random.Random] = None,
    strict: bool = False,
    max_workers: int = 4,
) -> ImportResult:
    """Read ``paths`` concurrently and build a batch from what could be read."""

    read_issues: list[ImportIssue] = []
    sources: list[SourceText] = []
    for outcome in read_files(paths, max_workers=max_workers):
        if outcome.error is not None:
            error = FileReadError(outcome.path, outcome.error)
            read_issues.append(
                ImportIssue(IssueKind.FILE_READ, str(error), str(outcome.path))
            )
            continue
        sources.append(SourceText(outcome.path.name, outcome.text or ""))

    logger.info(
        "Read question files",
        extra={
            "requested": len(paths),
            "read": len(sources),
            "failed": len(read_issues),
        },
    )
    candidates, parse_issues = collect_candidates(sources, strict=strict)
    return build_from_candidates(
        candidates, rng=rng, issues=[*read_issues, *parse_issues]
    )
