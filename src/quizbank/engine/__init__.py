"""Quiz engine: parsing, validation, shuffling, timing and exam sessions."""

from .errors import (
    EmptyBatchError,
    FileReadError,
    QuizbankError,
    SessionStateError,
    UnknownQuestionError,
    ValidationError,
)
from .importer import (
    ImportIssue,
    ImportResult,
    IssueKind,
    SourceText,
    build_questions,
    import_files,
)
from .models import (
    LETTERS,
    Answer,
    CandidateQuestion,
    MultipleChoice,
    Question,
    QuestionView,
    SingleChoice,
)
from .parser import DroppedBlock, ParseReport, parse, parse_report
from .session import (
    CompletionReason,
    ExamSession,
    Mode,
    Phase,
    ReviewFilter,
    ScoreSummary,
)
from .shuffler import renumber, shuffle, shuffle_and_renumber
from .timer import CountdownTimer, format_clock, resolve_time_limit
from .validator import validate

__all__ = [
    "LETTERS",
    "Answer",
    "CandidateQuestion",
    "MultipleChoice",
    "Question",
    "QuestionView",
    "SingleChoice",
    "DroppedBlock",
    "ParseReport",
    "parse",
    "parse_report",
    "validate",
    "shuffle",
    "renumber",
    "shuffle_and_renumber",
    "SourceText",
    "ImportIssue",
    "ImportResult",
    "IssueKind",
    "build_questions",
    "import_files",
    "CountdownTimer",
    "format_clock",
    "resolve_time_limit",
    "CompletionReason",
    "ExamSession",
    "Mode",
    "Phase",
    "ReviewFilter",
    "ScoreSummary",
    "QuizbankError",
    "ValidationError",
    "EmptyBatchError",
    "FileReadError",
    "SessionStateError",
    "UnknownQuestionError",
]
