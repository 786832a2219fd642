"""Exception types raised by the quiz engine."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

__all__ = [
    "QuizbankError",
    "ValidationError",
    "EmptyBatchError",
    "FileReadError",
    "SessionStateError",
    "UnknownQuestionError",
]


class QuizbankError(RuntimeError):
    """Base class for engine failures."""


class ValidationError(QuizbankError):
    """Raised when a parsed batch breaks a structural rule.

    ``messages`` holds every violation found so the caller can show them all at
    once.
    """

    def __init__(self, messages: Sequence[str]):
        self.messages = list(messages)
        super().__init__(
            "Error in question format. Please check the file.\n"
            + "\n".join(f"- {message}" for message in self.messages)
        )


class EmptyBatchError(QuizbankError):
    """Raised when no question survived parsing."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No questions were successfully parsed from the selected file(s)."
        )


class FileReadError(QuizbankError):
    """Raised when one source file cannot be read."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not read file: {self.path.name} ({reason})")


class SessionStateError(QuizbankError):
    """Raised when an operation is not allowed in the current phase."""


class UnknownQuestionError(QuizbankError, LookupError):
    """Raised for a question number the session does not hold."""

    def __init__(self, number: object):
        self.number = number
        super().__init__(f"Unknown question number: {number!r}")
