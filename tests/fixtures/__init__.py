"""Shared testing helpers for the quizbank test suite."""

from .banks import bank_text, question_block  # noqa: F401
from .clock import FakeClock  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "FakeClock",
    "WorkspaceBuilder",
    "bank_text",
    "build_tree",
    "question_block",
]
