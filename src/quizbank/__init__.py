"""Plain-text multiple-choice question banks and timed exam sessions."""

from .engine import ExamSession, build_questions, parse, validate

__all__ = ["ExamSession", "build_questions", "parse", "validate"]
