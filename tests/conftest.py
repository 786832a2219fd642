from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import FakeClock, WorkspaceBuilder  # noqa: E402

# Ensure src/ is importable without an editable install
ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from quizbank.core import close_logger  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_quizbank_logger() -> Iterator[None]:
    """Undo handlers installed by CLI runs so caplog keeps working."""

    yield
    close_logger("quizbank")
    logging.getLogger("quizbank").propagate = True


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
