"""File discovery and reading for question bank imports."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

__all__ = [
    "Discovery",
    "FileRead",
    "discover_files",
    "parse_extensions",
    "read_files",
    "read_text_file",
]

logger = logging.getLogger(__name__)


@dataclass
class Discovery:
    """Files selected for import and inputs skipped by the extension filter."""

    files: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


@dataclass(frozen=True)
class FileRead:
    """Outcome of reading one file; exactly one of text/error is set."""

    path: Path
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_extensions(
    values: Optional[Sequence[str]],
    *,
    default: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Normalize extension strings to a lowercase set without leading dots.

    Parameters
    ----------
    values:
        Raw extension inputs (with or without leading dots).
        ``None`` returns the provided default set.
    default:
        Fallback extensions when ``values`` is empty. Defaults to ``{"txt"}``.
    """
    fallback = set(default or {"txt"})
    if not values:
        return set(fallback)

    normalized: Set[str] = set()
    for item in values:
        if not isinstance(item, str):
            continue
        candidate = item.strip().lower()
        if candidate.startswith("."):
            candidate = candidate[1:]
        if candidate:
            normalized.add(candidate)
    return normalized or set(fallback)


def discover_files(
    paths: Sequence[Path],
    extensions: Set[str],
) -> Discovery:
    """Expand ``paths`` into the files to import, preserving input order.

    Directories are searched recursively and files are taken in name order.
    Explicit file paths with another extension are reported as skipped. Paths
    that do not exist are kept so the reader reports them as per-file failures.
    """
    found = Discovery()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for candidate in _sorted_directory_files(path):
                if _matches_extension(candidate, extensions):
                    found.files.append(candidate)
            continue
        if path.exists() and not _matches_extension(path, extensions):
            logger.warning(
                "Skipping file with unsupported extension",
                extra={"path": str(path), "extensions": sorted(extensions)},
            )
            found.skipped.append(path)
            continue
        found.files.append(path)
    return found


def _sorted_directory_files(root: Path) -> List[Path]:
    return sorted(
        (child for child in root.rglob("*") if child.is_file()),
        key=lambda p: p.name.lower(),
    )


def _matches_extension(path: Path, extensions: Set[str]) -> bool:
    return path.is_file() and path.suffix.lower().lstrip(".") in extensions


def read_text_file(path: Path) -> str:
    """Read a text file as UTF-8 with replacement for decode errors."""
    with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
        return fh.read()


def _read_one(path: Path) -> FileRead:
    try:
        return FileRead(path=path, text=read_text_file(path))
    except OSError as exc:
        reason = exc.strerror or exc.__class__.__name__
        logger.error(
            "Failed to read question file",
            extra={"path": str(path), "reason": reason},
        )
        return FileRead(path=path, error=reason)


def read_files(paths: Sequence[Path], max_workers: int = 4) -> List[FileRead]:
    """Read every file concurrently and return outcomes in input order.

    A failure on one file is captured in its :class:`FileRead` and never stops
    the others.
    """
    targets = [Path(p) for p in paths]
    if not targets:
        return []
    results: dict[int, FileRead] = {}
    workers = max(1, min(max_workers, len(targets)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_map = {
            executor.submit(_read_one, path): idx
            for idx, path in enumerate(targets)
        }
        for future in as_completed(future_map):
            results[future_map[future]] = future.result()
    return [results[idx] for idx in range(len(targets))]
