"""Command line entry point for quizbank."""

from __future__ import annotations

import argparse
import random
import sys
from importlib import metadata
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from .core import (
    CONFIG_FILENAME,
    ConfigError,
    QuizbankConfig,
    configure_logger,
    discover_files,
    load_config,
    parse_extensions,
    write_template,
)
from .engine import ExamSession, ImportResult, import_files
from .view import InputProvider, run_exam_session


def _print(
    text: str, *, stream: Optional[Callable[[str], object]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _print_issues(result: ImportResult) -> None:
    for issue in result.issues:
        _print(f"- {issue.message}", stream=sys.stderr.write)


def _load_settings(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> QuizbankConfig:
    try:
        return load_config(getattr(args, "config", None))
    except ConfigError as exc:
        parser.error(str(exc))


def _setup_logging(config: QuizbankConfig, verbose: bool) -> Path:
    _, log_path = configure_logger(
        "quizbank",
        log_dir=config.log_dir(),
        level=config.logging.level,
        verbose=verbose or config.logging.verbose,
    )
    return log_path


def _collect_paths(
    config: QuizbankConfig, raw_paths: Sequence[str]
) -> list[Path]:
    extensions = parse_extensions(list(config.imports.extensions))
    found = discover_files(
        [Path(p).expanduser() for p in raw_paths], extensions
    )
    for skipped in found.skipped:
        _print(
            f"Skipping non-question file: {skipped.name}",
            stream=sys.stderr.write,
        )
    return found.files


def _cmd_init(args: argparse.Namespace) -> int:
    target = Path(args.path or CONFIG_FILENAME).expanduser().resolve()
    try:
        write_template(target, overwrite=bool(args.force))
    except ConfigError as exc:
        _print(f"{exc}. Use --force to replace it.", stream=sys.stderr.write)
        return 1
    _print(f"Created template {target}")
    return 0


def _cmd_check(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> int:
    config = _load_settings(parser, args)
    _setup_logging(config, bool(args.verbose))
    paths = _collect_paths(config, args.paths)
    if not paths:
        _print("No question files found.", stream=sys.stderr.write)
        return 1
    result = import_files(
        paths,
        rng=random.Random(0),
        strict=bool(args.strict or config.imports.strict),
        max_workers=config.imports.max_workers,
    )
    if not result.ok:
        _print(
            "Error in question format. Please check the file(s).",
            stream=sys.stderr.write,
        )
        _print_issues(result)
        return 1
    if result.issues:
        _print_issues(result)
    _print(
        f"OK: {len(result.questions)} question(s) from {len(paths)} file(s)."
    )
    return 0


def _cmd_start(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    config = _load_settings(parser, args)
    log_path = _setup_logging(config, bool(args.verbose))
    paths = _collect_paths(config, args.paths)
    if not paths:
        _print("No question files found.", stream=sys.stderr.write)
        return 1

    seed = args.seed if args.seed is not None else config.exam.seed
    session = ExamSession(
        mode=args.mode or config.exam.mode,
        time_limit_minutes=(
            args.minutes
            if args.minutes is not None
            else config.exam.time_limit_minutes
        ),
        rng=random.Random(seed),
        strict=bool(args.strict or config.imports.strict),
        max_workers=config.imports.max_workers,
    )
    result = session.load_files(paths)
    if not result.ok:
        _print(
            "Could not start the quiz. Please check the file(s).",
            stream=sys.stderr.write,
        )
        _print_issues(result)
        return 1
    if result.issues:
        _print_issues(result)

    outcome = run_exam_session(
        session,
        console or Console(),
        input_provider or input,
    )
    if args.verbose:
        _print(f"Log file: {log_path}", stream=sys.stderr.write)
    return 0 if outcome.exit_action == "completed" else 2


def _cmd_version() -> int:
    try:
        version = metadata.version("quizbank")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizbank",
        description="Timed multiple-choice quizzes from plain-text banks",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_init = sub.add_parser("init", help="Write a quizbank.toml template")
    sp_init.add_argument("--path", help="Destination file")
    sp_init.add_argument(
        "--force", action="store_true", help="Replace an existing file"
    )

    for name, summary in (
        ("check", "Parse and validate question files"),
        ("start", "Take a quiz in the terminal"),
    ):
        sp = sub.add_parser(name, help=summary)
        sp.add_argument(
            "paths", nargs="+", help="Question files or directories"
        )
        sp.add_argument("--config", help="Path to quizbank.toml")
        sp.add_argument(
            "--strict",
            action="store_true",
            help="Reject files containing malformed question blocks",
        )
        sp.add_argument(
            "--verbose", action="store_true", help="Echo logs to stderr"
        )
        if name == "start":
            sp.add_argument("--mode", choices=["exam", "study"])
            sp.add_argument(
                "--minutes", type=int, help="Time limit in whole minutes"
            )
            sp.add_argument(
                "--seed", type=int, help="Seed for the question order"
            )

    sub.add_parser("version", help="Print the installed version")
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_check(parser, args)
    if args.command == "start":
        return _cmd_start(
            parser, args, console=console, input_provider=input_provider
        )
    if args.command == "version":
        return _cmd_version()
    parser.print_help()  # pragma: no cover - fallback guard
    return 2  # pragma: no cover


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
