"""TOML configuration for quizbank commands.

Settings live in ``quizbank.toml``. Values from the file are merged onto the
built-in defaults, unknown keys are rejected, and the result is validated into
frozen dataclasses.
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

__all__ = [
    "CONFIG_FILENAME",
    "HOME_ENV",
    "ConfigError",
    "ExamConfig",
    "ImportConfig",
    "LoggingConfig",
    "QuizbankConfig",
    "config_template",
    "default_tree",
    "find_config",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_template",
]

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "quizbank.toml"
HOME_ENV = "QUIZBANK_HOME"
DEFAULT_HOME = Path.home() / ".quizbank"

_MODES = ("exam", "study")
_DEFAULT_MINUTES = 10


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ExamConfig:
    mode: str
    time_limit_minutes: int
    seed: Optional[int]


@dataclass(frozen=True)
class ImportConfig:
    extensions: tuple[str, ...]
    strict: bool
    max_workers: int


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool
    dir: Optional[Path]


@dataclass(frozen=True)
class QuizbankConfig:
    exam: ExamConfig
    imports: ImportConfig
    logging: LoggingConfig
    path: Optional[Path] = None

    def log_dir(self, env: Mapping[str, str] | None = None) -> Path:
        """Return the log directory, honouring ``$QUIZBANK_HOME``."""

        if self.logging.dir is not None:
            return self.logging.dir
        env_map = os.environ if env is None else env
        home = env_map.get(HOME_ENV)
        base = Path(home).expanduser() if home else DEFAULT_HOME
        return base / "logs"


_DEFAULTS: Dict[str, Any] = {
    "exam": {
        "mode": "exam",
        "time_limit_minutes": _DEFAULT_MINUTES,
        "seed": None,
    },
    "import": {
        "extensions": ["txt"],
        "strict": False,
        "max_workers": 4,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
        "dir": None,
    },
}


_CONFIG_TEMPLATE = """
# quizbank configuration

[exam]
# "exam" offers a review screen and grades on request;
# "study" completes as soon as every question is answered.
mode = "exam"
# Countdown length in whole minutes (invalid values fall back to 10)
time_limit_minutes = 10
# Fix the question order for repeatable runs
# seed = 42

[import]
# File extensions picked up when a directory is given
extensions = ["txt"]
# Reject the whole import when a block does not follow the question layout
strict = false
# Files read in parallel
max_workers = 4

[logging]
level = "INFO"
verbose = false
# Defaults to $QUIZBANK_HOME/logs or ~/.quizbank/logs
# dir = "~/quizbank-logs"
"""


def load_toml(path: Path) -> Mapping[str, Any]:
    """Load a TOML document from ``path``.

    Errors are surfaced as :class:`ConfigError` instances.
    """

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base`` enforcing known keys."""

    for key, value in override.items():
        if key not in base:
            dotted = f"{path}{key}" if path else key
            raise ConfigError(f"Unknown configuration key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                dotted = f"{path}{key}" if path else key
                raise ConfigError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            merge_defaults(base_value, value, path=f"{path}{key}.")
            continue
        base[key] = value


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _coerce_minutes(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.warning(
            "Invalid exam.time_limit_minutes; using default",
            extra={"requested": repr(value), "default": _DEFAULT_MINUTES},
        )
        return _DEFAULT_MINUTES
    return value


def _build_exam(section: Mapping[str, Any]) -> ExamConfig:
    mode = section.get("mode")
    if not isinstance(mode, str) or mode.strip().lower() not in _MODES:
        raise ConfigError("'exam.mode' must be one of: exam, study.")
    seed = section.get("seed")
    if seed is not None and (
        isinstance(seed, bool) or not isinstance(seed, int)
    ):
        raise ConfigError("'exam.seed' must be an integer when set.")
    return ExamConfig(
        mode=mode.strip().lower(),
        time_limit_minutes=_coerce_minutes(section.get("time_limit_minutes")),
        seed=seed,
    )


def _build_import(section: Mapping[str, Any]) -> ImportConfig:
    raw = section.get("extensions")
    if not isinstance(raw, list) or not raw:
        raise ConfigError("'import.extensions' must be a non-empty list.")
    extensions: list[str] = []
    for item in raw:
        if not isinstance(item, str) or not item.strip().lstrip("."):
            raise ConfigError(
                "'import.extensions' entries must be non-empty strings."
            )
        extensions.append(item.strip().lower().lstrip("."))
    return ImportConfig(
        extensions=tuple(extensions),
        strict=_require_bool(section.get("strict"), field="import.strict"),
        max_workers=_require_positive_int(
            section.get("max_workers"), field="import.max_workers"
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = section.get("level")
    if not isinstance(level, str) or not level.strip():
        raise ConfigError("'logging.level' must be a non-empty string.")
    raw_dir = section.get("dir")
    if raw_dir is not None and (
        not isinstance(raw_dir, str) or not raw_dir.strip()
    ):
        raise ConfigError("'logging.dir' must be a non-empty string when set.")
    return LoggingConfig(
        level=level.strip().upper(),
        verbose=_require_bool(section.get("verbose"), field="logging.verbose"),
        dir=Path(raw_dir).expanduser() if raw_dir else None,
    )


def _build_config(
    tree: Mapping[str, Any], path: Optional[Path] = None
) -> QuizbankConfig:
    return QuizbankConfig(
        exam=_build_exam(tree["exam"]),
        imports=_build_import(tree["import"]),
        logging=_build_logging(tree["logging"]),
        path=path,
    )


def find_config(explicit: Optional[str | Path] = None) -> Optional[Path]:
    """Locate ``quizbank.toml`` from an explicit path or the working dir."""

    if explicit:
        path = Path(explicit).expanduser().resolve()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    candidate = Path.cwd() / CONFIG_FILENAME
    if candidate.exists():
        return candidate.resolve()
    return None


def load_config(explicit: Optional[str | Path] = None) -> QuizbankConfig:
    """Load configuration, falling back to defaults when no file exists."""

    tree = default_tree()
    path = find_config(explicit)
    if path is not None:
        data = load_toml(path)
        merge_defaults(tree, data)
        logger.debug("Loaded configuration", extra={"path": str(path)})
    return _build_config(tree, path)


def config_template() -> str:
    """Return the TOML template written by ``quizbank init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigError(f"Config already exists: {path}")
    with path.open("w", encoding="utf-8") as handle:
        handle.write(config_template())
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
