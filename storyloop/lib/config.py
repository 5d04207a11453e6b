"""
Configuration loader for storyloop.

Reads storyloop.env from the project root. The file is KEY=value lines,
parsed without shell execution; values that look like shell tricks are
rejected outright.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from storyloop.lib.envparse import parse_env_file

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "storyloop.env"

DEFAULT_LEDGER_PATH = "prd.json"
DEFAULT_PROGRESS_PATH = "progress.txt"
DEFAULT_LOCK_TIMEOUT = 60
DEFAULT_LOG_LEVEL = "WARNING"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ProjectConfig:
    """Project-level configuration from storyloop.env"""
    root: Path
    ledger_path: Path        # Absolute, resolved against root
    progress_path: Path      # Absolute, resolved against root
    lock_timeout: int        # Seconds to wait for the ledger lock
    log_level: str


def _parse_lock_timeout(raw: str | None) -> int:
    if raw is None:
        return DEFAULT_LOCK_TIMEOUT
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        logger.warning(f"Invalid LOCK_TIMEOUT '{raw}', using {DEFAULT_LOCK_TIMEOUT}")
        return DEFAULT_LOCK_TIMEOUT
    return value


def _parse_log_level(raw: str | None) -> str:
    if raw is None:
        return DEFAULT_LOG_LEVEL
    level = raw.upper()
    if level not in VALID_LOG_LEVELS:
        logger.warning(f"Unknown LOG_LEVEL '{raw}', using {DEFAULT_LOG_LEVEL}")
        return DEFAULT_LOG_LEVEL
    return level


def load_project_config(root: Path) -> ProjectConfig:
    """Load storyloop.env from root and return ProjectConfig.

    A missing config file means all defaults.
    """
    env_file = root / CONFIG_FILENAME
    env = parse_env_file(env_file) if env_file.exists() else {}

    return ProjectConfig(
        root=root,
        ledger_path=root / env.get("LEDGER_PATH", DEFAULT_LEDGER_PATH),
        progress_path=root / env.get("PROGRESS_PATH", DEFAULT_PROGRESS_PATH),
        lock_timeout=_parse_lock_timeout(env.get("LOCK_TIMEOUT")),
        log_level=_parse_log_level(env.get("LOG_LEVEL")),
    )


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start looking for storyloop.env or a prd.json ledger."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / CONFIG_FILENAME).exists() or (candidate / DEFAULT_LEDGER_PATH).exists():
            return candidate
    return None
