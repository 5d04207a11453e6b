"""
Ledger persistence.

The ledger file is read and written whole. Writes are validated first
so a bad ledger never reaches disk. Callers that mutate should hold
ledger_lock (storyloop.lib.locking) across load and save.
"""

import json
import logging
from pathlib import Path

from storyloop.lib.validate import read_ledger_file, validate_before_write
from storyloop.ledger.models import Ledger

logger = logging.getLogger(__name__)


def load_ledger(path: Path) -> Ledger:
    """Load and validate a ledger file.

    Legacy `passes` flags are normalized into `status` here.

    Raises:
        ValidationError: If the file is missing, not UTF-8 JSON, or invalid
    """
    data = read_ledger_file(path)
    ledger = Ledger.from_dict(data)
    logger.debug(f"[LEDGER] Loaded {len(ledger.stories)} stories from {path}")
    return ledger


def save_ledger(path: Path, ledger: Ledger) -> None:
    """Validate and write the ledger file.

    Raises:
        ValidationError: If the ledger is invalid
    """
    data = ledger.to_dict()
    validate_before_write(data, path)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug(f"[LEDGER] Saved {len(ledger.stories)} stories to {path}")
