"""
Story ledger for storyloop.

Holds the stories for one feature, picks the next one to work on,
and enforces the pending/complete/blocked lifecycle.
"""

from storyloop.ledger.models import Story, StoryStatus, Ledger
from storyloop.ledger.operations import (
    LedgerError,
    NotFoundError,
    InvalidTransitionError,
    find_story,
    select_next,
    mark_complete,
    mark_blocked,
    unblock,
    is_complete,
    get_progress,
    count_by_status,
)
from storyloop.ledger.store import load_ledger, save_ledger
from storyloop.ledger.progress import append_entry, parse_progress, entries_for

__all__ = [
    "Story",
    "StoryStatus",
    "Ledger",
    "LedgerError",
    "NotFoundError",
    "InvalidTransitionError",
    "find_story",
    "select_next",
    "mark_complete",
    "mark_blocked",
    "unblock",
    "is_complete",
    "get_progress",
    "count_by_status",
    "load_ledger",
    "save_ledger",
    "append_entry",
    "parse_progress",
    "entries_for",
]
