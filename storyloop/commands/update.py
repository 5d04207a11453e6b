"""
storyloop complete / block / unblock - story transitions.

Each command runs one load-mutate-save cycle under the ledger lock and
appends an entry to the progress log. Nothing continues on to the next
story automatically; the operator starts the next cycle.
"""

import logging
from typing import Callable

from storyloop.lib.config import ProjectConfig
from storyloop.lib.locking import LockTimeout, ledger_lock
from storyloop.lib.validate import ValidationError
from storyloop.ledger.models import Ledger
from storyloop.ledger.operations import (
    InvalidTransitionError,
    NotFoundError,
    get_progress,
    mark_blocked,
    mark_complete,
    select_next,
    unblock,
)
from storyloop.ledger.progress import append_entry, check_writable
from storyloop.ledger.store import load_ledger, save_ledger

logger = logging.getLogger(__name__)


def apply_transition(
    config: ProjectConfig,
    story_id: str,
    operation: Callable[[Ledger], Ledger],
    outcome: str,
    details: str = "",
) -> tuple[int, Ledger | None]:
    """Run one locked ledger update and log it.

    Returns (exit_code, updated_ledger). The ledger file is only
    rewritten when the operation succeeds and the progress log is
    writable.
    """
    try:
        with ledger_lock(config.ledger_path, config.lock_timeout):
            ledger = load_ledger(config.ledger_path)
            updated = operation(ledger)
            # The log must accept the entry before the ledger changes
            check_writable(config.progress_path)
            save_ledger(config.ledger_path, updated)
            append_entry(config.progress_path, story_id, outcome, details)
    except LockTimeout as e:
        print(f"ERROR: {e}")
        print("Another storyloop command is updating this ledger.")
        return 1, None
    except ValidationError as e:
        print(f"ERROR: {e}")
        return 2, None
    except NotFoundError as e:
        print(f"ERROR: {e}")
        return 2, None
    except InvalidTransitionError as e:
        print(f"ERROR: {e}")
        return 1, None
    except OSError as e:
        print(f"ERROR: {e}")
        return 2, None

    logger.info(f"[LEDGER] {story_id}: {outcome}")
    return 0, updated


def cmd_complete(args, config: ProjectConfig) -> int:
    """Mark a story complete and record learnings."""
    story_id = args.story
    notes = getattr(args, "notes", None) or ""
    learnings = getattr(args, "learnings", None) or ""

    code, ledger = apply_transition(
        config,
        story_id,
        lambda led: mark_complete(led, story_id, notes=notes),
        outcome="complete",
        details=learnings or notes,
    )
    if code:
        return code

    completed, total = get_progress(ledger)
    print(f"Completed: {story_id}")
    print(f"Progress:  {completed}/{total}")
    print()
    print(f"Commit the changes for {story_id} before starting the next story.")

    nxt = select_next(ledger)
    if nxt:
        print(f"Next up: {nxt.id} - {nxt.title} (run 'storyloop next')")
    else:
        print("No pending stories left.")
    return 0


def cmd_block(args, config: ProjectConfig) -> int:
    """Mark a story blocked with a reason."""
    story_id = args.story
    reason = args.reason.strip() if args.reason else ""
    if not reason:
        print("ERROR: A reason is required to block a story")
        return 2

    code, _ = apply_transition(
        config,
        story_id,
        lambda led: mark_blocked(led, story_id, reason),
        outcome="blocked",
        details=f"Reason: {reason}",
    )
    if code:
        return code

    print(f"Blocked: {story_id}")
    print(f"  Reason: {reason}")
    print()
    print(f"Resolve the blocker, then: storyloop unblock {story_id}")
    return 0


def cmd_unblock(args, config: ProjectConfig) -> int:
    """Return a blocked story to pending."""
    story_id = args.story
    note = getattr(args, "message", None) or ""

    code, _ = apply_transition(
        config,
        story_id,
        lambda led: unblock(led, story_id),
        outcome="unblocked",
        details=note,
    )
    if code:
        return code

    print(f"Unblocked: {story_id} (pending)")
    return 0
