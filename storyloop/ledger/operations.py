"""
Ledger operations: next-story selection and status transitions.

Every operation takes a Ledger and returns a new Ledger. The input is
never mutated, so a failed call leaves the caller's ledger exactly as it
was. Persistence lives in storyloop.ledger.store.
"""

import copy
import logging
from datetime import datetime
from typing import Optional

from storyloop.ledger.fsm import StoryFSM, TRIGGER_FOR
from storyloop.ledger.models import Ledger, Story, StoryStatus

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for ledger operation failures."""
    pass


class NotFoundError(LedgerError):
    """Operation referenced a story id absent from the ledger."""

    def __init__(self, story_id: str):
        self.story_id = story_id
        super().__init__(f"Story '{story_id}' not found")


class InvalidTransitionError(LedgerError):
    """Operation attempted a disallowed status change."""

    def __init__(self, from_state: StoryStatus, to_state: StoryStatus, story_id: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.story_id = story_id
        super().__init__(
            f"Invalid transition: {from_state.value} -> {to_state.value}"
            + (f" (story: {story_id})" if story_id else "")
        )


def find_story(ledger: Ledger, story_id: str) -> Optional[Story]:
    """Return the story with this id, or None."""
    for story in ledger.stories:
        if story.id == story_id:
            return story
    return None


def select_next(ledger: Ledger) -> Optional[Story]:
    """Return the next story to work on, or None when nothing is pending.

    Lowest priority value wins. min() returns the first minimum it sees,
    so ties go to the story that appears first in the ledger.
    """
    pending = [s for s in ledger.stories if s.status is StoryStatus.PENDING]
    if not pending:
        return None
    return min(pending, key=lambda s: s.priority)


def _transition(ledger: Ledger, story_id: str, to_state: StoryStatus, **kwargs) -> tuple[Ledger, Story]:
    """Copy the ledger and drive one story to `to_state`.

    Raises:
        NotFoundError: If story_id is not in the ledger
        InvalidTransitionError: If the FSM has no edge to to_state
    """
    updated = copy.deepcopy(ledger)
    story = find_story(updated, story_id)
    if story is None:
        raise NotFoundError(story_id)

    current = story.status
    trigger = TRIGGER_FOR.get((current.value, to_state.value))
    fsm = StoryFSM(story)
    if trigger is None or not fsm.can(trigger):
        raise InvalidTransitionError(current, to_state, story_id)

    getattr(fsm, trigger)(**kwargs)
    updated.updated_at = datetime.now().isoformat()
    return updated, story


def mark_complete(ledger: Ledger, story_id: str, notes: str = "") -> Ledger:
    """Mark a pending story complete.

    Blocked stories must be unblocked first; completing twice fails.

    Raises:
        NotFoundError: If story_id is not in the ledger
        InvalidTransitionError: If the story is not pending
    """
    updated, story = _transition(ledger, story_id, StoryStatus.COMPLETE)
    story.completed_at = datetime.now().isoformat()
    if notes:
        story.notes = notes
    return updated


def mark_blocked(ledger: Ledger, story_id: str, reason: str) -> Ledger:
    """Mark a pending story blocked, keeping the reason on the story.

    Raises:
        NotFoundError: If story_id is not in the ledger
        InvalidTransitionError: If the story is not pending
    """
    updated, story = _transition(ledger, story_id, StoryStatus.BLOCKED, reason=reason)
    story.blocked_reason = reason
    logger.info(f"[LEDGER] {story_id} blocked: {reason}")
    return updated


def unblock(ledger: Ledger, story_id: str) -> Ledger:
    """Return a blocked story to pending so it can be selected again.

    Raises:
        NotFoundError: If story_id is not in the ledger
        InvalidTransitionError: If the story is not blocked
    """
    updated, story = _transition(ledger, story_id, StoryStatus.PENDING)
    story.blocked_reason = None
    return updated


def is_complete(ledger: Ledger) -> bool:
    """True when no story is pending or blocked. An empty ledger is complete."""
    return all(s.status is StoryStatus.COMPLETE for s in ledger.stories)


def get_progress(ledger: Ledger) -> tuple[int, int]:
    """Get progress as (completed, total)."""
    completed = sum(1 for s in ledger.stories if s.status is StoryStatus.COMPLETE)
    return completed, len(ledger.stories)


def count_by_status(ledger: Ledger) -> dict[StoryStatus, int]:
    """Count stories per status. Every status is present, zero if unused."""
    counts = {status: 0 for status in StoryStatus}
    for story in ledger.stories:
        counts[story.status] += 1
    return counts
