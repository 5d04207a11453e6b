"""Story state machine using transitions library.

States:
    pending  -> complete   (complete)
    pending  -> blocked    (block)
    blocked  -> pending    (unblock, an explicit operator decision)

`complete` is terminal. There are no auto transitions, so the only way
out of a state is one of the triggers above.

Usage:
    from storyloop.ledger.fsm import StoryFSM

    fsm = StoryFSM(story)
    fsm.block(reason="missing API key")
    fsm.unblock()
    fsm.complete()
"""

import logging
from transitions import Machine

from storyloop.ledger.models import Story, StoryStatus

logger = logging.getLogger(__name__)


STATES = [s.value for s in StoryStatus]

TRANSITIONS = [
    {"trigger": "complete", "source": "pending", "dest": "complete"},
    {"trigger": "block", "source": "pending", "dest": "blocked"},
    {"trigger": "unblock", "source": "blocked", "dest": "pending"},
]


def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        key = (t["source"], t["dest"])
        if key not in lookup:
            lookup[key] = t["trigger"]
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class StoryFSM:
    """State machine for one story.

    Wraps the transitions library with ledger-specific logic:
    - Starts from the story's current status
    - Writes the new status back onto the story after each transition
    - Logs all transitions
    """

    def __init__(self, story: Story):
        """Initialize FSM for a story.

        Args:
            story: Story whose status this machine drives (mutated in place)
        """
        self.story = story

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=story.status.value,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        """Callback after any state transition.

        Syncs the story status and logs the transition.
        """
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] {self.story.id}: {from_state} -> {to_state} ({trigger})")

        self.story.status = StoryStatus(to_state)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        """Get list of triggers available in current state."""
        return self.machine.get_triggers(self.state)
