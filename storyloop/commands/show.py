"""
storyloop next / list / status / show - read-only ledger views.
"""

from storyloop.lib.config import ProjectConfig
from storyloop.lib.locking import is_locked
from storyloop.lib.validate import ValidationError
from storyloop.ledger.fsm import StoryFSM
from storyloop.ledger.models import Ledger, Story, StoryStatus
from storyloop.ledger.operations import (
    count_by_status,
    find_story,
    get_progress,
    is_complete,
    select_next,
)
from storyloop.ledger.store import load_ledger


def _load(config: ProjectConfig) -> Ledger | None:
    try:
        return load_ledger(config.ledger_path)
    except ValidationError as e:
        print(f"ERROR: {e}")
        return None


def print_story(story: Story) -> None:
    """Print full details of a story."""
    print(f"Story: {story.id}")
    print("=" * 60)
    print(f"Title:    {story.title}")
    print(f"Status:   {story.status.value}")
    print(f"Priority: {story.priority}")
    if story.completed_at:
        print(f"Completed: {story.completed_at}")
    if story.blocked_reason:
        print(f"Blocked:  {story.blocked_reason}")
    actions = StoryFSM(story).get_available_triggers()
    print(f"Actions:  {', '.join(sorted(actions)) if actions else 'none'}")
    print()

    if story.description:
        print("Description")
        print("-" * 40)
        print(story.description)
        print()

    if story.acceptance_criteria:
        print("Acceptance Criteria")
        print("-" * 40)
        mark = "x" if story.status is StoryStatus.COMPLETE else " "
        for ac in story.acceptance_criteria:
            print(f"  [{mark}] {ac}")
        print()

    if story.notes:
        print("Notes")
        print("-" * 40)
        print(story.notes)
        print()


def cmd_next(args, config: ProjectConfig) -> int:
    """Show the next story to work on."""
    ledger = _load(config)
    if ledger is None:
        return 2

    if is_complete(ledger):
        print("All stories complete.")
        return 0

    story = select_next(ledger)
    if story is None:
        blocked = count_by_status(ledger)[StoryStatus.BLOCKED]
        print(f"No pending stories. {blocked} blocked - see 'storyloop list'.")
        return 0

    print_story(story)
    print("-" * 60)
    print(f"When done: storyloop complete {story.id}")
    print(f"If stuck:  storyloop block {story.id} --reason \"...\"")
    return 0


def cmd_list(args, config: ProjectConfig) -> int:
    """List all stories in ledger order."""
    ledger = _load(config)
    if ledger is None:
        return 2

    if not ledger.stories:
        print("No stories in ledger")
        return 0

    print(f"Stories for: {ledger.project}")
    print()
    print(f"{'ID':<14} {'STATUS':<10} {'PRI':>4}  TITLE")
    print("-" * 70)

    for story in ledger.stories:
        title_preview = story.title[:40] + "..." if len(story.title) > 40 else story.title
        print(f"{story.id:<14} {story.status.value:<10} {story.priority:>4}  {title_preview}")

    print("-" * 70)
    print(f"{len(ledger.stories)} {'story' if len(ledger.stories) == 1 else 'stories'}")
    return 0


def cmd_status(args, config: ProjectConfig) -> int:
    """Show counts per status and overall progress."""
    ledger = _load(config)
    if ledger is None:
        return 2

    completed, total = get_progress(ledger)
    counts = count_by_status(ledger)

    print(f"Ledger: {ledger.project}")
    if ledger.branch_name:
        print(f"Branch: {ledger.branch_name}")
    print("=" * 60)
    print(f"  Pending:  {counts[StoryStatus.PENDING]}")
    print(f"  Blocked:  {counts[StoryStatus.BLOCKED]}")
    print(f"  Complete: {counts[StoryStatus.COMPLETE]}")
    print()
    print(f"Progress: {completed}/{total}")

    if is_complete(ledger):
        print("All stories complete.")
    else:
        story = select_next(ledger)
        if story:
            print(f"Next:     {story.id} - {story.title}")

    if is_locked(config.ledger_path):
        print("Another storyloop command is updating this ledger right now.")
    return 0


def cmd_show(args, config: ProjectConfig) -> int:
    """Show full details of a story."""
    ledger = _load(config)
    if ledger is None:
        return 2

    story = find_story(ledger, args.story)
    if story is None:
        print(f"ERROR: Story '{args.story}' not found")
        return 2

    print_story(story)
    return 0
