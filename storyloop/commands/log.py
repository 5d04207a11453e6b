"""
storyloop log - Show progress log entries.
"""

from storyloop.lib.config import ProjectConfig
from storyloop.ledger.progress import entries_for, parse_progress


def cmd_log(args, config: ProjectConfig) -> int:
    """Print progress entries, optionally for one story."""
    story_id = getattr(args, "story", None)

    if story_id:
        entries = entries_for(config.progress_path, story_id)
    else:
        entries = parse_progress(config.progress_path)

    if not entries:
        print("No progress entries" + (f" for {story_id}" if story_id else ""))
        return 0

    for entry in entries:
        print(f"{entry.timestamp}  {entry.story_id:<14} {entry.outcome}")
        for line in entry.details.splitlines():
            print(f"    {line}")
    return 0
