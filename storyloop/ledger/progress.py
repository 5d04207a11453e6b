"""
Append-only progress log (progress.txt).

One block per story attempt:

    ## 2026-10-19T14:02:11 - US-003
    Outcome: complete
      <free text learnings, indented two spaces>
    ---

Detail lines are indented so text like "---" or "## ..." inside them
cannot end the block or start a new one.
The log is an audit trail for humans. Nothing here feeds back into
story selection; parse_progress is a best-effort reader for display.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

HEADER_RE = re.compile(r'^##\s+(\S+)\s+-\s+(.+?)\s*$')
OUTCOME_RE = re.compile(r'^Outcome:\s*(.+?)\s*$')
SEPARATOR = "---"
DETAIL_INDENT = "  "


@dataclass
class ProgressEntry:
    timestamp: str
    story_id: str
    outcome: str
    details: str


def format_entry(story_id: str, outcome: str, details: str = "", timestamp: str | None = None) -> str:
    """Format a single progress block."""
    timestamp = timestamp or datetime.now().isoformat(timespec="seconds")
    lines = [f"## {timestamp} - {story_id}", f"Outcome: {outcome}"]
    if details.strip():
        lines.extend(DETAIL_INDENT + line if line else line for line in details.strip().splitlines())
    lines.append(SEPARATOR)
    lines.append("")
    return "\n".join(lines)


def check_writable(path: Path) -> None:
    """Open the log for append and close it again.

    Raises:
        OSError: If the log cannot be created or appended to
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8"):
        pass


def append_entry(path: Path, story_id: str, outcome: str, details: str = "") -> ProgressEntry:
    """Append one block to the progress log. Existing content is never touched."""
    timestamp = datetime.now().isoformat(timespec="seconds")
    path.parent.mkdir(parents=True, exist_ok=True)

    prefix = ""
    if path.exists() and path.stat().st_size > 0:
        with open(path, "rb") as f:
            f.seek(-1, 2)
            if f.read(1) != b"\n":
                prefix = "\n"

    with open(path, "a", encoding="utf-8") as f:
        f.write(prefix + format_entry(story_id, outcome, details, timestamp))

    return ProgressEntry(
        timestamp=timestamp,
        story_id=story_id,
        outcome=outcome,
        details=details.strip(),
    )


def parse_progress(path: Path) -> list[ProgressEntry]:
    """Read the progress log into entries.

    Text outside a recognizable header (hand-written notes, old formats)
    is skipped. Returns [] if the file does not exist.
    """
    if not path.exists():
        return []

    entries = []
    current = None
    body: list[str] = []

    def flush():
        if current:
            current.details = "\n".join(body).strip()
            entries.append(current)

    for line in path.read_text(encoding="utf-8").splitlines():
        header = HEADER_RE.match(line)
        if header:
            flush()
            current = ProgressEntry(
                timestamp=header.group(1),
                story_id=header.group(2),
                outcome="",
                details="",
            )
            body = []
            continue

        if current is None:
            continue

        if line.rstrip() == SEPARATOR:
            flush()
            current = None
            body = []
            continue

        outcome = OUTCOME_RE.match(line)
        if outcome and not current.outcome and not body:
            current.outcome = outcome.group(1)
        else:
            body.append(line[len(DETAIL_INDENT):] if line.startswith(DETAIL_INDENT) else line)

    flush()
    return entries


def entries_for(path: Path, story_id: str) -> list[ProgressEntry]:
    """All progress entries recorded for one story, oldest first."""
    return [e for e in parse_progress(path) if e.story_id == story_id]
