"""
Data models for the story ledger.

The ledger file (prd.json) is written with camelCase keys so it stays
readable by the agent prompts that produce it. Python attributes are
snake_case; to_dict/from_dict do the mapping.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from storyloop.lib.validate import ValidationError


class StoryStatus(Enum):
    """Lifecycle of a single story."""

    PENDING = "pending"
    COMPLETE = "complete"
    BLOCKED = "blocked"


# Legacy `passes` values written by older ledgers
_LEGACY_PASSES = {
    True: StoryStatus.COMPLETE,
    False: StoryStatus.PENDING,
    "partial": StoryStatus.PENDING,
    "blocked": StoryStatus.BLOCKED,
}

_STORY_KEYS = (
    "id",
    "title",
    "description",
    "priority",
    "status",
    "passes",
    "acceptanceCriteria",
    "notes",
    "blockedReason",
    "completedAt",
    "completed_at",
)

_LEDGER_KEYS = (
    "project",
    "branchName",
    "description",
    "techContext",
    "assumptions",
    "created_at",
    "updated_at",
    "userStories",
)


def parse_status(data: dict) -> StoryStatus:
    """Resolve a story's status from `status`, falling back to legacy `passes`.

    Unknown `passes` strings are treated as pending so the story is
    picked up again rather than silently dropped.
    """
    status = data.get("status")
    if status is not None:
        return StoryStatus(status)

    passes = data.get("passes", False)
    if isinstance(passes, str):
        passes = passes.strip().lower()
    return _LEGACY_PASSES.get(passes, StoryStatus.PENDING)


@dataclass
class Story:
    """A single unit of work in the ledger."""
    id: str                                    # US-001
    title: str
    priority: int
    description: str = ""
    status: StoryStatus = StoryStatus.PENDING
    acceptance_criteria: list[str] = field(default_factory=list)
    notes: str = ""
    blocked_reason: Optional[str] = None       # Set while status is blocked
    completed_at: Optional[str] = None         # ISO timestamp
    extra: dict = field(default_factory=dict)  # Unknown story keys, kept on save

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status.value,
            "acceptanceCriteria": list(self.acceptance_criteria),
            "notes": self.notes,
        })
        if self.blocked_reason is not None:
            data["blockedReason"] = self.blocked_reason
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Story":
        return cls(
            id=data["id"],
            title=data["title"],
            priority=data["priority"],
            description=data.get("description", ""),
            status=parse_status(data),
            acceptance_criteria=list(data.get("acceptanceCriteria", [])),
            notes=data.get("notes", ""),
            blocked_reason=data.get("blockedReason"),
            completed_at=data.get("completedAt", data.get("completed_at")),
            extra={k: v for k, v in data.items() if k not in _STORY_KEYS},
        )


@dataclass
class Ledger:
    """All stories for one feature, plus free-text feature metadata."""
    project: str
    stories: list[Story] = field(default_factory=list)
    branch_name: str = ""
    description: str = ""
    tech_context: str = ""
    assumptions: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())
    extra: dict = field(default_factory=dict)  # Unknown top-level keys, kept on save

    def __post_init__(self):
        seen = set()
        for story in self.stories:
            if story.id in seen:
                raise ValidationError("ledger", f"Duplicate story id '{story.id}'", "userStories")
            seen.add(story.id)

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "project": self.project,
            "branchName": self.branch_name,
            "description": self.description,
            "techContext": self.tech_context,
            "assumptions": list(self.assumptions),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "userStories": [s.to_dict() for s in self.stories],
        })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Ledger":
        now = datetime.now().isoformat()
        return cls(
            project=data["project"],
            stories=[Story.from_dict(s) for s in data.get("userStories", [])],
            branch_name=data.get("branchName", ""),
            description=data.get("description", ""),
            tech_context=data.get("techContext", ""),
            assumptions=list(data.get("assumptions", [])),
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
            extra={k: v for k, v in data.items() if k not in _LEDGER_KEYS},
        )
