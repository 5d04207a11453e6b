"""Tests for storyloop.ledger.models module."""

import pytest

from storyloop.lib.validate import ValidationError
from storyloop.ledger.models import Ledger, Story, StoryStatus, parse_status


class TestParseStatus:
    """Status resolution, including legacy `passes` values."""

    def test_explicit_status_wins(self):
        assert parse_status({"status": "blocked", "passes": True}) is StoryStatus.BLOCKED

    def test_passes_true_is_complete(self):
        assert parse_status({"passes": True}) is StoryStatus.COMPLETE

    def test_passes_false_is_pending(self):
        assert parse_status({"passes": False}) is StoryStatus.PENDING

    def test_missing_is_pending(self):
        assert parse_status({}) is StoryStatus.PENDING

    def test_partial_is_pending(self):
        assert parse_status({"passes": "partial"}) is StoryStatus.PENDING
        assert parse_status({"passes": " Partial "}) is StoryStatus.PENDING

    def test_blocked_string(self):
        assert parse_status({"passes": "blocked"}) is StoryStatus.BLOCKED

    def test_unknown_string_is_pending(self):
        assert parse_status({"passes": "maybe"}) is StoryStatus.PENDING


class TestStory:
    """Story serialization."""

    def test_from_dict_legacy(self):
        story = Story.from_dict({
            "id": "US-001",
            "title": "Login",
            "description": "As a user...",
            "acceptanceCriteria": ["Form renders", "Typecheck passes"],
            "priority": 1,
            "passes": True,
            "completed_at": "2026-01-01T00:00:00",
        })
        assert story.status is StoryStatus.COMPLETE
        assert story.acceptance_criteria == ["Form renders", "Typecheck passes"]
        assert story.completed_at == "2026-01-01T00:00:00"

    def test_to_dict_uses_status_not_passes(self):
        data = Story(id="US-002", title="Logout", priority=2).to_dict()
        assert data["status"] == "pending"
        assert "passes" not in data
        assert "blockedReason" not in data
        assert data["acceptanceCriteria"] == []

    def test_unknown_keys_kept(self):
        story = Story.from_dict({
            "id": "US-004",
            "title": "Wire checkout",
            "priority": 3,
            "passes": False,
            "dependsOn": ["US-001"],
            "files": ["app/checkout.tsx"],
        })
        assert story.extra == {"dependsOn": ["US-001"], "files": ["app/checkout.tsx"]}

        data = story.to_dict()
        assert data["dependsOn"] == ["US-001"]
        assert data["files"] == ["app/checkout.tsx"]
        assert "passes" not in data

    def test_blocked_reason_serialized(self):
        story = Story(id="US-003", title="x", priority=1,
                      status=StoryStatus.BLOCKED, blocked_reason="no creds")
        assert story.to_dict()["blockedReason"] == "no creds"


class TestLedger:
    """Ledger construction and metadata handling."""

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Ledger(project="demo", stories=[
                Story(id="a", title="one", priority=1),
                Story(id="a", title="two", priority=2),
            ])
        assert "Duplicate story id 'a'" in str(exc_info.value)

    def test_metadata_round_trip(self):
        data = {
            "project": "Checkout",
            "branchName": "feature/checkout",
            "description": "Cart checkout flow",
            "techContext": "Next.js + Postgres",
            "assumptions": ["Stripe is available"],
            "source_spec": "specs/checkout.md",
            "userStories": [{"id": "US-001", "title": "Cart", "priority": 1}],
        }
        ledger = Ledger.from_dict(data)
        assert ledger.branch_name == "feature/checkout"
        assert ledger.tech_context == "Next.js + Postgres"
        assert ledger.extra == {"source_spec": "specs/checkout.md"}

        out = ledger.to_dict()
        assert out["source_spec"] == "specs/checkout.md"
        assert out["assumptions"] == ["Stripe is available"]
        assert [s["id"] for s in out["userStories"]] == ["US-001"]

    def test_story_order_preserved(self):
        ledger = Ledger.from_dict({
            "project": "p",
            "userStories": [
                {"id": "c", "title": "c", "priority": 1},
                {"id": "a", "title": "a", "priority": 1},
                {"id": "b", "title": "b", "priority": 1},
            ],
        })
        assert [s.id for s in ledger.stories] == ["c", "a", "b"]
