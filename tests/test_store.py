"""Tests for storyloop.ledger.store and storyloop.lib.validate."""

import json

import pytest

from storyloop.lib.validate import ValidationError, validate, validate_ledger
from storyloop.ledger.models import Ledger, Story, StoryStatus
from storyloop.ledger.operations import mark_complete
from storyloop.ledger.store import load_ledger, save_ledger


def write_json(path, data):
    path.write_text(json.dumps(data, indent=2))
    return path


LEGACY_PRD = {
    "project": "Task board",
    "branchName": "ralph/task-board",
    "description": "Kanban board",
    "userStories": [
        {
            "id": "US-001",
            "title": "Create board table",
            "description": "Add the schema",
            "acceptanceCriteria": ["Migration runs"],
            "priority": 1,
            "passes": True,
            "notes": "",
        },
        {
            "id": "US-002",
            "title": "Render columns",
            "description": "",
            "acceptanceCriteria": [],
            "priority": 2,
            "passes": "partial",
            "notes": "half done",
        },
    ],
}


class TestLoadLedger:
    """Tests for load_ledger()."""

    def test_loads_legacy_prd(self, tmp_path):
        path = write_json(tmp_path / "prd.json", LEGACY_PRD)
        ledger = load_ledger(path)
        assert ledger.project == "Task board"
        assert ledger.stories[0].status is StoryStatus.COMPLETE
        assert ledger.stories[1].status is StoryStatus.PENDING

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            load_ledger(tmp_path / "missing.json")
        assert "File not found" in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "prd.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError) as exc_info:
            load_ledger(path)
        assert "Invalid JSON" in str(exc_info.value)

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "prd.json"
        path.write_bytes(b'{"project": "\xff", "userStories": []}')
        with pytest.raises(ValidationError) as exc_info:
            load_ledger(path)
        assert "Invalid JSON" in str(exc_info.value)

    def test_schema_violation_reports_path(self, tmp_path):
        data = {"project": "p", "userStories": [{"id": "a", "title": "t", "priority": "high"}]}
        path = write_json(tmp_path / "prd.json", data)
        with pytest.raises(ValidationError) as exc_info:
            load_ledger(path)
        assert exc_info.value.schema_name == "ledger"
        assert exc_info.value.path == "userStories.0.priority"

    def test_unknown_status_rejected(self, tmp_path):
        data = {"project": "p", "userStories": [{"id": "a", "title": "t", "priority": 1, "status": "done"}]}
        path = write_json(tmp_path / "prd.json", data)
        with pytest.raises(ValidationError):
            load_ledger(path)

    def test_duplicate_ids_rejected(self, tmp_path):
        data = {"project": "p", "userStories": [
            {"id": "a", "title": "t", "priority": 1},
            {"id": "a", "title": "u", "priority": 2},
        ]}
        path = write_json(tmp_path / "prd.json", data)
        with pytest.raises(ValidationError):
            load_ledger(path)


class TestSaveLedger:
    """Tests for save_ledger()."""

    def test_save_normalizes_legacy_fields(self, tmp_path):
        path = write_json(tmp_path / "prd.json", LEGACY_PRD)
        save_ledger(path, load_ledger(path))

        saved = json.loads(path.read_text())
        statuses = [s["status"] for s in saved["userStories"]]
        assert statuses == ["complete", "pending"]
        assert all("passes" not in s for s in saved["userStories"])

    def test_save_then_load_preserves_transition(self, tmp_path):
        path = tmp_path / "out" / "prd.json"
        ledger = Ledger(project="p", stories=[Story(id="a", title="t", priority=1)])
        save_ledger(path, mark_complete(ledger, "a"))

        reloaded = load_ledger(path)
        assert reloaded.stories[0].status is StoryStatus.COMPLETE
        assert reloaded.stories[0].completed_at is not None

    def test_unmodeled_story_fields_survive_transition(self, tmp_path):
        data = {"project": "p", "userStories": [{
            "id": "a", "title": "t", "priority": 1,
            "dependsOn": ["x"], "files": ["src/a.py", "src/b.py"],
        }]}
        path = write_json(tmp_path / "prd.json", data)

        save_ledger(path, mark_complete(load_ledger(path), "a"))

        story = json.loads(path.read_text())["userStories"][0]
        assert story["status"] == "complete"
        assert story["dependsOn"] == ["x"]
        assert story["files"] == ["src/a.py", "src/b.py"]

    def test_refuses_invalid_data(self, tmp_path):
        path = tmp_path / "prd.json"
        ledger = Ledger(project="p", stories=[Story(id="", title="t", priority=1)])
        with pytest.raises(ValidationError) as exc_info:
            save_ledger(path, ledger)
        assert "Refusing to write" in str(exc_info.value)
        assert not path.exists()


class TestValidate:
    """Tests for validate() and validate_ledger()."""

    def test_unknown_schema(self):
        with pytest.raises(ValidationError) as exc_info:
            validate({}, "no_such_schema")
        assert "Schema file not found" in str(exc_info.value)

    def test_missing_required_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate({"userStories": []}, "ledger")
        assert exc_info.value.path == "(root)"

    def test_reports_count_of_further_errors(self):
        data = {"project": "p", "userStories": [
            {"id": "a", "title": "t", "priority": "high"},
            {"id": "b", "priority": 2},
        ]}
        with pytest.raises(ValidationError) as exc_info:
            validate_ledger(data)
        assert exc_info.value.path == "userStories.0.priority"
        assert "(+1 more)" in str(exc_info.value)

    def test_duplicate_id_path(self):
        data = {"project": "p", "userStories": [
            {"id": "a", "title": "t", "priority": 1},
            {"id": "b", "title": "t", "priority": 1},
            {"id": "a", "title": "t", "priority": 1},
        ]}
        with pytest.raises(ValidationError) as exc_info:
            validate_ledger(data)
        assert exc_info.value.path == "userStories.2.id"
        assert "Duplicate story id 'a'" in str(exc_info.value)
