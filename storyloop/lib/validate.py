"""
Ledger validation for storyloop.

Every ledger read and every write passes through validate_ledger:
the JSON Schema in storyloop/schemas/ plus the checks a schema cannot
express (story ids unique within the ledger).
"""

import json
from pathlib import Path

import jsonschema

LEDGER_SCHEMA = "ledger"


class ValidationError(Exception):
    """Ledger data failed validation."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


_validators: dict[str, jsonschema.Draft7Validator] = {}


def _get_validator(schema_name: str) -> jsonschema.Draft7Validator:
    """Load schema by name once and keep a compiled validator."""
    if schema_name not in _validators:
        schema_path = Path(__file__).parent.parent / "schemas" / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        _validators[schema_name] = jsonschema.Draft7Validator(json.loads(schema_path.read_text()))
    return _validators[schema_name]


def _error_path(error: jsonschema.ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "(root)"


def _document_order(error: jsonschema.ValidationError) -> list:
    # Array indices sort numerically, keys alphabetically
    return [(0, p, "") if isinstance(p, int) else (1, 0, p) for p in error.absolute_path]


def validate(data: dict, schema_name: str) -> None:
    """
    Check data against a named schema.

    The first error (in path order) is raised; the message notes how
    many more were found so a hand-edited ledger can be fixed in one pass.

    Raises:
        ValidationError: If validation fails
    """
    errors = sorted(_get_validator(schema_name).iter_errors(data), key=_document_order)
    if not errors:
        return

    first = errors[0]
    message = first.message
    if len(errors) > 1:
        message += f" (+{len(errors) - 1} more)"
    raise ValidationError(schema_name, message, _error_path(first))


def check_unique_ids(stories: list[dict]) -> None:
    """Story ids must be unique within one ledger.

    Raises:
        ValidationError: On the first repeated id
    """
    seen = set()
    for index, story in enumerate(stories):
        story_id = story.get("id")
        if story_id in seen:
            raise ValidationError(LEDGER_SCHEMA, f"Duplicate story id '{story_id}'", f"userStories.{index}.id")
        seen.add(story_id)


def validate_ledger(data: dict) -> None:
    """Schema check plus unique ids.

    Raises:
        ValidationError: If the ledger is invalid
    """
    validate(data, LEDGER_SCHEMA)
    check_unique_ids(data["userStories"])


def read_ledger_file(filepath: Path) -> dict:
    """
    Read a ledger file and validate it.

    Undecodable bytes are reported like malformed JSON; both mean the
    file was not written by storyloop or an agent following the format.

    Raises:
        ValidationError: If file missing, unreadable as UTF-8 JSON, or invalid
    """
    if not filepath.exists():
        raise ValidationError(LEDGER_SCHEMA, f"File not found: {filepath}")

    try:
        data = json.loads(filepath.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(LEDGER_SCHEMA, f"Invalid JSON in {filepath}: {e}") from None

    validate_ledger(data)
    return data


def validate_before_write(data: dict, filepath: Path) -> None:
    """
    Validate a ledger before writing it. Invalid data never reaches disk.

    Raises:
        ValidationError: If data doesn't pass validate_ledger
    """
    try:
        validate_ledger(data)
    except ValidationError as e:
        raise ValidationError(
            LEDGER_SCHEMA,
            f"Refusing to write invalid ledger to {filepath}: {e}"
        ) from None
