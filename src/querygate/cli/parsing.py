"""Input parsing utilities for CLI commands."""

import json
from pathlib import Path
from typing import Any

from querygate.core.types import UserContext


def read_json_file(path: str) -> dict[str, Any]:
    """Read single JSON object from file.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON object

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
        ValueError: If the file holds something other than an object
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with file_path.open("r") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def parse_user_id(value: str) -> int | str:
    """Interpret a user id option: digits become an int, anything else stays text.

    Examples:
        "123" -> 123
        "abc-123" -> "abc-123"
    """
    stripped = value.strip()
    if stripped.isdigit():
        return int(stripped)
    return stripped


def build_user_context(
    user_id: str | None,
    role: str,
    permissions: list[str] | None = None,
) -> UserContext | None:
    """Build a UserContext from CLI options, or None when no user id is given."""
    if user_id is None:
        return None
    return UserContext(
        user_id=parse_user_id(user_id),
        role=role,
        permissions=permissions or [],
    )
