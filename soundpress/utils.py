"""
SoundPress v1 Utilities - Shared helper functions.

Responsibilities:
- Time formatting
- JSON serialization helpers

Invariants:
- All timestamps are ISO-8601 UTC
- JSON output is deterministic (sorted keys, fixed indent)
"""

import json
from datetime import datetime, timezone
from typing import Any, Mapping


def now_iso() -> str:
    """
    Return current time as ISO-8601 UTC.

    Returns:
        ISO-8601 formatted string, e.g., "2025-12-23T17:02:10+00:00"
    """
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def serialize_json(data: Mapping[str, Any]) -> str:
    """
    Serialize dictionary to JSON deterministically.

    Args:
        data: Dictionary to serialize.

    Returns:
        JSON string with sorted keys, 2-space indent, trailing newline.
    """
    return json.dumps(data, indent=2, sort_keys=True) + "\n"
