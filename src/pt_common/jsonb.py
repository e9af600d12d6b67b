"""JSONB column helpers for raw text() SQL.

asyncpg hands JSONB back as a str unless a type codec is registered, and
expects a str on the way in.
"""

import json
from typing import Any


def dump_jsonb(value: dict[str, Any] | None) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str)


def load_jsonb(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)
