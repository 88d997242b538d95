"""Native JSON export for pubsync works and reports.

Exports Work models as JSON using Pydantic serialization and orjson.
"""

from typing import Any

import orjson
from pydantic import BaseModel

from pubsync.models import Work


def works_to_json(works: list[Work]) -> list[dict[str, Any]]:
    """Export works as JSON-serializable dictionaries.

    Args:
        works: List of Work objects.

    Returns:
        List of JSON-serializable dictionaries.
    """
    return [w.model_dump(mode="json") for w in works]


def dumps(data: list[dict[str, Any]] | BaseModel) -> str:
    """Serialize export data or a model as indented JSON text."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()
