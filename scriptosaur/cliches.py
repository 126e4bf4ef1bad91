"""Parsing of cliché detection responses."""

import json
from typing import Iterable, List

from .errors import ClicheFormatError
from .models.state import ClicheItem
from .utils.text import strip_code_fences

REQUIRED_FIELDS = {
    "id": int,
    "text": str,
    "type": str,
    "severity": int,
    "suggestion": str,
}


def _check_item(idx: int, item) -> ClicheItem:
    if not isinstance(item, dict):
        raise ClicheFormatError(f"Item #{idx} is not an object")
    for name, expected in REQUIRED_FIELDS.items():
        if name not in item:
            raise ClicheFormatError(f"Item #{idx} has no '{name}' field")
        value = item[name]
        # bool is a subclass of int, floats such as 7.0 are rejected too
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ClicheFormatError(
                f"Item #{idx} field '{name}' must be {expected.__name__}, got {type(value).__name__}"
            )
    if not 1 <= item["severity"] <= 10:
        raise ClicheFormatError(f"Item #{idx} severity {item['severity']} is outside 1-10")
    return ClicheItem.create(
        id=item["id"],
        text=item["text"],
        type=item["type"],
        severity=item["severity"],
        suggestion=item["suggestion"],
    )


def parse_cliches(raw: str) -> List[ClicheItem]:
    """Validate a detection payload and build the cliché batch.

    The whole batch is rejected on the first malformed item.
    """
    cleaned = strip_code_fences(raw or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClicheFormatError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ClicheFormatError(f"Expected a JSON array, got {type(data).__name__}")

    items = [_check_item(idx, item) for idx, item in enumerate(data, 1)]
    ids = [item.id for item in items]
    if len(ids) != len(set(ids)):
        raise ClicheFormatError("Cliché ids are not unique")
    return items


def build_fix_instructions(items: Iterable[ClicheItem]) -> str:
    return "\n".join(
        f"ID {c.id}: {c.text} -> Исправить ({c.suggestion})" for c in items
    )
