import base64
import json
from dataclasses import dataclass
from typing import Any


class InvalidCursor(ValueError):
    pass


@dataclass(frozen=True)
class CursorPosition:
    """Last item of a page: its id plus the value of the key the page was sorted by."""

    id: str
    value: Any


def encode_cursor(doc_id: str, value: Any) -> str:
    raw = json.dumps({"id": doc_id, "v": value}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _is_sort_value(value: Any) -> bool:
    # bool is an int subclass but never a sort key
    if isinstance(value, bool):
        return False
    return value is None or isinstance(value, (str, int, float))


def decode_cursor(token: str) -> CursorPosition:
    padded = token + "=" * (-len(token) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        doc_id = payload["id"]
        value = payload.get("v")
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise InvalidCursor(f"Malformed cursor: {token!r}") from e
    if not isinstance(doc_id, str) or not _is_sort_value(value):
        raise InvalidCursor(f"Malformed cursor: {token!r}")
    return CursorPosition(id=doc_id, value=value)
