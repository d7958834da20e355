"""Parsing of client-supplied document identifiers."""

import uuid
from typing import Any, Optional

from localmarket.exceptions import ValidationError


def parse_id(value: Any, field: str = "id") -> uuid.UUID:
    """
    Converts a path or body value into a document identifier.

    Raises:
        ValidationError: the value is not a UUID. Callers parse before any
            datastore access, so a malformed identifier is always a 400.
    """
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(message=f"'{value}' is not a valid {field}", field=field)


def parse_optional_id(value: Optional[Any], field: str = "id") -> Optional[uuid.UUID]:
    if value in (None, ""):
        return None
    return parse_id(value, field)
