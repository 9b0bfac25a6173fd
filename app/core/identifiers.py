# app/core/identifiers.py
import itertools
import os
import re
import time

from app.core.errors import InvalidIdentifierError, ValidationError

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

# Per-process parts of an object id: 5 random bytes + a counter seeded randomly
_PROCESS_UNIQUE = os.urandom(5)
_counter = itertools.count(int.from_bytes(os.urandom(3), "big"))


def new_object_id() -> str:
    """
    Generate a 24-hex object id: 4-byte seconds timestamp, 5 process-unique
    bytes, 3-byte counter. Ids created by one process sort in creation order.
    """
    ts = int(time.time()).to_bytes(4, "big")
    count = (next(_counter) & 0xFFFFFF).to_bytes(3, "big")
    return (ts + _PROCESS_UNIQUE + count).hex()


def is_object_id(value: str | None) -> bool:
    return bool(value) and OBJECT_ID_RE.match(value) is not None


def ensure_object_id(value: str | None, field: str = "product_id") -> str:
    """
    Validate an object id before it reaches the store or the catalog.

    Returns the id lower-cased so lookups are case-insensitive.

    Raises:
        InvalidIdentifierError: if the value is not 24 hex characters.
    """
    value = (value or "").strip()
    if not is_object_id(value):
        raise InvalidIdentifierError(
            f"invalid {field} format: expected 24 hex characters",
            field=field,
            value=value or None,
        )
    return value.lower()


def require_text(value: str | None, field: str) -> str:
    """Opaque ids (teacher_id, student_id) only need to be non-empty."""
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} cannot be empty", field=field)
    return value
