from __future__ import annotations

from typing import Any

from ..core.constants import MAX_REASON_LENGTH
from ..core.exceptions import ValidationError


def require_reason(value: Any, *, max_length: int = MAX_REASON_LENGTH) -> str:
    reason = (value if isinstance(value, str) else "").strip()
    if not reason:
        raise ValidationError("Reason is required")
    if len(reason) > max_length:
        raise ValidationError(f"Reason must be {max_length} characters or less")
    return reason


def parse_entity_id(value: Any, message: str) -> int:
    """Ids are positive integers; anything else is malformed."""
    if isinstance(value, bool):
        raise ValidationError(message)
    if isinstance(value, int):
        entity_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        entity_id = int(value.strip())
    else:
        raise ValidationError(message)
    if entity_id <= 0:
        raise ValidationError(message)
    return entity_id
