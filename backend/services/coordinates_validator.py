from collections.abc import Mapping, Sequence, Sized
from typing import Any, Optional

from errors import ValidationError

COORDINATE_SIDES = ("origin", "destination")
BAD_COORDINATES_MESSAGE = (
    "Parameters 'origin' and 'destination' must be an array of exactly two "
    "strings not blank"
)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, Sized) and len(value) == 0)


def get_coordinates(payload: Any, side: str) -> Any:
    if isinstance(payload, Mapping):
        return payload.get(side)
    return getattr(payload, side, None)


def _is_coordinate_pair(value: Any) -> bool:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return False
    return len(value) == 2 and not any(_is_blank(item) for item in value)


def validate_order_coordinates(payload: Optional[Any]) -> Any:
    """Reject malformed origin/destination input before any lookup.

    ``payload`` may be a mapping or any object exposing ``origin`` and
    ``destination`` attributes. It is returned unchanged when valid.
    """
    if payload is None:
        raise ValidationError("Body is null", code="null_body")

    sides = [get_coordinates(payload, side) for side in COORDINATE_SIDES]
    if any(_is_empty(value) for value in sides):
        raise ValidationError(
            "Parameters 'origin' and 'destination' must not be empty",
            code="empty_coordinates",
        )
    if not all(_is_coordinate_pair(value) for value in sides):
        raise ValidationError(BAD_COORDINATES_MESSAGE, code="bad_coordinates")
    return payload
