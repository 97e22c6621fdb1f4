from typing import Any, Tuple

from errors import ValidationError


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def page_window(page: Any, limit: Any) -> Tuple[int, int]:
    """Return the ``(offset, limit)`` window for a 1-based page."""
    if not _is_positive_int(page) or not _is_positive_int(limit):
        raise ValidationError(
            "Parameters 'page' and 'limit' must be integers greater than zero",
            code="bad_page_request",
        )
    return (page - 1) * limit, limit
