"""Table sorting.

Tokens missing the sort key always go last, whichever the direction.
Present values sort numerically when they are numbers (or numeric
strings) and case-insensitively when they are text; in a column that
mixes both, numbers rank below text. Numeric strings compare as
numbers rather than lexicographically, so "900" sorts below "1200". The sort is stable, so rows with
equal keys keep their input order across re-sorts.
"""

import math
from datetime import datetime
from typing import Any, Iterable

from ..core.models import SortConfig, TokenRecord, to_float
from ..core.types import SortDirection

LIQUIDITY_PERCENT_KEY = "liquidityPercent"


def sort_value(token: TokenRecord, key: str) -> Any:
    """Raw value used for sorting; None when the token lacks the key."""
    value = token.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool) and to_float(value) is None:
        # NaN, infinite, or an integer too large for a float
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def _sort_key(value: Any) -> tuple[int, Any]:
    """Total-order key: (0, number) for numeric values, (1, text) otherwise."""
    if isinstance(value, datetime):
        return (0, value.timestamp())
    if isinstance(value, bool):
        return (0, float(value))
    if isinstance(value, (int, float)):
        return (0, float(value))
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return (1, value.casefold())
        if math.isnan(number) or math.isinf(number):
            return (1, value.casefold())
        return (0, number)
    return (1, str(value).casefold())


def sort_tokens(
    tokens: Iterable[TokenRecord],
    key: str,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[TokenRecord]:
    """
    Order tokens by a field.

    Args:
        tokens: Tokens to sort (not modified)
        key: API field name, or the synthetic "liquidityPercent"
        direction: "asc" or "desc"

    Returns:
        New list: present values in the requested order, then missing ones
    """
    direction = SortDirection(direction)
    present: list[tuple[tuple[int, Any], TokenRecord]] = []
    missing: list[TokenRecord] = []

    for token in tokens:
        value = sort_value(token, key)
        if value is None:
            missing.append(token)
        else:
            present.append((_sort_key(value), token))

    present.sort(key=lambda item: item[0], reverse=direction == SortDirection.DESC)
    return [token for _, token in present] + missing


def apply_sort(tokens: Iterable[TokenRecord], config: SortConfig) -> list[TokenRecord]:
    """Sort with a SortConfig."""
    return sort_tokens(tokens, config.key, config.direction)
