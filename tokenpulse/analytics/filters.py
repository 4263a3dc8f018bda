"""Token filtering.

Only active tokens take part in the table and the charts. Time-window
filtering happens in the aggregator, since the table keeps older tokens.
"""

from typing import Iterable

from ..core.models import TokenRecord


def filter_active(tokens: Iterable[TokenRecord]) -> list[TokenRecord]:
    """Keep tokens whose status is "active", preserving order."""
    return [token for token in tokens if token.is_active]


def with_creation_time(tokens: Iterable[TokenRecord]) -> list[TokenRecord]:
    """Keep tokens that carry a parseable createdAt."""
    return [token for token in tokens if token.created_at is not None]


def find_by_address(tokens: Iterable[TokenRecord], address: str) -> TokenRecord | None:
    """Find the token whose canonical address (mint, contract, id) matches."""
    for token in tokens:
        if token.address == address:
            return token
    return None
