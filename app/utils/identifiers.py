"""Parsing of row identifiers received from clients."""

from __future__ import annotations

from typing import Any, Final

# Largest value a signed 64-bit INTEGER column can hold.
MAX_IDENTIFIER: Final[int] = 2**63 - 1


def parse_identifier(value: Any) -> int | None:
    """Return ``value`` as a storable positive row id, or ``None`` if it is not one."""

    if isinstance(value, bool):
        return None
    try:
        identifier = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not 1 <= identifier <= MAX_IDENTIFIER:
        return None
    return identifier
