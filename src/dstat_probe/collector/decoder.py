"""Decoder for dstat's human-readable numbers (``512k``, ``1.2M``)."""

from __future__ import annotations

import re

from ..errors import InvalidNumberFormat

UNIT_MULTIPLIERS: dict[str, int] = {
    "B": 1,
    "k": 1 << 10,
    "M": 1 << 20,
    "G": 1 << 30,
}

_DECIMAL = re.compile(r"\d+(?:\.\d*)?|\.\d+", re.ASCII)


def _parse_decimal(text: str, token: str) -> float:
    if not _DECIMAL.fullmatch(text):
        raise InvalidNumberFormat(f"Invalid number '{text}' in value '{token}'.")
    return float(text)


def parse_value_with_unit(token: str) -> float:
    """Convert *token* to a float in base units.

    A trailing digit means the token is a plain decimal. Otherwise the last
    character must be one of ``B``, ``k``, ``M`` or ``G`` and scales the
    numeric prefix by 1, 2**10, 2**20 or 2**30.

    Raises :class:`InvalidNumberFormat` for empty tokens, malformed numbers
    and unknown units.
    """
    if not token:
        raise InvalidNumberFormat("Value is empty.")

    last = token[-1]
    if "0" <= last <= "9":
        return _parse_decimal(token, token)

    multiplier = UNIT_MULTIPLIERS.get(last)
    if multiplier is None:
        raise InvalidNumberFormat(f"Unknown '{last}' unit of measure for value '{token}'.")

    return _parse_decimal(token[:-1], token) * multiplier
