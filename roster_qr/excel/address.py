from __future__ import annotations

import re

from ..errors import InvalidAddress
from ..models.placement import CellAddress

"""Cell address codec: "G2" <-> CellAddress(column=7, row=2).

Columns use bijective base-26 (A=1 … Z=26, AA=27, …); there is no zero digit.
Malformed input is rejected, never coerced (no lowercase, whitespace or '$').
"""

__all__ = [
    "CellAddress",
    "InvalidAddress",
    "encode_address",
    "encode_column",
    "decode_address",
    "decode_column",
]

_ADDRESS_RE = re.compile(r"([A-Z]+)([0-9]+)")
_COLUMN_RE = re.compile(r"[A-Z]+")


def encode_column(column: int) -> str:
    if column < 1:
        raise InvalidAddress(f"column must be >= 1: {column}")
    letters: list[str] = []
    n = column
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def decode_column(letters: str) -> int:
    if not isinstance(letters, str) or _COLUMN_RE.fullmatch(letters) is None:
        raise InvalidAddress(f"invalid column letters: {letters!r}")
    col = 0
    for ch in letters:
        col = col * 26 + (ord(ch) - ord("A") + 1)
    return col


def encode_address(column: int, row: int) -> str:
    """Render (column, row) as e.g. 'G2'."""
    if row < 1:
        raise InvalidAddress(f"row must be >= 1: {row}")
    return f"{encode_column(column)}{row}"


def decode_address(address: str) -> CellAddress:
    """Parse 'G2' into CellAddress(7, 2).

    Raises:
        InvalidAddress: the string is not one-or-more uppercase letters followed
            by one-or-more digits, or the row is 0.
    """
    if not isinstance(address, str):
        raise InvalidAddress(f"invalid cell address: {address!r}")
    match = _ADDRESS_RE.fullmatch(address)
    if match is None:
        raise InvalidAddress(f"invalid cell address: {address!r}")
    row = int(match.group(2))
    if row < 1:
        raise InvalidAddress(f"invalid cell address (row 0): {address!r}")
    return CellAddress(column=decode_column(match.group(1)), row=row)
