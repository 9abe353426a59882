from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""RosterRow model and the explicit parse result of a roster worksheet.

Column layout (0-based offsets after the header row):
    0 identifier / 1 code / 2 account / 3 name / 4 dependent_info / 5 team_number
"""

__all__ = [
    "RosterRow",
    "RowRejection",
    "RosterSheet",
]


@dataclass(frozen=True)
class RosterRow:
    """One roster entrant. ``identifier`` is always a non-empty string."""
    identifier: str
    code: Any = None
    account: Any = None
    name: Any = None
    dependent_info: Any = None
    team_number: Any = None
    source_row: int = -1  # worksheet row (1-based) the entry was read from; -1 if unknown


@dataclass(frozen=True)
class RowRejection:
    """Structured parse error for a roster row without a valid identifier."""
    source_row: int
    reason: str
    raw_identifier: Any = None


@dataclass(frozen=True)
class RosterSheet:
    sheet_name: str
    rows: list[RosterRow]
    rejected: list[RowRejection] = field(default_factory=list)
    total_rows: int = 0  # data rows read (header excluded), valid + rejected
