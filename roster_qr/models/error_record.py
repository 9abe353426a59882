from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One line of the per-run error log (JSON Lines, fixed key set).

``row`` is the worksheet row the problem belongs to, or -1 when it concerns a
whole worksheet or workbook (missing sheet, failed merge, verification).
"""

__all__ = [
    "ERROR_TYPES",
    "ErrorRecord",
]

ERROR_TYPES = frozenset(
    {
        "ROW_REJECTED",
        "ENCODING_FAILURE",
        "INADMISSIBLE_IMAGE",
        "INSERTION_FAILURE",
        "MERGE_FAILURE",
        "VERIFICATION_WARNING",
        "PASS_FAILURE",
    }
)


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str  # UTC, ISO8601 with 'Z'
    file: str  # workbook file name
    sheet: str
    row: int
    error_type: str  # one of ERROR_TYPES
    message: str

    @classmethod
    def create(cls, file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Stamp a record with the current UTC time.

        Raises:
            ValueError: ``error_type`` is not a known classification
        """
        if error_type not in ERROR_TYPES:
            raise ValueError(f"unknown error type: {error_type!r}")
        stamp = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return cls(stamp, file, sheet, row, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
