from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

"""MergeOutcome and MergeState for the workbook image merger.

State transitions (per merge call):
    idle → validating → backing_up → filtering → inserting → persisting → done
                                                          ↘ rolling_back → failed
"""

__all__ = [
    "MergeState",
    "MergeOutcome",
]


class MergeState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    BACKING_UP = "backing_up"
    FILTERING = "filtering"
    INSERTING = "inserting"
    PERSISTING = "persisting"
    DONE = "done"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeOutcome:
    """Result of one merge call. Never mutated after return."""
    success: bool
    images_inserted: int
    worksheet_name: str | None
    error: Exception | None = None
    images_admitted: int = 0
    images_failed: int = 0
    batches: int = 0
    backup_path: Path | None = None
    workbook_path: Path | None = None

    @property
    def partial(self) -> bool:
        """True when the merge succeeded but some admitted images were not inserted."""
        return self.success and self.images_inserted < self.images_admitted
