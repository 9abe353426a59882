from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

"""Per-pass and per-run result models.

Counts are always reported as (done / total) pairs so that partial success is
distinguishable from total failure.
"""

__all__ = [
    "PassResult",
    "PipelineResult",
]


@dataclass(frozen=True)
class PassResult:
    """Result of illustrating one worksheet."""
    worksheet: str
    success: bool
    total_rows: int = 0  # valid roster rows
    rejected_rows: int = 0  # rows without a valid identifier
    generated: int = 0  # images generated / total_rows
    planned: int = 0  # admissible placements
    inserted: int = 0  # images inserted / planned
    verified: bool = False
    error: str | None = None

    @property
    def complete(self) -> bool:
        return (
            self.success
            and self.generated == self.total_rows
            and self.inserted == self.planned
        )


@dataclass(frozen=True)
class PipelineResult:
    passes: list[PassResult]
    success: bool
    output_path: Path | None
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    error: str | None = None
    error_log_path: Path | None = None
    skipped_passes: list[str] = field(default_factory=list)  # not attempted after a failure

    @property
    def total_rows(self) -> int:
        return sum(p.total_rows for p in self.passes)

    @property
    def generated(self) -> int:
        return sum(p.generated for p in self.passes)

    @property
    def planned(self) -> int:
        return sum(p.planned for p in self.passes)

    @property
    def inserted(self) -> int:
        return sum(p.inserted for p in self.passes)

    @property
    def complete(self) -> bool:
        return self.success and not self.skipped_passes and all(p.complete for p in self.passes)
