from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

"""Config dataclasses for the roster -> illustrated workbook pipeline.

Built by roster_qr.config.loader from the YAML file after schema validation.
"""

__all__ = [
    "BackupStrategy",
    "BackupConfig",
    "ThrottleConfig",
    "QrConfig",
    "PassConfig",
    "PipelineConfig",
    "MAX_IMAGE_BYTES",
]

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class BackupStrategy(Enum):
    """How the backup path is derived from the original workbook path.

    - FIXED: <stem><suffix><ext> (overwritten on each run)
    - TIMESTAMP: <stem><suffix>-YYYYMMDD-HHMMSS<ext> (one per run)
    """
    FIXED = "fixed"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class BackupConfig:
    strategy: BackupStrategy = BackupStrategy.FIXED
    suffix: str = "_backup"


@dataclass(frozen=True)
class ThrottleConfig:
    generation_every: int = 10  # pause after every N generated images
    generation_pause_sec: float = 0.2
    batch_size: int = 5  # placements per insertion batch
    batch_pause_sec: float = 0.1  # pause between insertion batches


@dataclass(frozen=True)
class QrConfig:
    box_size: int = 10
    border: int = 4


@dataclass(frozen=True)
class PassConfig:
    """One worksheet to illustrate (e.g. primary roster, dependent roster)."""
    worksheet: str | int  # exact name or 1-based index
    image_dir: Path
    target_column: str = "G"
    width: int = 50
    height: int = 50
    preserve_aspect_ratio: bool = True
    anchor: str = "roster"  # roster | source_row


@dataclass(frozen=True)
class PipelineConfig:
    """Root configuration object for one pipeline run."""
    workbook: Path  # source roster workbook (never mutated)
    passes: list[PassConfig]
    output_workbook: Path | None = None  # default: <stem>_with_qrcode<ext>
    backup: BackupConfig = field(default_factory=BackupConfig)
    throttle: ThrottleConfig = field(default_factory=ThrottleConfig)
    qr: QrConfig = field(default_factory=QrConfig)
    max_image_bytes: int = MAX_IMAGE_BYTES
    error_log_dir: Path = Path("./logs")

    @property
    def illustrated_workbook(self) -> Path:
        if self.output_workbook is not None:
            return self.output_workbook
        return self.workbook.with_name(f"{self.workbook.stem}_with_qrcode{self.workbook.suffix}")
