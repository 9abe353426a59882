"""Domain models for the roster -> illustrated workbook pipeline."""

from .config_models import (
    BackupConfig,
    BackupStrategy,
    PassConfig,
    PipelineConfig,
    QrConfig,
    ThrottleConfig,
)
from .error_record import ErrorRecord
from .merge_outcome import MergeOutcome, MergeState
from .pipeline_result import PassResult, PipelineResult
from .placement import CellAddress, ImagePlacement
from .roster_row import RosterRow, RosterSheet, RowRejection

__all__ = [
    # Configuration models
    "BackupConfig",
    "BackupStrategy",
    "PassConfig",
    "PipelineConfig",
    "QrConfig",
    "ThrottleConfig",
    # Processing models
    "CellAddress",
    "ErrorRecord",
    "ImagePlacement",
    "MergeOutcome",
    "MergeState",
    "PassResult",
    "PipelineResult",
    "RosterRow",
    "RosterSheet",
    "RowRejection",
]
