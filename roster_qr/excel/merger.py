from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Sequence
from pathlib import Path

import openpyxl
from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import (
    InadmissibleImage,
    MergeFailure,
    RosterQrError,
    WorkbookNotFound,
    WorksheetNotFound,
)
from ..images.admission import ensure_admissible
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import get_logger
from ..models.config_models import MAX_IMAGE_BYTES, BackupConfig
from ..models.merge_outcome import MergeOutcome, MergeState
from ..models.placement import ImagePlacement
from ..services.progress import ProgressTracker
from .backup import create_backup, restore_backup
from .reader import WorksheetSelector, resolve_sheet_name
from .strategies import DEFAULT_STRATEGIES, RegistrationStrategy, attach_image, register_image

"""Workbook image merger.

Protocol of one merge call (strictly ordered):

1. validate   the target workbook must exist
2. back up    byte copy next to the target (failure only warns)
3. filter     drop inadmissible images; nothing left -> success, 0 inserted
4. open       load with openpyxl and resolve the worksheet
5. insert     batches of ``batch_size``; per image the registration strategies
              are tried in order; one bad image never aborts the batch; a short
              pause separates batches
6. persist    save over the target path
7. roll back  any error outside the per-image boundary restores the backup

The backup is kept in both outcomes.
"""

__all__ = [
    "WorkbookImageMerger",
    "chunked",
    "repair_workbook",
]


def chunked(items: Sequence[ImagePlacement], size: int) -> Iterator[Sequence[ImagePlacement]]:
    if size < 1:
        raise ValueError(f"batch size must be >= 1: {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class WorkbookImageMerger:
    """Inserts placements into one worksheet of an existing workbook file."""

    def __init__(
        self,
        strategies: Sequence[RegistrationStrategy] | None = None,
        *,
        batch_size: int = 5,
        batch_pause: float = 0.1,
        backup: BackupConfig | None = None,
        max_bytes: int = MAX_IMAGE_BYTES,
        logger: logging.Logger | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch size must be >= 1: {batch_size}")
        self.strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES
        if not self.strategies:
            raise ValueError("at least one registration strategy is required")
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self.backup = backup or BackupConfig()
        self.max_bytes = max_bytes
        self.logger = logger or get_logger()
        self.error_log = error_log
        self.state = MergeState.IDLE

    def _enter(self, state: MergeState) -> None:
        self.logger.debug(f"merge state: {self.state.value} -> {state.value}")
        self.state = state

    def _record(self, workbook: Path, sheet: str | None, row: int, error_type: str, message: str) -> None:
        if self.error_log is not None:
            self.error_log.add(workbook.name, sheet or "<WORKBOOK>", row, error_type, message)

    def _resolve_worksheet(self, wb: Workbook, worksheet: WorksheetSelector | None) -> Worksheet:
        name = resolve_sheet_name(wb.sheetnames, worksheet)
        ws = wb[name]
        if not isinstance(ws, Worksheet):
            raise WorksheetNotFound(f"'{name}' is not a worksheet")
        return ws

    def _admit(
        self, placements: Sequence[ImagePlacement], workbook: Path, sheet: str | None
    ) -> list[ImagePlacement]:
        admitted: list[ImagePlacement] = []
        for placement in placements:
            try:
                ensure_admissible(placement.image_path, max_bytes=self.max_bytes)
            except (InadmissibleImage, OSError) as e:
                self.logger.warning(f"image skipped: {e}")
                self._record(workbook, sheet, placement.target_cell.row, "INADMISSIBLE_IMAGE", str(e))
                continue
            admitted.append(placement)
        return admitted

    def _insert_one(self, ws: Worksheet, placement: ImagePlacement, workbook: Path) -> bool:
        cell = str(placement.target_cell)
        try:
            image, strategy = register_image(placement.image_path, self.strategies, self.logger)
            attach_image(ws, image, placement)
        except Exception as e:
            self.logger.error(f"image insertion failed: {placement.image_path.name} -> {cell}: {e}")
            self._record(workbook, ws.title, placement.target_cell.row, "INSERTION_FAILURE", str(e))
            return False
        self.logger.debug(f"image inserted ({strategy}): {placement.image_path.name} -> {cell}")
        return True

    def _rollback(self, backup: Path | None, target: Path) -> None:
        if backup is None:
            self.logger.error(f"no backup available, {target.name} may be left modified")
            return
        try:
            restore_backup(backup, target)
            self.logger.warning(f"workbook restored from backup: {backup.name}")
        except Exception as e:
            self.logger.error(f"backup restoration failed ({backup} -> {target}): {e}")

    def merge(
        self,
        workbook_path: Path,
        placements: Sequence[ImagePlacement],
        worksheet: WorksheetSelector | None = None,
    ) -> MergeOutcome:
        """Insert ``placements`` into ``worksheet`` (default: first sheet) of ``workbook_path``."""
        path = Path(workbook_path)
        requested = worksheet if isinstance(worksheet, str) else None
        self.state = MergeState.IDLE

        self._enter(MergeState.VALIDATING)
        if not path.is_file():
            error = WorkbookNotFound(f"workbook not found: {path}")
            self.logger.error(str(error))
            self._enter(MergeState.FAILED)
            return MergeOutcome(
                success=False,
                images_inserted=0,
                worksheet_name=requested,
                error=error,
                workbook_path=path,
            )

        self._enter(MergeState.BACKING_UP)
        backup: Path | None = None
        try:
            backup = create_backup(path, self.backup.strategy, self.backup.suffix)
            self.logger.info(f"backup created: {backup.name}")
        except OSError as e:
            self.logger.warning(f"backup could not be created, continuing without one: {e}")

        self._enter(MergeState.FILTERING)
        admitted = self._admit(placements, path, requested)
        if not admitted:
            self.logger.warning(f"no admissible images to insert into {path.name}")
            self._enter(MergeState.DONE)
            return MergeOutcome(
                success=True,
                images_inserted=0,
                worksheet_name=requested,
                backup_path=backup,
                workbook_path=path,
            )
        self.logger.info(f"inserting {len(admitted)}/{len(placements)} images into {path.name}")

        sheet_name = requested
        inserted = 0
        failed = 0
        batches = 0
        try:
            wb = openpyxl.load_workbook(path)
            ws = self._resolve_worksheet(wb, worksheet)
            sheet_name = ws.title

            self._enter(MergeState.INSERTING)
            with ProgressTracker(len(admitted), description=f"Insert {sheet_name}") as progress:
                for batch in chunked(admitted, self.batch_size):
                    if batches and self.batch_pause > 0:
                        time.sleep(self.batch_pause)
                    batches += 1
                    for placement in batch:
                        ok = self._insert_one(ws, placement, path)
                        if ok:
                            inserted += 1
                        else:
                            failed += 1
                        progress.advance(placement.image_path.stem, ok=ok)
                    self.logger.debug(f"batch {batches}: {inserted} inserted, {failed} failed so far")

            self._enter(MergeState.PERSISTING)
            wb.save(path)
        except Exception as e:
            self._enter(MergeState.ROLLING_BACK)
            if isinstance(e, RosterQrError):
                error: Exception = e
            else:
                error = MergeFailure(f"merge into {path.name} failed: {e}")
                error.__cause__ = e
            self.logger.error(str(error))
            self._record(path, sheet_name, -1, "MERGE_FAILURE", str(error))
            self._rollback(backup, path)
            self._enter(MergeState.FAILED)
            return MergeOutcome(
                success=False,
                images_inserted=0,
                worksheet_name=sheet_name,
                error=error,
                images_admitted=len(admitted),
                images_failed=failed,
                batches=batches,
                backup_path=backup,
                workbook_path=path,
            )

        self._enter(MergeState.DONE)
        self.logger.info(f"images inserted: {inserted}/{len(admitted)} into {path.name} [{sheet_name}]")
        return MergeOutcome(
            success=True,
            images_inserted=inserted,
            worksheet_name=sheet_name,
            images_admitted=len(admitted),
            images_failed=failed,
            batches=batches,
            backup_path=backup,
            workbook_path=path,
        )


def repair_workbook(workbook_path: Path, logger: logging.Logger | None = None) -> Path | None:
    """Round-trip a workbook through openpyxl into ``<stem>_repaired<ext>``.

    Re-saving fixes minor structural damage. Returns None (logged) on failure.
    """
    log = logger or get_logger()
    path = Path(workbook_path)
    repaired = path.with_name(f"{path.stem}_repaired{path.suffix}")
    try:
        wb = openpyxl.load_workbook(path)
        wb.save(repaired)
    except Exception as e:
        log.error(f"workbook repair failed: {path.name}: {e}")
        return None
    log.info(f"workbook repaired: {repaired.name}")
    return repaired
