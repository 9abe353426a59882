from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..errors import EmptyRoster, EncodingFailure, RosterQrError, VerificationWarning
from ..excel.backup import backup_path_for
from ..excel.merger import WorkbookImageMerger
from ..excel.planner import plan_placements
from ..excel.reader import read_roster
from ..images.generator import IdentifierImageGenerator, clear_directory
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import get_logger
from ..models.config_models import PassConfig, PipelineConfig, ThrottleConfig
from ..models.pipeline_result import PassResult, PipelineResult
from ..models.roster_row import RosterRow
from .progress import ProgressTracker

"""Pipeline orchestration: roster -> QR images -> placement plan -> merge.

Each configured pass (one worksheet, its own image directory and target
column) runs strictly in sequence:

    read roster → clear image dir → generate images (pause every N)
        → plan placements → merge into the illustrated workbook → verify

All passes share one illustrated workbook: it is copied from the source on the
first pass that has something to merge and later passes add to it. A failed
pass stops the run; the remaining passes are reported as skipped.
"""

__all__ = [
    "ProcessingError",
    "GeneratorFactory",
    "run_pipeline",
]

GeneratorFactory = Callable[[Path], IdentifierImageGenerator]


class ProcessingError(Exception):
    """Fatal error that prevents the pipeline from starting."""


def _generate_images(
    rows: Sequence[RosterRow],
    generator: IdentifierImageGenerator,
    throttle: ThrottleConfig,
    log: logging.Logger,
    error_log: ErrorLogBuffer,
    workbook_name: str,
    sheet_name: str,
) -> set[str]:
    """Generate one image per row sequentially; returns the identifiers that failed."""
    failed: set[str] = set()
    with ProgressTracker(len(rows), description=f"QR {sheet_name}") as progress:
        for index, row in enumerate(rows, start=1):
            try:
                generator.generate(row.identifier)
                log.debug(f"QR generated: {row.identifier} ({index - len(failed)}/{len(rows)})")
            except EncodingFailure as e:
                failed.add(row.identifier)
                log.error(f"QR generation failed: {row.identifier}: {e}")
                error_log.add(workbook_name, sheet_name, row.source_row, "ENCODING_FAILURE", str(e))
            progress.advance(row.identifier, ok=row.identifier not in failed)

            if throttle.generation_every > 0 and index % throttle.generation_every == 0:
                if throttle.generation_pause_sec > 0:
                    time.sleep(throttle.generation_pause_sec)
                log.debug(f"generated {index}/{len(rows)}, pausing")
    log.info(f"QR generation done: {len(rows) - len(failed)}/{len(rows)} [{sheet_name}]")
    return failed


def _prepare_working_copy(source: Path, target: Path, log: logging.Logger) -> None:
    if source.resolve() == target.resolve():
        log.info(f"illustrating in place: {source.name}")
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    log.info(f"illustrated workbook created: {target}")


def _verify(
    workbook: Path,
    sheet_name: str,
    expected_rows: int,
    log: logging.Logger,
    error_log: ErrorLogBuffer,
) -> bool:
    """Re-read the merged worksheet. Problems are warnings, never failures."""
    try:
        roster = read_roster(workbook, sheet_name, logger=log)
    except Exception as e:
        warning = VerificationWarning(f"re-read of {workbook.name} [{sheet_name}] failed: {e}")
    else:
        if len(roster.rows) == expected_rows:
            log.info(f"verified: {workbook.name} [{sheet_name}] rows={len(roster.rows)}")
            return True
        warning = VerificationWarning(
            f"{workbook.name} [{sheet_name}] re-read {len(roster.rows)} rows, expected {expected_rows}"
        )
    log.warning(f"verification: {warning} (images may still have been inserted, check the file manually)")
    error_log.add(workbook.name, sheet_name, -1, "VERIFICATION_WARNING", str(warning))
    return False


def _run_pass(
    pass_cfg: PassConfig,
    config: PipelineConfig,
    merger: WorkbookImageMerger,
    generator_factory: GeneratorFactory,
    log: logging.Logger,
    error_log: ErrorLogBuffer,
    working_ready: bool,
) -> tuple[PassResult, bool]:
    source = config.workbook
    output = config.illustrated_workbook
    label = str(pass_cfg.worksheet)

    try:
        roster = read_roster(source, pass_cfg.worksheet, logger=log)
        if not roster.rows:
            raise EmptyRoster(f"no valid roster rows in worksheet '{roster.sheet_name}'")
    except (RosterQrError, OSError) as e:
        log.error(f"pass [{label}]: {e}")
        error_log.add(source.name, label, -1, "PASS_FAILURE", str(e))
        return PassResult(worksheet=label, success=False, error=str(e)), working_ready

    sheet = roster.sheet_name
    for rej in roster.rejected:
        error_log.add(source.name, sheet, rej.source_row, "ROW_REJECTED", rej.reason)

    try:
        removed = clear_directory(pass_cfg.image_dir, logger=log)
    except OSError as e:
        log.error(f"cannot clear image directory {pass_cfg.image_dir}: {e}")
        error_log.add(source.name, sheet, -1, "PASS_FAILURE", str(e))
        return PassResult(worksheet=sheet, success=False, error=str(e)), working_ready
    if removed:
        log.info(f"cleared {removed} old image(s) from {pass_cfg.image_dir}")

    generator = generator_factory(pass_cfg.image_dir)
    failed = _generate_images(roster.rows, generator, config.throttle, log, error_log, source.name, sheet)

    def record_skip(row: RosterRow, reason: str) -> None:
        # rows whose encoding failed are already in the error log
        if row.identifier not in failed:
            error_log.add(source.name, sheet, row.source_row, "INADMISSIBLE_IMAGE", reason)

    placements = plan_placements(
        roster.rows,
        pass_cfg.image_dir,
        pass_cfg.target_column,
        width=pass_cfg.width,
        height=pass_cfg.height,
        preserve_aspect_ratio=pass_cfg.preserve_aspect_ratio,
        anchor=pass_cfg.anchor,
        logger=log,
        max_bytes=config.max_image_bytes,
        on_skip=record_skip,
    )
    counts = dict(
        worksheet=sheet,
        total_rows=len(roster.rows),
        rejected_rows=len(roster.rejected),
        generated=len(roster.rows) - len(failed),
        planned=len(placements),
    )
    if not placements:
        log.warning(f"no QR images to insert for [{sheet}]")
        return PassResult(success=True, **counts), working_ready

    if not working_ready:
        try:
            _prepare_working_copy(source, output, log)
        except OSError as e:
            log.error(f"cannot create illustrated workbook {output}: {e}")
            error_log.add(output.name, sheet, -1, "PASS_FAILURE", str(e))
            return PassResult(success=False, error=str(e), **counts), working_ready
        working_ready = True

    outcome = merger.merge(output, placements, sheet)
    if not outcome.success:
        return PassResult(success=False, error=str(outcome.error), **counts), working_ready

    if outcome.partial:
        log.warning(
            f"{outcome.images_admitted - outcome.images_inserted} image(s) failed to insert into [{sheet}]"
            " (unsupported format, file permissions or a locked workbook)"
        )

    verified = _verify(output, sheet, len(roster.rows), log, error_log)
    return (
        PassResult(success=True, inserted=outcome.images_inserted, verified=verified, **counts),
        working_ready,
    )


def _log_recovery_advice(config: PipelineConfig, log: logging.Logger) -> None:
    output = config.illustrated_workbook
    backup = backup_path_for(output, config.backup.strategy, config.backup.suffix)
    log.info("recovery advice:")
    log.info(f"  1. make sure '{config.workbook}' exists and is not open in another program")
    log.info("  2. check that the image directories are writable: "
             + ", ".join(str(p.image_dir) for p in config.passes))
    log.info("  3. make sure there is enough free disk space")
    log.info(f"  4. check read/write permissions on '{output.parent}'")
    log.info(f"  5. backups of the illustrated workbook are kept next to it (e.g. '{backup.name}')")


def run_pipeline(
    config: PipelineConfig,
    *,
    merger: WorkbookImageMerger | None = None,
    generator_factory: GeneratorFactory | None = None,
    logger: logging.Logger | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> PipelineResult:
    """Run every configured pass in order and aggregate the results.

    Raises:
        ProcessingError: the source workbook does not exist or no pass is configured
    """
    start_time = datetime.now(UTC)
    log = logger or get_logger()
    error_log = error_log if error_log is not None else ErrorLogBuffer(config.error_log_dir)

    if not config.workbook.is_file():
        raise ProcessingError(f"workbook not found: {config.workbook}")
    if not config.passes:
        raise ProcessingError("no passes configured")

    if merger is None:
        merger = WorkbookImageMerger(
            batch_size=config.throttle.batch_size,
            batch_pause=config.throttle.batch_pause_sec,
            backup=config.backup,
            max_bytes=config.max_image_bytes,
            logger=log,
            error_log=error_log,
        )
    if generator_factory is None:
        def generator_factory(image_dir: Path) -> IdentifierImageGenerator:
            return IdentifierImageGenerator(
                image_dir, box_size=config.qr.box_size, border=config.qr.border, logger=log
            )

    passes: list[PassResult] = []
    skipped: list[str] = []
    working_ready = False
    failure: str | None = None
    for index, pass_cfg in enumerate(config.passes):
        log.info(f"pass {index + 1}/{len(config.passes)}: [{pass_cfg.worksheet}]")
        result, working_ready = _run_pass(
            pass_cfg, config, merger, generator_factory, log, error_log, working_ready
        )
        passes.append(result)
        if not result.success:
            failure = f"pass [{result.worksheet}] failed: {result.error}"
            skipped = [str(p.worksheet) for p in config.passes[index + 1:]]
            log.error(failure)
            if skipped:
                log.warning(f"remaining passes not attempted: {', '.join(skipped)}")
            _log_recovery_advice(config, log)
            break

    error_log_path = None
    try:
        error_log_path = error_log.flush()
    except OSError as e:
        log.warning(f"error log could not be written: {e}")

    end_time = datetime.now(UTC)
    return PipelineResult(
        passes=passes,
        success=failure is None,
        output_path=config.illustrated_workbook if working_ready else None,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        error=failure,
        error_log_path=error_log_path,
        skipped_passes=skipped,
    )
