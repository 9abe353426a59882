from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from roster_qr.config.loader import ConfigError, load_config, resolve_config_path
from roster_qr.errors import RosterQrError
from roster_qr.logging.init import enable_debug, log_summary, setup_logging
from roster_qr.models.config_models import PipelineConfig
from roster_qr.services.orchestrator import ProcessingError, run_pipeline
from roster_qr.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- load .env (python-dotenv), then the YAML config
- run every configured pass against the source workbook
- print a SUMMARY line and exit with the contract exit code

Exit codes:
    0  every pass completed and every planned image was inserted
    2  partial: a pass failed, or some images were not generated / inserted
    1  fatal: configuration error or missing source workbook
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; a broken file only warns."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="roster-qr",
        description="Embed one QR code per roster row into a copy of the roster workbook",
    )
    p.add_argument("--config", help="YAML config path (default: $ROSTER_QR_CONFIG or config/illustrate.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print worksheet names & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: PipelineConfig) -> int:
    from roster_qr.excel.reader import list_worksheets, read_roster

    try:
        names = list_worksheets(cfg.workbook)
    except RosterQrError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {cfg.workbook.name}")
    for name in names:
        try:
            sheet = read_roster(cfg.workbook, name, logger=logging.getLogger("roster_qr.inspect"))
        except RosterQrError as e:  # pragma: no cover
            print(f"  SHEET: {name} error={e}")
            continue
        print(f"  SHEET: {name} rows={len(sheet.rows)} rejected={len(sheet.rejected)}")
        for row in sheet.rows[:3]:
            print(f"    row {row.source_row}: id={row.identifier} name={row.name} team={row.team_number}")
    return 0


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # argv=[] must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug(logger)
        logger.debug("debug mode enabled")

    if not cfg.workbook.exists():
        logger.error(f"workbook not found: {cfg.workbook}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Illustrating workbook: {cfg.workbook} -> {cfg.illustrated_workbook}")
    try:
        result = run_pipeline(cfg, logger=logger)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    if result.output_path is not None:
        logger.info(f"illustrated workbook: {result.output_path}")
    if result.error_log_path is not None:
        logger.info(f"error log: {result.error_log_path}")
    log_summary(render_summary_line(result).removeprefix("SUMMARY "), logger)

    if not result.complete:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
