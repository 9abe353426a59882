from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import UnsupportedWorkbook, WorkbookNotFound, WorksheetNotFound
from ..logging.init import get_logger
from ..models.roster_row import RosterRow, RosterSheet, RowRejection

"""Roster extractor.

Row 1 of the worksheet is the header and is discarded; every following row is
parsed into either a RosterRow or a RowRejection. Column offsets 0..5 map to
identifier / code / account / name / dependent_info / team_number.

Cells are read header-less with pandas (openpyxl engine). Default NaN string
conversion is disabled so identifiers such as "NA" survive as text.
"""

__all__ = [
    "WorksheetSelector",
    "ROSTER_FIELDS",
    "read_roster",
    "extract_roster",
    "parse_roster",
    "list_worksheets",
    "resolve_sheet_name",
]

WorksheetSelector = str | int

ROSTER_FIELDS = ("identifier", "code", "account", "name", "dependent_info", "team_number")

SUPPORTED_EXTENSIONS = {".xlsx", ".xlsm"}


def _check_workbook(path: Path) -> None:
    if not path.is_file():
        raise WorkbookNotFound(f"workbook not found: {path}")
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise UnsupportedWorkbook(
            f"unsupported workbook format '{path.suffix}': {path} (expected .xlsx / .xlsm)"
        )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _clean(value: Any) -> Any:
    return None if _is_blank(value) else value


def resolve_sheet_name(sheet_names: list[str], worksheet: WorksheetSelector | None) -> str:
    """Map a worksheet name or 1-based index to an existing sheet name.

    Raises:
        WorksheetNotFound: no sheet with that name, or index out of range
    """
    if worksheet is None:
        worksheet = 1
    if isinstance(worksheet, int) and not isinstance(worksheet, bool):
        if 1 <= worksheet <= len(sheet_names):
            return sheet_names[worksheet - 1]
        raise WorksheetNotFound(
            f"worksheet index {worksheet} out of range (workbook has {len(sheet_names)})"
        )
    if worksheet in sheet_names:
        return str(worksheet)
    raise WorksheetNotFound(f"worksheet not found: {worksheet!r} (available: {sheet_names})")


def list_worksheets(workbook_path: Path) -> list[str]:
    path = Path(workbook_path)
    _check_workbook(path)
    with pd.ExcelFile(path) as xls:
        return [str(n) for n in xls.sheet_names]


def parse_roster(frame: pd.DataFrame, sheet_name: str) -> RosterSheet:
    """Split raw worksheet rows into valid RosterRows and RowRejections.

    ``frame`` holds the worksheet header-less: frame row 0 is the header.
    Rows that are entirely blank are skipped without a rejection. Source order
    is preserved.

    Identifiers are stripped of surrounding whitespace and the stripped value
    is what names the image file and fills the QR payload, so " E001" and
    "E001" yield the same E001.png. A whitespace-only identifier is rejected
    as missing.
    """
    rows: list[RosterRow] = []
    rejected: list[RowRejection] = []
    total = 0
    for position, raw in enumerate(frame.iloc[1:].itertuples(index=False, name=None), start=2):
        values = list(raw)[: len(ROSTER_FIELDS)]
        values += [None] * (len(ROSTER_FIELDS) - len(values))
        if all(_is_blank(v) for v in raw):
            continue
        total += 1
        ident = values[0]
        if _is_blank(ident):
            rejected.append(RowRejection(source_row=position, reason="identifier missing", raw_identifier=_clean(ident)))
            continue
        if not isinstance(ident, str):
            rejected.append(
                RowRejection(
                    source_row=position,
                    reason=f"identifier is not a string ({type(ident).__name__})",
                    raw_identifier=ident,
                )
            )
            continue
        rows.append(
            RosterRow(
                identifier=ident.strip(),
                code=_clean(values[1]),
                account=_clean(values[2]),
                name=_clean(values[3]),
                dependent_info=_clean(values[4]),
                team_number=_clean(values[5]),
                source_row=position,
            )
        )
    return RosterSheet(sheet_name=sheet_name, rows=rows, rejected=rejected, total_rows=total)


def read_roster(
    workbook_path: Path,
    worksheet: WorksheetSelector | None = 1,
    logger: logging.Logger | None = None,
) -> RosterSheet:
    """Read and parse a roster worksheet.

    Raises:
        WorkbookNotFound: the file does not exist
        UnsupportedWorkbook: the extension is not .xlsx / .xlsm, or the file is not a readable workbook
        WorksheetNotFound: the selector does not resolve to a sheet
    """
    log = logger or get_logger()
    path = Path(workbook_path)
    _check_workbook(path)
    try:
        with pd.ExcelFile(path) as xls:
            sheet_name = resolve_sheet_name([str(n) for n in xls.sheet_names], worksheet)
            frame = xls.parse(
                sheet_name,
                header=None,
                dtype=object,
                keep_default_na=False,
                na_values=[],
            )
    except (ValueError, zipfile.BadZipFile) as e:
        raise UnsupportedWorkbook(f"cannot read workbook {path.name}: {e}") from e
    sheet = parse_roster(frame, sheet_name)
    log.info(
        f"roster read: {path.name} [{sheet_name}] rows={len(sheet.rows)} rejected={len(sheet.rejected)}"
    )
    for rej in sheet.rejected:
        log.debug(f"row {rej.source_row} rejected: {rej.reason}")
    return sheet


def extract_roster(
    workbook_path: Path,
    worksheet: WorksheetSelector | None = 1,
    logger: logging.Logger | None = None,
) -> list[RosterRow]:
    """Valid roster rows of ``worksheet`` in source order."""
    return read_roster(workbook_path, worksheet, logger=logger).rows
