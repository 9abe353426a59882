from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from roster_qr.errors import UnsupportedWorkbook, WorkbookNotFound, WorksheetNotFound
from roster_qr.excel.reader import (
    extract_roster,
    list_worksheets,
    parse_roster,
    read_roster,
    resolve_sheet_name,
)
from tests.helpers import MEMBER_ROWS, make_workbook

HEADER = MEMBER_ROWS[0]


def test_read_roster_members(roster_workbook: Path):
    sheet = read_roster(roster_workbook, "Members")

    assert sheet.sheet_name == "Members"
    assert [r.identifier for r in sheet.rows] == ["E001", "E002", "E003"]
    first = sheet.rows[0]
    assert first.code == "C01"
    assert first.account == "alice"
    assert first.name == "Alice"
    assert first.dependent_info is None
    assert first.team_number == 1
    assert first.source_row == 2
    assert sheet.rejected == []
    assert sheet.total_rows == 3


def test_worksheet_by_index_is_one_based(roster_workbook: Path):
    assert read_roster(roster_workbook, 2).sheet_name == "Family"
    assert read_roster(roster_workbook).sheet_name == "Members"


def test_blank_identifier_rejected(temp_workdir: Path):
    wb = make_workbook(
        temp_workdir / "r.xlsx",
        {"S": [HEADER, ["E001", "a"], ["", "b"], ["E003", "c"]]},
    )
    sheet = read_roster(wb, "S")

    assert [r.identifier for r in sheet.rows] == ["E001", "E003"]
    assert [r.source_row for r in sheet.rows] == [2, 4]
    assert len(sheet.rejected) == 1
    assert sheet.rejected[0].source_row == 3
    assert sheet.rejected[0].reason == "identifier missing"


def test_non_string_identifier_rejected(temp_workdir: Path):
    wb = make_workbook(temp_workdir / "r.xlsx", {"S": [HEADER, [123, "a"], ["E002", "b"]]})
    sheet = read_roster(wb, "S")

    assert [r.identifier for r in sheet.rows] == ["E002"]
    assert sheet.rejected[0].raw_identifier == 123
    assert "not a string" in sheet.rejected[0].reason


def test_na_identifier_survives_and_is_stripped(temp_workdir: Path):
    wb = make_workbook(temp_workdir / "r.xlsx", {"S": [HEADER, ["NA", "a"], ["  E005 ", "b"]]})
    sheet = read_roster(wb, "S")
    assert [r.identifier for r in sheet.rows] == ["NA", "E005"]


def test_header_only_sheet_is_empty(temp_workdir: Path):
    wb = make_workbook(temp_workdir / "r.xlsx", {"S": [HEADER]})
    sheet = read_roster(wb, "S")
    assert sheet.rows == []
    assert sheet.total_rows == 0


def test_parse_roster_skips_fully_blank_rows():
    frame = pd.DataFrame([HEADER, ["E001", "a"], [None, None], ["E002", "b"]], dtype=object)
    sheet = parse_roster(frame, "S")
    assert [r.identifier for r in sheet.rows] == ["E001", "E002"]
    assert [r.source_row for r in sheet.rows] == [2, 4]
    assert sheet.rejected == []


def test_parse_roster_whitespace_identifiers():
    frame = pd.DataFrame([HEADER, [" E001", "a"], ["   ", "b"]], dtype=object)
    sheet = parse_roster(frame, "S")

    assert [r.identifier for r in sheet.rows] == ["E001"]
    assert [(r.source_row, r.reason) for r in sheet.rejected] == [(3, "identifier missing")]


def test_parse_roster_pads_short_rows():
    frame = pd.DataFrame([["id"], ["E001"]], dtype=object)
    row = parse_roster(frame, "S").rows[0]
    assert row.identifier == "E001"
    assert row.team_number is None


def test_missing_workbook(tmp_path: Path):
    with pytest.raises(WorkbookNotFound):
        read_roster(tmp_path / "nope.xlsx")


def test_unsupported_extension(tmp_path: Path):
    f = tmp_path / "roster.csv"
    f.write_text("id\nE001\n", encoding="utf-8")
    with pytest.raises(UnsupportedWorkbook):
        read_roster(f)


def test_corrupt_workbook_is_unsupported(tmp_path: Path):
    f = tmp_path / "record.xlsx"
    f.write_bytes(b"not a zip")
    with pytest.raises(UnsupportedWorkbook, match="cannot read workbook"):
        read_roster(f)


def test_missing_worksheet(roster_workbook: Path):
    with pytest.raises(WorksheetNotFound):
        read_roster(roster_workbook, "Nope")
    with pytest.raises(WorksheetNotFound):
        read_roster(roster_workbook, 3)


def test_resolve_sheet_name():
    names = ["A", "B"]
    assert resolve_sheet_name(names, None) == "A"
    assert resolve_sheet_name(names, 2) == "B"
    assert resolve_sheet_name(names, "B") == "B"
    with pytest.raises(WorksheetNotFound):
        resolve_sheet_name(names, 0)


def test_list_worksheets_and_extract(roster_workbook: Path):
    assert list_worksheets(roster_workbook) == ["Members", "Family"]
    assert [r.identifier for r in extract_roster(roster_workbook, "Family")] == ["F001", "F002"]
