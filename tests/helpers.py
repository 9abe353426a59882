# Builders for real workbooks and images used across test modules
from __future__ import annotations

from pathlib import Path

import pandas as pd
from PIL import Image

MEMBER_ROWS = [
    ["id", "code", "account", "name", "family", "team"],
    ["E001", "C01", "alice", "Alice", None, 1],
    ["E002", "C02", "bob", "Bob", "spouse", 1],
    ["E003", "C03", "carol", "Carol", None, 2],
]

FAMILY_ROWS = [
    ["id", "code", "account", "name", "family", "team"],
    ["F001", "C01", "alice", "Alice Jr.", "E001", 1],
    ["F002", "C02", "bob", "Bobby", "E002", 1],
]


def make_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write ``sheets`` as-is (first list = header row) with pandas/openpyxl."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


def make_png(path: Path, size: tuple[int, int] = (20, 20), color: str = "black") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="PNG")
    return path
