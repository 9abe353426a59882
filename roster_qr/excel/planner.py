from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from ..errors import InadmissibleImage
from ..images.admission import ensure_admissible, is_admissible
from ..images.generator import image_path_for
from ..logging.init import get_logger
from ..models.config_models import MAX_IMAGE_BYTES
from ..models.placement import CellAddress, ImagePlacement
from ..models.roster_row import RosterRow
from .address import decode_column

"""Placement planner: roster rows -> (image path, target cell) pairs.

Default anchoring ("roster"): the i-th row of the filtered roster (0-based)
goes to row i+2 of the worksheet (one header row, 1-based rows). With
"source_row" the image goes to the row the entry was read from instead.

Rows whose image is missing or inadmissible are dropped with a warning; a
missing image never aborts planning for the remaining rows.
"""

__all__ = [
    "ANCHOR_MODES",
    "SkipCallback",
    "plan_placements",
    "plan_from_table",
]

ANCHOR_MODES = ("roster", "source_row")

HEADER_ROWS = 1

SkipCallback = Callable[[RosterRow, str], None]


def plan_placements(
    rows: Sequence[RosterRow],
    image_dir: Path,
    target_column: str = "G",
    *,
    width: int = 50,
    height: int = 50,
    preserve_aspect_ratio: bool = True,
    anchor: str = "roster",
    logger: logging.Logger | None = None,
    max_bytes: int = MAX_IMAGE_BYTES,
    on_skip: SkipCallback | None = None,
) -> list[ImagePlacement]:
    """Build one placement per roster row whose image passes admission.

    ``on_skip(row, reason)`` is called for every row dropped from the plan.

    Raises:
        InvalidAddress: ``target_column`` is not uppercase letters
        ValueError: unknown ``anchor`` mode
    """
    if anchor not in ANCHOR_MODES:
        raise ValueError(f"unknown anchor mode: {anchor!r} (expected one of {ANCHOR_MODES})")
    column = decode_column(target_column)
    log = logger or get_logger()

    placements: list[ImagePlacement] = []
    for index, row in enumerate(rows):
        if anchor == "source_row" and row.source_row > HEADER_ROWS:
            sheet_row = row.source_row
        else:
            sheet_row = index + HEADER_ROWS + 1
        path = image_path_for(image_dir, row.identifier)
        try:
            ensure_admissible(path, max_bytes=max_bytes)
        except (InadmissibleImage, OSError) as e:
            log.warning(f"no admissible image for {row.identifier}, row dropped from plan: {e}")
            if on_skip is not None:
                on_skip(row, str(e))
            continue
        placements.append(
            ImagePlacement(
                image_path=path.resolve(),
                target_cell=CellAddress(column=column, row=sheet_row),
                width=width,
                height=height,
                preserve_aspect_ratio=preserve_aspect_ratio,
            )
        )
    log.info(f"placements planned: {len(placements)}/{len(rows)}")
    return placements


def _resolve_id_column(header: Sequence[Any], id_column: int | str) -> int:
    if isinstance(id_column, int) and not isinstance(id_column, bool):
        return id_column
    for idx, value in enumerate(header):
        if value == id_column:
            return idx
    raise KeyError(f"id column not found in header: {id_column!r}")


def plan_from_table(
    table: Sequence[Sequence[Any]],
    image_dir: Path,
    id_column: int | str,
    target_column: str = "G",
    *,
    width: int = 80,
    height: int = 80,
    preserve_aspect_ratio: bool = True,
    logger: logging.Logger | None = None,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> list[ImagePlacement]:
    """Plan placements straight from raw rows (``table[0]`` is the header).

    ``id_column`` is a 0-based column index or a header label. The target row
    is the row's own position in the sheet. Rows without an id, or whose image
    is not admissible, are skipped with a warning.
    """
    log = logger or get_logger()
    if not table:
        return []
    column = decode_column(target_column)
    id_idx = _resolve_id_column(table[0], id_column)

    placements: list[ImagePlacement] = []
    for sheet_row, row in enumerate(table[1:], start=HEADER_ROWS + 1):
        value = row[id_idx] if id_idx < len(row) else None
        ident = "" if value is None else str(value).strip()
        if not ident or ident.lower() == "nan":
            log.warning(f"row {sheet_row} has no id value")
            continue
        path = image_path_for(image_dir, ident)
        if not is_admissible(path, logger=log, max_bytes=max_bytes):
            continue
        placements.append(
            ImagePlacement(
                image_path=path.resolve(),
                target_cell=CellAddress(column=column, row=sheet_row),
                width=width,
                height=height,
                preserve_aspect_ratio=preserve_aspect_ratio,
            )
        )
    return placements
