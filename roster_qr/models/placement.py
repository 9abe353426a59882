from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

"""CellAddress and ImagePlacement models.

An ImagePlacement describes where one generated image belongs in a worksheet.
Exactly one placement may exist per valid RosterRow.
"""

__all__ = [
    "CellAddress",
    "ImagePlacement",
]


@dataclass(frozen=True)
class CellAddress:
    """1-based (column, row) pair. Textual form matches ^[A-Z]+[0-9]+$."""
    column: int
    row: int

    def zero_based(self) -> tuple[int, int]:
        """Top-left anchor offset (column-1, row-1) used when attaching images."""
        return (self.column - 1, self.row - 1)

    def __str__(self) -> str:
        # deferred import, excel.address imports this module
        from ..excel.address import encode_address

        return encode_address(self.column, self.row)


@dataclass(frozen=True)
class ImagePlacement:
    image_path: Path
    target_cell: CellAddress
    width: int = 50
    height: int = 50
    preserve_aspect_ratio: bool = True

    @property
    def extent(self) -> tuple[int, int]:
        """(width, height) in pixels; height follows width when aspect is preserved."""
        if self.preserve_aspect_ratio:
            return (self.width, self.width)
        return (self.width, self.height)
