from __future__ import annotations

import base64
import binascii
import io
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from openpyxl.drawing.image import Image as XLImage
from openpyxl.drawing.spreadsheet_drawing import AnchorMarker, OneCellAnchor
from openpyxl.drawing.xdr import XDRPositiveSize2D
from openpyxl.utils.units import pixels_to_EMU
from openpyxl.worksheet.worksheet import Worksheet

from ..errors import ImageRegistrationError
from ..models.placement import ImagePlacement

"""Image registration strategies for the workbook merger.

Strategies are tried in order until one returns an openpyxl image:

1. PathImageStrategy      register the image by its filesystem path
2. InlineBase64Strategy   re-read the bytes, carry them as a base64 data URI
                          and register the decoded in-memory payload

New strategies only need a ``name`` and a ``register(path)`` method.
"""

__all__ = [
    "RegistrationStrategy",
    "PathImageStrategy",
    "InlineBase64Strategy",
    "DEFAULT_STRATEGIES",
    "image_format",
    "to_data_uri",
    "decode_data_uri",
    "register_image",
    "attach_image",
]

_FORMATS = {
    "png": "png",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "gif": "gif",
    "bmp": "bmp",
}


class RegistrationStrategy(Protocol):
    name: str

    def register(self, image_path: Path) -> XLImage: ...


def image_format(image_path: Path) -> str:
    ext = Path(image_path).suffix.lower().lstrip(".")
    try:
        return _FORMATS[ext]
    except KeyError:
        raise ValueError(f"unsupported image format: {ext!r}") from None


def to_data_uri(data: bytes, fmt: str) -> str:
    return f"data:image/{fmt};base64," + base64.b64encode(data).decode("ascii")


def decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError(f"not a base64 data URI: {uri[:40]!r}")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 payload: {e}") from e


class PathImageStrategy:
    name = "path"

    def register(self, image_path: Path) -> XLImage:
        image_format(image_path)
        return XLImage(str(Path(image_path).resolve()))


class InlineBase64Strategy:
    name = "inline_base64"

    def register(self, image_path: Path) -> XLImage:
        fmt = image_format(image_path)
        data = Path(image_path).read_bytes()
        if not data:
            raise ValueError(f"image file is empty: {image_path}")
        payload = decode_data_uri(to_data_uri(data, fmt))
        return XLImage(io.BytesIO(payload))


DEFAULT_STRATEGIES: tuple[RegistrationStrategy, ...] = (PathImageStrategy(), InlineBase64Strategy())


def register_image(
    image_path: Path,
    strategies: Sequence[RegistrationStrategy],
    logger: logging.Logger,
) -> tuple[XLImage, str]:
    """Return (image, strategy name) from the first strategy that succeeds.

    Raises:
        ImageRegistrationError: every strategy failed
    """
    failures: list[str] = []
    for strategy in strategies:
        try:
            return strategy.register(image_path), strategy.name
        except Exception as e:
            failures.append(f"{strategy.name}: {e}")
            logger.warning(f"{strategy.name} registration failed for {Path(image_path).name}: {e}")
    raise ImageRegistrationError(
        f"all registration strategies failed for {image_path}: " + "; ".join(failures)
    )


def attach_image(worksheet: Worksheet, image: XLImage, placement: ImagePlacement) -> None:
    """Anchor ``image`` with its top-left corner on the placement's cell."""
    col, row = placement.target_cell.zero_based()
    width, height = placement.extent
    image.width = width
    image.height = height
    image.anchor = OneCellAnchor(
        _from=AnchorMarker(col=col, colOff=0, row=row, rowOff=0),
        ext=XDRPositiveSize2D(pixels_to_EMU(width), pixels_to_EMU(height)),
    )
    worksheet.add_image(image)
