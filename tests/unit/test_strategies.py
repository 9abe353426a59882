from __future__ import annotations

import logging
from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from openpyxl.utils.units import pixels_to_EMU

from roster_qr.errors import ImageRegistrationError
from roster_qr.excel.strategies import (
    InlineBase64Strategy,
    PathImageStrategy,
    attach_image,
    decode_data_uri,
    image_format,
    register_image,
    to_data_uri,
)
from roster_qr.models.placement import CellAddress, ImagePlacement
from tests.helpers import make_png

LOG = logging.getLogger("test.strategies")


class _Failing:
    name = "failing"

    def register(self, image_path: Path) -> XLImage:
        raise OSError("locked")


@pytest.mark.parametrize(
    "name, fmt",
    [("a.png", "png"), ("a.JPG", "jpeg"), ("a.jpeg", "jpeg"), ("a.gif", "gif"), ("a.bmp", "bmp")],
)
def test_image_format(name: str, fmt: str):
    assert image_format(Path(name)) == fmt


def test_image_format_unknown():
    with pytest.raises(ValueError):
        image_format(Path("a.tiff"))


def test_data_uri():
    uri = to_data_uri(b"\x89PNG", "png")
    assert uri.startswith("data:image/png;base64,")
    assert decode_data_uri(uri) == b"\x89PNG"
    with pytest.raises(ValueError):
        decode_data_uri("image/png,AAAA")
    with pytest.raises(ValueError):
        decode_data_uri("data:image/png;base64,@@@")


def test_path_strategy(tmp_path: Path):
    img = PathImageStrategy().register(make_png(tmp_path / "E001.png", size=(30, 20)))
    assert (img.width, img.height) == (30, 20)


def test_inline_strategy(tmp_path: Path):
    img = InlineBase64Strategy().register(make_png(tmp_path / "E001.png", size=(30, 20)))
    assert (img.width, img.height) == (30, 20)


def test_register_falls_back_to_next_strategy(tmp_path: Path):
    png = make_png(tmp_path / "E001.png")
    image, used = register_image(png, [_Failing(), PathImageStrategy()], LOG)
    assert used == "path"
    assert isinstance(image, XLImage)


def test_register_all_fail(tmp_path: Path):
    png = make_png(tmp_path / "E001.png")
    with pytest.raises(ImageRegistrationError, match="failing: locked"):
        register_image(png, [_Failing()], LOG)


def test_corrupt_image_fails_every_default_strategy(tmp_path: Path):
    bad = tmp_path / "E001.png"
    bad.write_bytes(b"not really a png")
    with pytest.raises(ImageRegistrationError):
        register_image(bad, [PathImageStrategy(), InlineBase64Strategy()], LOG)


def test_attach_image_anchors_top_left(tmp_path: Path):
    wb = Workbook()
    ws = wb.active
    png = make_png(tmp_path / "E001.png", size=(100, 60))
    image = PathImageStrategy().register(png)

    attach_image(ws, image, ImagePlacement(png, CellAddress(7, 2), width=50, height=30))

    assert ws._images == [image]
    anchor = image.anchor
    assert (anchor._from.col, anchor._from.row) == (6, 1)
    assert (anchor._from.colOff, anchor._from.rowOff) == (0, 0)
    # aspect preserved: height follows width
    assert anchor.ext.cx == anchor.ext.cy == pixels_to_EMU(50)
    assert (image.width, image.height) == (50, 50)


def test_attach_image_free_aspect(tmp_path: Path):
    wb = Workbook()
    png = make_png(tmp_path / "E001.png")
    image = PathImageStrategy().register(png)
    attach_image(
        wb.active,
        image,
        ImagePlacement(png, CellAddress(1, 1), width=50, height=30, preserve_aspect_ratio=False),
    )
    assert (image.anchor.ext.cx, image.anchor.ext.cy) == (pixels_to_EMU(50), pixels_to_EMU(30))
