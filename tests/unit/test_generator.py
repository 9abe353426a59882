from __future__ import annotations

import base64
import io
from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from roster_qr.errors import EncodingFailure
from roster_qr.images.generator import (
    IdentifierImageGenerator,
    clear_directory,
    encode_to_data_uri,
    encode_to_file,
    image_path_for,
)


def test_generate_writes_png_named_after_identifier(tmp_path: Path):
    gen = IdentifierImageGenerator(tmp_path / "member_qrcode")
    path = gen.generate("E001")

    assert path == tmp_path / "member_qrcode" / "E001.png"
    assert path.is_file()
    with Image.open(path) as img:
        assert img.format == "PNG"
        # square symbol with quiet zone
        assert img.size[0] == img.size[1]


def test_generate_overwrites_same_identifier(tmp_path: Path):
    gen = IdentifierImageGenerator(tmp_path)
    first = gen.generate("E001")
    second = gen.generate("E001")
    assert first == second
    assert sorted(p.name for p in tmp_path.iterdir()) == ["E001.png"]


def test_box_size_changes_image_size(tmp_path: Path):
    small = IdentifierImageGenerator(tmp_path / "s", box_size=2).generate("E001")
    large = IdentifierImageGenerator(tmp_path / "l", box_size=8).generate("E001")
    with Image.open(small) as a, Image.open(large) as b:
        assert b.size[0] == a.size[0] * 4


@pytest.mark.parametrize("bad", ["", "   ", "a/b", "a\\b", ".", ".."])
def test_generate_rejects_unusable_identifier(tmp_path: Path, bad: str):
    with pytest.raises(EncodingFailure):
        IdentifierImageGenerator(tmp_path).generate(bad)


def test_encoder_error_becomes_encoding_failure(tmp_path: Path):
    with patch("roster_qr.images.generator._make_qr", side_effect=RuntimeError("boom")):
        with pytest.raises(EncodingFailure, match="boom"):
            encode_to_file("E001", tmp_path / "E001.png")


def test_encode_to_data_uri_is_png():
    uri = encode_to_data_uri("E001")
    assert uri.startswith("data:image/png;base64,")
    data = base64.b64decode(uri.split(",", 1)[1])
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "PNG"


def test_image_path_for(tmp_path: Path):
    assert image_path_for(tmp_path, "F001") == tmp_path / "F001.png"


def test_clear_directory_removes_top_level_files_only(tmp_path: Path):
    for name in ("a.png", "b.png", "notes.txt"):
        (tmp_path / name).write_bytes(b"x")
    sub = tmp_path / "keep"
    sub.mkdir()
    (sub / "inner.png").write_bytes(b"x")

    removed = clear_directory(tmp_path)

    assert removed == 3
    assert [p.name for p in tmp_path.iterdir()] == ["keep"]
    assert (sub / "inner.png").exists()


def test_clear_directory_missing_is_zero(tmp_path: Path):
    assert clear_directory(tmp_path / "missing") == 0
