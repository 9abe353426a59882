from __future__ import annotations

import base64
import io
import logging
from pathlib import Path

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from ..errors import EncodingFailure
from ..logging.init import get_logger

"""Identifier image generator (QR codes).

Each identifier is encoded to `<output_dir>/<identifier>.png`. The path is
content addressed, so re-running overwrites the previous image of the same
identifier. The output directory is cleared by the orchestrator before a pass.
"""

__all__ = [
    "IdentifierImageGenerator",
    "encode_to_file",
    "encode_to_data_uri",
    "clear_directory",
    "image_path_for",
]

_FORBIDDEN_CHARS = ("/", "\\", "\x00")


def _make_qr(text: str, box_size: int = 10, border: int = 4) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


def encode_to_file(text: str, destination: Path, box_size: int = 10, border: int = 4) -> None:
    """Encode ``text`` as a PNG QR code at ``destination``.

    Raises:
        EncodingFailure: encoder or I/O error
    """
    try:
        img = _make_qr(text, box_size=box_size, border=border).make_image(
            fill_color="black", back_color="white"
        )
        img.save(str(destination))
    except Exception as e:
        raise EncodingFailure(f"failed to encode {text!r} to {destination}: {e}") from e


def encode_to_data_uri(text: str, box_size: int = 10, border: int = 4) -> str:
    """Encode ``text`` as a PNG QR code and return it as a base64 data URI."""
    try:
        img = _make_qr(text, box_size=box_size, border=border).make_image(
            fill_color="black", back_color="white"
        )
        buf = io.BytesIO()
        img.save(buf)
    except Exception as e:
        raise EncodingFailure(f"failed to encode {text!r}: {e}") from e
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def image_path_for(output_dir: Path, identifier: str) -> Path:
    return Path(output_dir) / f"{identifier}.png"


def clear_directory(directory: Path, logger: logging.Logger | None = None) -> int:
    """Delete regular files directly inside ``directory``; subdirectories are kept.

    Returns the number of files removed (0 when the directory does not exist).
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0
    removed = 0
    for entry in directory.iterdir():
        if entry.is_file() or entry.is_symlink():
            entry.unlink()
            removed += 1
    (logger or get_logger()).debug(f"cleared {removed} file(s) from {directory}")
    return removed


class IdentifierImageGenerator:
    """Generates one QR-code PNG per roster identifier."""

    def __init__(
        self,
        output_dir: Path,
        *,
        box_size: int = 10,
        border: int = 4,
        logger: logging.Logger | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.box_size = box_size
        self.border = border
        self.logger = logger or get_logger()

    def generate(self, identifier: str) -> Path:
        """Materialize the QR image for ``identifier`` and return its path.

        Raises:
            EncodingFailure: invalid identifier, directory creation or encoder error
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise EncodingFailure(f"identifier must be a non-empty string: {identifier!r}")
        if any(ch in identifier for ch in _FORBIDDEN_CHARS) or identifier in (".", ".."):
            raise EncodingFailure(f"identifier cannot be used as a file name: {identifier!r}")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EncodingFailure(f"cannot create output directory {self.output_dir}: {e}") from e
        path = image_path_for(self.output_dir, identifier)
        encode_to_file(identifier, path, box_size=self.box_size, border=self.border)
        self.logger.debug(f"QR generated: {identifier} -> {path}")
        return path
