from __future__ import annotations

import logging
from pathlib import Path

from ..errors import InadmissibleImage
from ..logging.init import get_logger
from ..models.config_models import MAX_IMAGE_BYTES

"""Image admission filter.

Checks run in this order and stop at the first failure:
    exists → size > 0 → size <= ceiling (10 MiB) → extension recognised
An inadmissible image is skipped by the caller, never fatal.
"""

__all__ = [
    "ADMISSIBLE_EXTENSIONS",
    "MAX_IMAGE_BYTES",
    "ensure_admissible",
    "is_admissible",
]

ADMISSIBLE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "bmp"})


def ensure_admissible(path: Path, max_bytes: int = MAX_IMAGE_BYTES) -> None:
    """Raise InadmissibleImage describing the first failed check."""
    path = Path(path)
    if not path.is_file():
        raise InadmissibleImage(f"image not found: {path}")
    size = path.stat().st_size
    if size <= 0:
        raise InadmissibleImage(f"image is empty: {path}")
    if size > max_bytes:
        raise InadmissibleImage(f"image too large ({size} > {max_bytes} bytes): {path}")
    ext = path.suffix.lower().lstrip(".")
    if ext not in ADMISSIBLE_EXTENSIONS:
        raise InadmissibleImage(f"unsupported image format '{ext or '<none>'}': {path}")


def is_admissible(
    path: Path,
    logger: logging.Logger | None = None,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> bool:
    try:
        ensure_admissible(path, max_bytes=max_bytes)
    except InadmissibleImage as e:
        (logger or get_logger()).warning(f"image skipped: {e}")
        return False
    except OSError as e:
        (logger or get_logger()).warning(f"image skipped, cannot stat {path}: {e}")
        return False
    return True

