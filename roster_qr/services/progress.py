from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""QR generation progress bar (tqdm, TTY only).

One bar per pass, advanced once per roster identifier. With redirected output
(CI, log files) no bar is created and only the counters are kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Counts generated / failed identifiers and mirrors them on a tqdm bar."""

    def __init__(self, total: int, *, description: str = "Generating", unit: str = "img") -> None:
        self.total = total
        self.description = description
        self.current = 0
        self.failed = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = self._open(unit) if self.enabled else None

    def _open(self, unit: str) -> TqdmType[Any]:
        return tqdm(
            total=self.total,
            desc=self.description,
            unit=unit,
            disable=False,
            leave=True,
            position=0,
            ncols=80,
            ascii=True,
        )

    def advance(self, label: str | None = None, *, ok: bool = True) -> None:
        """Record one identifier; ``label`` is shown next to the description."""
        self.current += 1
        if not ok:
            self.failed += 1
        if self.pbar is None:
            return
        if label:
            self.pbar.set_description(f"{self.description} ({label})")
        self.pbar.set_postfix(ok=self.current - self.failed, failed=self.failed)
        self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.set_description(self.description)
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
