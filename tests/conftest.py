# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from roster_qr.logging.init import reset_logging
from tests.helpers import FAMILY_ROWS, MEMBER_ROWS, make_workbook


@pytest.fixture(autouse=True)
def _fresh_logging(monkeypatch):
    # the stdout handler is bound at setup time; rebuild it so capsys sees output
    reset_logging()
    monkeypatch.delenv("ROSTER_QR_CONFIG", raising=False)
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def roster_workbook(temp_workdir: Path) -> Path:
    return make_workbook(
        temp_workdir / "record.xlsx",
        {"Members": MEMBER_ROWS, "Family": FAMILY_ROWS},
    )


@pytest.fixture()
def sample_config_yaml() -> str:
    return """workbook: ./record.xlsx
output_workbook: ./record_with_qrcode.xlsx
error_log_dir: ./logs
backup:
  strategy: fixed
  suffix: _backup
throttle:
  generation_every: 10
  generation_pause_sec: 0
  batch_size: 5
  batch_pause_sec: 0
passes:
  - worksheet: Members
    image_dir: ./member_qrcode
    target_column: G
  - worksheet: Family
    image_dir: ./family_qrcode
    target_column: G
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "illustrate.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
