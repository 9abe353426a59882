from __future__ import annotations

from pathlib import Path

import pytest

from roster_qr.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    build_config,
    load_config,
    resolve_config_path,
)
from roster_qr.models.config_models import MAX_IMAGE_BYTES, BackupStrategy


def test_load_sample_config(write_config: Path):
    cfg = load_config(write_config)

    assert cfg.workbook == Path("record.xlsx")
    assert cfg.illustrated_workbook == Path("record_with_qrcode.xlsx")
    assert [p.worksheet for p in cfg.passes] == ["Members", "Family"]
    assert cfg.passes[0].image_dir == Path("member_qrcode")
    assert cfg.passes[0].target_column == "G"
    assert (cfg.passes[0].width, cfg.passes[0].height) == (50, 50)
    assert cfg.backup.strategy is BackupStrategy.FIXED
    assert cfg.throttle.generation_pause_sec == 0
    assert cfg.throttle.batch_size == 5


def test_defaults_applied(tmp_path: Path):
    cfg_file = tmp_path / "c.yml"
    cfg_file.write_text("workbook: ./record.xlsx\npasses:\n  - worksheet: 1\n    image_dir: ./qr\n", encoding="utf-8")

    cfg = load_config(cfg_file)

    assert cfg.passes[0].worksheet == 1
    assert cfg.passes[0].anchor == "roster"
    assert cfg.passes[0].preserve_aspect_ratio is True
    assert cfg.output_workbook is None
    assert cfg.illustrated_workbook == Path("record_with_qrcode.xlsx")
    assert cfg.throttle.generation_every == 10
    assert cfg.throttle.generation_pause_sec == 0.2
    assert cfg.throttle.batch_pause_sec == 0.1
    assert (cfg.qr.box_size, cfg.qr.border) == (10, 4)
    assert cfg.max_image_bytes == MAX_IMAGE_BYTES
    assert cfg.error_log_dir == Path("logs")


def test_timestamp_backup_strategy():
    cfg = build_config(
        {
            "workbook": "r.xlsx",
            "passes": [{"worksheet": "S", "image_dir": "q"}],
            "backup": {"strategy": "timestamp"},
        }
    )
    assert cfg.backup.strategy is BackupStrategy.TIMESTAMP
    assert cfg.backup.suffix == "_backup"


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(tmp_path / "nope.yml")


def test_invalid_yaml(tmp_path: Path):
    f = tmp_path / "c.yml"
    f.write_text("workbook: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(f)


def test_root_must_be_mapping(tmp_path: Path):
    f = tmp_path / "c.yml"
    f.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(f)


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("workbook: r.xlsx\n", "'passes' is a required property"),
        ("workbook: r.xlsx\npasses: []\n", "passes"),
        ("workbook: r.xlsx\npasses:\n  - worksheet: S\n    image_dir: q\n    target_column: g\n", "target_column"),
        ("workbook: r.xlsx\npasses:\n  - worksheet: 0\n    image_dir: q\n", "worksheet"),
        ("workbook: r.xlsx\npasses:\n  - worksheet: S\n    image_dir: q\n    anchor: nearest\n", "anchor"),
        ("workbook: r.xlsx\nsource_directory: ./data\npasses:\n  - worksheet: S\n    image_dir: q\n", "source_directory"),
        ("workbook: r.xlsx\nthrottle:\n  batch_size: 0\npasses:\n  - worksheet: S\n    image_dir: q\n", "batch_size"),
    ],
)
def test_schema_violations(tmp_path: Path, body: str, fragment: str):
    f = tmp_path / "c.yml"
    f.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed") as exc:
        load_config(f)
    assert fragment in str(exc.value)


def test_resolve_config_path_precedence(monkeypatch):
    assert resolve_config_path(None) == DEFAULT_CONFIG_PATH
    monkeypatch.setenv(CONFIG_ENV_VAR, "/etc/roster.yml")
    assert resolve_config_path(None) == Path("/etc/roster.yml")
    assert resolve_config_path("cli.yml") == Path("cli.yml")
