from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    MAX_IMAGE_BYTES,
    BackupConfig,
    BackupStrategy,
    PassConfig,
    PipelineConfig,
    QrConfig,
    ThrottleConfig,
)

"""Config loader.

Responsibilities:
- Load the YAML config (default config/illustrate.yml)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults and build PipelineConfig

Relative paths are kept as written and resolve against the working directory.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
    "SCHEMA_PATH",
    "resolve_config_path",
    "load_config",
    "build_config",
]

DEFAULT_CONFIG_PATH = Path("config/illustrate.yml")
CONFIG_ENV_VAR = "ROSTER_QR_CONFIG"
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def resolve_config_path(cli_value: str | None = None) -> Path:
    """--config wins, then $ROSTER_QR_CONFIG, then the default path."""
    if cli_value:
        return Path(cli_value)
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_CONFIG_PATH


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not valid JSON, or the data does not
            satisfy it (missing required keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        raise ConfigError(f"config validation failed: {e.message}" + (f" (at {where})" if where else "")) from e


def build_config(data: dict[str, Any]) -> PipelineConfig:
    """Build PipelineConfig from already validated data, applying defaults."""
    backup_raw = data.get("backup") or {}
    throttle_raw = data.get("throttle") or {}
    qr_raw = data.get("qr") or {}

    passes = [
        PassConfig(
            worksheet=p["worksheet"],
            image_dir=Path(p["image_dir"]),
            target_column=p.get("target_column", "G"),
            width=p.get("width", 50),
            height=p.get("height", 50),
            preserve_aspect_ratio=p.get("preserve_aspect_ratio", True),
            anchor=p.get("anchor", "roster"),
        )
        for p in data["passes"]
    ]
    output = data.get("output_workbook")
    return PipelineConfig(
        workbook=Path(data["workbook"]),
        passes=passes,
        output_workbook=Path(output) if output else None,
        backup=BackupConfig(
            strategy=BackupStrategy(backup_raw.get("strategy", BackupStrategy.FIXED.value)),
            suffix=backup_raw.get("suffix", "_backup"),
        ),
        throttle=ThrottleConfig(
            generation_every=throttle_raw.get("generation_every", 10),
            generation_pause_sec=float(throttle_raw.get("generation_pause_sec", 0.2)),
            batch_size=throttle_raw.get("batch_size", 5),
            batch_pause_sec=float(throttle_raw.get("batch_pause_sec", 0.1)),
        ),
        qr=QrConfig(
            box_size=qr_raw.get("box_size", 10),
            border=qr_raw.get("border", 4),
        ),
        max_image_bytes=data.get("max_image_bytes", MAX_IMAGE_BYTES),
        error_log_dir=Path(data.get("error_log_dir", "./logs")),
    )


def load_config(path: Path) -> PipelineConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return build_config(data)
