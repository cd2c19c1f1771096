from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_CONVERTIBLE_TYPES,
    DEFAULT_LOG_TABLE,
    DEFAULT_PRICE_TOLERANCE,
    AuditLogConfig,
    DatabaseConfig,
    ImporterConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against the bundled JSON schema (config/schema.json)
- Apply defaults for optional keys
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "ConfigError",
    "config_from_dict",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data violates it (unknown keys, wrong types, bad values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ImporterConfig:
    """Build an ImporterConfig from already-parsed data (validated first)."""
    _validate_config_schema(data)

    audit_raw = data.get("audit_log", {})
    db_raw = audit_raw.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImporterConfig(
        price_tolerance=float(data.get("price_tolerance", DEFAULT_PRICE_TOLERANCE)),
        convertible_types=frozenset(data.get("convertible_types", DEFAULT_CONVERTIBLE_TYPES)),
        catalog_path=data.get("catalog_path"),
        error_log_dir=data.get("error_log_dir", "./logs"),
        audit_log=AuditLogConfig(
            enabled=bool(audit_raw.get("enabled", False)),
            table=audit_raw.get("table", DEFAULT_LOG_TABLE),
            database=db,
        ),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImporterConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return config_from_dict(data)
