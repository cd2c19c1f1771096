from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the bulk variation importer.

Built from YAML by variation_import.config.loader, or directly via
ImporterConfig.default() when the engine is embedded in another program.
"""

DEFAULT_PRICE_TOLERANCE = 0.01
DEFAULT_CONVERTIBLE_TYPES = ("simple", "grouped", "external")
DEFAULT_LOG_TABLE = "bulk_variations_logs"


@dataclass(frozen=True)
class DatabaseConfig:
    """Audit log database connection settings.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class AuditLogConfig:
    enabled: bool = False
    table: str = DEFAULT_LOG_TABLE
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


@dataclass(frozen=True)
class ImporterConfig:
    """Root configuration object for preview/import runs."""
    price_tolerance: float = DEFAULT_PRICE_TOLERANCE  # |old - new| below this = same price
    convertible_types: frozenset[str] = frozenset(DEFAULT_CONVERTIBLE_TYPES)
    catalog_path: str | None = None  # JSON store used by the CLI catalog
    error_log_dir: str = "./logs"
    audit_log: AuditLogConfig = field(default_factory=AuditLogConfig)

    @staticmethod
    def default() -> ImporterConfig:
        return ImporterConfig()
