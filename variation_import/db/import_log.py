from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

import psycopg2
from psycopg2 import sql

from ..models.config_models import AuditLogConfig, DatabaseConfig

"""Audit log of import attempts.

Each import records the raw input before writing (status 'pending') and the
outcome afterwards ('success' / 'error'). The PostgreSQL store keeps one row
per attempt with JSON payloads; NullImportLog is used when auditing is off.
"""

__all__ = [
    "ImportLog",
    "ImportLogError",
    "NullImportLog",
    "PostgresImportLog",
    "STATUS_ERROR",
    "STATUS_PENDING",
    "STATUS_SUCCESS",
    "audit_log_connection",
    "resolve_dsn",
]

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class ImportLogError(Exception):
    pass


class ImportLog(Protocol):
    def record_attempt(self, product_id: int, input_text: str, row_count: int) -> int | None: ...

    def update_outcome(self, log_id: int, status: str, summary: dict[str, Any]) -> None: ...


class NullImportLog:
    """Audit log that records nothing."""

    def record_attempt(self, product_id: int, input_text: str, row_count: int) -> int | None:
        return None

    def update_outcome(self, log_id: int, status: str, summary: dict[str, Any]) -> None:
        return None


class PostgresImportLog:
    """psycopg2-backed audit log.

    The cursor's connection is committed after each statement so that the
    'pending' row survives even if the import itself crashes.
    """

    def __init__(self, cursor: Any, table: str = "bulk_variations_logs") -> None:
        self.cursor = cursor
        self.table = table

    def _commit(self) -> None:
        conn = getattr(self.cursor, "connection", None)
        if conn is not None:
            conn.commit()

    def create_table(self) -> None:
        stmt = sql.SQL(
            "CREATE TABLE IF NOT EXISTS {table} ("
            " id BIGSERIAL PRIMARY KEY,"
            " product_id BIGINT NOT NULL,"
            " status VARCHAR(20) NOT NULL DEFAULT 'pending',"
            " input_data JSONB NOT NULL,"
            " output_data JSONB,"
            " created_at TIMESTAMPTZ NOT NULL DEFAULT now()"
            ")"
        ).format(table=sql.Identifier(self.table))
        try:
            self.cursor.execute(stmt)
            self._commit()
        except psycopg2.Error as e:
            raise ImportLogError(f"failed creating {self.table}: {e}") from e

    def record_attempt(self, product_id: int, input_text: str, row_count: int) -> int | None:
        stmt = sql.SQL(
            "INSERT INTO {table} (product_id, status, input_data, output_data)"
            " VALUES (%s, %s, %s, %s) RETURNING id"
        ).format(table=sql.Identifier(self.table))
        payload = json.dumps({"input": input_text, "variations": row_count}, ensure_ascii=False)
        try:
            self.cursor.execute(stmt, (product_id, STATUS_PENDING, payload, json.dumps({})))
            row = self.cursor.fetchone()
            self._commit()
        except psycopg2.Error as e:
            raise ImportLogError(f"failed recording import attempt: {e}") from e
        return int(row[0]) if row else None

    def update_outcome(self, log_id: int, status: str, summary: dict[str, Any]) -> None:
        stmt = sql.SQL("UPDATE {table} SET status = %s, output_data = %s WHERE id = %s").format(
            table=sql.Identifier(self.table)
        )
        try:
            self.cursor.execute(stmt, (status, json.dumps(summary, ensure_ascii=False), log_id))
            self._commit()
        except psycopg2.Error as e:
            raise ImportLogError(f"failed updating import log {log_id}: {e}") from e


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection string, environment first.

    Priority:
        1. DATABASE_URL / PGDSN
        2. dsn from config
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back
           to the individual config fields
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def audit_log_connection(cfg: AuditLogConfig) -> Iterator[PostgresImportLog]:  # pragma: no cover (thin wrapper)
    """Open a connection and yield a PostgresImportLog bound to it."""
    try:
        conn = psycopg2.connect(resolve_dsn(cfg.database))
    except psycopg2.Error as e:
        raise ImportLogError(f"failed connecting to audit log database: {e}") from e
    try:
        cur = conn.cursor()
        try:
            log = PostgresImportLog(cur, table=cfg.table)
            log.create_table()
            yield log
        finally:
            cur.close()
    finally:
        conn.close()
