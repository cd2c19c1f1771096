from __future__ import annotations

import json

import psycopg2
import pytest
from psycopg2 import sql

from variation_import.db.import_log import (
    STATUS_PENDING,
    STATUS_SUCCESS,
    ImportLogError,
    NullImportLog,
    PostgresImportLog,
    resolve_dsn,
)
from variation_import.models.config_models import DatabaseConfig


class DummyConnection:
    def __init__(self) -> None:
        self.commits = 0

    def commit(self) -> None:
        self.commits += 1


class DummyCursor:
    def __init__(self, fetched=None, fail: bool = False) -> None:
        self.connection = DummyConnection()
        self.executed: list[tuple] = []
        self.fetched = fetched if fetched is not None else [(17,)]
        self.fail = fail

    def execute(self, stmt, params=None):
        if self.fail:
            raise psycopg2.OperationalError("connection lost")
        self.executed.append((stmt, params))

    def fetchone(self):
        return self.fetched[0] if self.fetched else None


def _table_identifier(stmt) -> tuple[str, ...]:
    return next(p.strings for p in stmt.seq if isinstance(p, sql.Identifier))


def test_record_attempt_inserts_pending_row():
    cur = DummyCursor()
    log = PostgresImportLog(cur, table="variation_audit")
    log_id = log.record_attempt(5, "Color,Price\nRed,1", 1)
    assert log_id == 17
    stmt, params = cur.executed[0]
    assert _table_identifier(stmt) == ("variation_audit",)
    product_id, status, input_json, output_json = params
    assert (product_id, status) == (5, STATUS_PENDING)
    assert json.loads(input_json) == {"input": "Color,Price\nRed,1", "variations": 1}
    assert json.loads(output_json) == {}
    assert cur.connection.commits == 1


def test_update_outcome():
    cur = DummyCursor()
    PostgresImportLog(cur).update_outcome(17, STATUS_SUCCESS, {"created": [3]})
    stmt, params = cur.executed[0]
    assert _table_identifier(stmt) == ("bulk_variations_logs",)
    assert params[0] == STATUS_SUCCESS
    assert json.loads(params[1]) == {"created": [3]}
    assert params[2] == 17


def test_create_table_commits():
    cur = DummyCursor()
    PostgresImportLog(cur).create_table()
    assert len(cur.executed) == 1
    assert cur.connection.commits == 1


def test_database_errors_wrapped():
    log = PostgresImportLog(DummyCursor(fail=True))
    with pytest.raises(ImportLogError):
        log.record_attempt(1, "x", 0)
    with pytest.raises(ImportLogError):
        log.update_outcome(1, STATUS_SUCCESS, {})


def test_null_import_log():
    log = NullImportLog()
    assert log.record_attempt(1, "x", 1) is None
    assert log.update_outcome(1, STATUS_SUCCESS, {}) is None


def test_resolve_dsn_env_first(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://env/db")
    assert resolve_dsn(DatabaseConfig(dsn="dbname=cfg")) == "postgresql://env/db"


def test_resolve_dsn_config_dsn(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("PGDSN", raising=False)
    assert resolve_dsn(DatabaseConfig(dsn="dbname=cfg")) == "dbname=cfg"


def test_resolve_dsn_from_parts(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PGHOST", "db.internal")
    dsn = resolve_dsn(DatabaseConfig(port=6543, user="shop", password="pw", database="catalog"))
    assert dsn == "host=db.internal port=6543 user=shop dbname=catalog password=pw"
