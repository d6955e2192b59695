"""
SQLite schema DDL — all CREATE TABLE and CREATE INDEX statements.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is **idempotent**:
safe to call on an already-initialized database (e.g. after restart or in tests).

Tables:
  1. scored_trends  — one row per trend name; the reconciled collection.
  2. run_metadata   — audit log of scoring passes.

``scored_trends.name`` is UNIQUE: it is the reconciliation identity and the
conflict target of the batch upsert. ``price_ladder`` is stored as a JSON
array; timestamps are ISO 8601 UTC strings.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_SCORED_TRENDS = """
CREATE TABLE IF NOT EXISTS scored_trends (
    trend_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT    NOT NULL UNIQUE,
    platform        TEXT    NOT NULL,
    velocity        REAL    NOT NULL CHECK (velocity >= 0),
    cogs            REAL    NOT NULL CHECK (cogs >= 0),
    fees            REAL    NOT NULL CHECK (fees >= 0),
    shipping        REAL    NOT NULL CHECK (shipping >= 0),
    price_ladder    TEXT    NOT NULL,
    margin          REAL    NOT NULL,
    profit_score    INTEGER NOT NULL CHECK (profit_score BETWEEN 0 AND 100),
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_SCORED_TRENDS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_scored_trends_rank
    ON scored_trends (profit_score DESC, name ASC);
CREATE INDEX IF NOT EXISTS idx_scored_trends_platform
    ON scored_trends (platform);
"""

_DDL_RUN_METADATA = """
CREATE TABLE IF NOT EXISTS run_metadata (
    run_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    run_slug        TEXT    NOT NULL UNIQUE,
    pipeline_stage  TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'started',
    source_path     TEXT,
    config_snapshot TEXT    NOT NULL,
    rows_processed  INTEGER NOT NULL DEFAULT 0,
    rows_rejected   INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT    NOT NULL,
    finished_at     TEXT
);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_SCORED_TRENDS,
    _DDL_SCORED_TRENDS_INDEXES,
    _DDL_RUN_METADATA,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "scored_trends",
    "run_metadata",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent — safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted alphabetically."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
