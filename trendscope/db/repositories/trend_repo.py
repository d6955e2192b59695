"""
Repository for scored trends — the SQLite implementation of ``TrendStore``.

Batch atomicity
---------------
``upsert_batch()`` applies a whole batch inside one transaction. When the
connection has no transaction open it issues ``BEGIN IMMEDIATE``, which takes
the database write lock up front: a concurrent pass blocks (up to the busy
timeout) instead of interleaving its upserts with ours. When the caller
already holds a transaction the batch runs inside a SAVEPOINT, so it can
still be undone on its own.

Any ``sqlite3.Error`` rolls the batch back and is re-raised as
``PersistenceError``. Nothing is retried here.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional

from trendscope.db.repositories.base import BaseRepository
from trendscope.errors import PersistenceError
from trendscope.models.trend import ScoredTrend
from trendscope.taxonomy.platform_taxonomy import Platform
from trendscope.utils.time_utils import parse_iso_utc, to_iso_utc

logger = logging.getLogger(__name__)

_UPSERT_SQL = """
INSERT INTO scored_trends (
    name, platform, velocity, cogs, fees, shipping,
    price_ladder, margin, profit_score, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
ON CONFLICT(name) DO UPDATE SET
    platform     = excluded.platform,
    velocity     = excluded.velocity,
    cogs         = excluded.cogs,
    fees         = excluded.fees,
    shipping     = excluded.shipping,
    price_ladder = excluded.price_ladder,
    margin       = excluded.margin,
    profit_score = excluded.profit_score,
    created_at   = excluded.created_at,
    updated_at   = excluded.updated_at;
"""


class ScoredTrendRepository(BaseRepository):
    """Read/write access to the ``scored_trends`` table."""

    def load_all(self) -> list[ScoredTrend]:
        """Return every stored trend, ordered by ``trend_id``.

        Raises:
            PersistenceError: If the query fails.
        """
        try:
            rows = self.fetchall("SELECT * FROM scored_trends ORDER BY trend_id;")
        except sqlite3.Error as exc:
            raise PersistenceError("load_all", str(exc)) from exc
        return [_row_to_trend(r) for r in rows]

    def upsert_batch(self, trends: list[ScoredTrend]) -> None:
        """Insert or replace ``trends`` by name, atomically.

        Existing rows keep their ``trend_id``; every other column is
        overwritten, ``created_at`` included.

        Args:
            trends: Scored trends to persist.

        Raises:
            PersistenceError: If any statement fails. No row of the batch
                is left applied.
        """
        if not trends:
            return

        params = [_trend_to_params(t) for t in trends]
        own_txn = not self.conn.in_transaction

        try:
            if own_txn:
                self.execute("BEGIN IMMEDIATE;")
            else:
                self.execute("SAVEPOINT upsert_batch;")

            self.executemany(_UPSERT_SQL, params)

            if own_txn:
                self.conn.commit()
            else:
                self.execute("RELEASE SAVEPOINT upsert_batch;")

        except sqlite3.Error as exc:
            if own_txn:
                self.conn.rollback()
            else:
                self.execute("ROLLBACK TO SAVEPOINT upsert_batch;")
                self.execute("RELEASE SAVEPOINT upsert_batch;")
            logger.error("Batch upsert of %d trend(s) failed: %s", len(trends), exc)
            raise PersistenceError("upsert_batch", str(exc)) from exc

        logger.debug("Upserted batch of %d trend(s)", len(trends))

    def get_by_name(self, name: str) -> Optional[ScoredTrend]:
        """Fetch a single trend by its name, or ``None`` if absent."""
        row = self.fetchone("SELECT * FROM scored_trends WHERE name = ?;", (name,))
        return _row_to_trend(row) if row else None

    def fetch_ranked(
        self,
        limit:    Optional[int] = None,
        platform: Optional[Platform] = None,
    ) -> list[ScoredTrend]:
        """Return trends ranked by score descending, then name ascending.

        Args:
            limit:    Maximum number of rows; ``None`` for all.
            platform: Restrict to one platform.

        Returns:
            Ranked list of ``ScoredTrend``.
        """
        sql = "SELECT * FROM scored_trends"
        params: list = []
        if platform is not None:
            sql += " WHERE platform = ?"
            params.append(platform.value)
        sql += " ORDER BY profit_score DESC, name ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [_row_to_trend(r) for r in self.fetchall(sql + ";", tuple(params))]

    def count(self) -> int:
        row = self.fetchone("SELECT COUNT(*) AS n FROM scored_trends;")
        return int(row["n"]) if row else 0


# ── Row mappers ───────────────────────────────────────────────────────────────

def _trend_to_params(trend: ScoredTrend) -> tuple:
    return (
        trend.name,
        trend.platform.value,
        trend.velocity,
        trend.cogs,
        trend.fees,
        trend.shipping,
        json.dumps(list(trend.price_ladder)),
        trend.margin,
        trend.profit_score,
        to_iso_utc(trend.created_at),
    )


def _row_to_trend(row: sqlite3.Row) -> ScoredTrend:
    return ScoredTrend(
        trend_id=row["trend_id"],
        name=row["name"],
        platform=Platform(row["platform"]),
        velocity=row["velocity"],
        cogs=row["cogs"],
        fees=row["fees"],
        shipping=row["shipping"],
        price_ladder=tuple(json.loads(row["price_ladder"])),
        margin=row["margin"],
        profit_score=row["profit_score"],
        created_at=parse_iso_utc(row["created_at"]),
    )
