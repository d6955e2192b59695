"""
Tests for ScoredTrendRepository.

What we test
------------
  - upsert_batch / load_all round trip preserves every field.
  - Replacing by name keeps trend_id and overwrites the rest.
  - fetch_ranked orders by score desc then name asc; limit and platform filter.
  - A failing statement mid-batch leaves none of the batch applied.
  - Inside a caller transaction the batch is undone on its own (savepoint).
  - Two connections reconciling the same names never duplicate rows.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from trendscope.db.connection import get_connection
from trendscope.db.repositories.trend_repo import ScoredTrendRepository
from trendscope.db.schema import apply_schema
from trendscope.errors import PersistenceError
from trendscope.models.trend import ScoredTrend
from trendscope.scoring.reconciler import reconcile_with_store
from trendscope.scoring.scorer import score_signal
from trendscope.taxonomy.platform_taxonomy import Platform

_T0 = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _trend(name: str, score: int, platform: Platform = Platform.TIKTOK) -> ScoredTrend:
    return ScoredTrend(
        name=name,
        platform=platform,
        velocity=100.0,
        cogs=0.5,
        fees=0.3,
        shipping=0.2,
        price_ladder=(1.3, 1.6, 2.0),
        margin=23.08,
        profit_score=score,
        created_at=_T0,
    )


def _out_of_range(name: str) -> ScoredTrend:
    """A record the CHECK constraint rejects (bypasses model validation)."""
    return ScoredTrend.model_construct(**{**_trend(name, 50).model_dump(), "profit_score": 150})


class TestUpsertAndLoad:
    def test_round_trip(self, in_memory_db, led_collars, fixed_now):
        repo = ScoredTrendRepository(in_memory_db)
        trend = score_signal(led_collars, now=fixed_now)
        repo.upsert_batch([trend])

        loaded = repo.load_all()
        assert len(loaded) == 1
        assert loaded[0].trend_id is not None
        assert loaded[0] == trend.model_copy(update={"trend_id": loaded[0].trend_id})

    def test_replace_keeps_id(self, in_memory_db):
        repo = ScoredTrendRepository(in_memory_db)
        repo.upsert_batch([_trend("#a", 10), _trend("#b", 20)])
        original_id = repo.get_by_name("#a").trend_id

        later = _trend("#a", 90).model_copy(update={"created_at": _T0 + timedelta(days=1)})
        repo.upsert_batch([later])

        assert repo.count() == 2
        stored = repo.get_by_name("#a")
        assert stored.trend_id == original_id
        assert stored.profit_score == 90
        assert stored.created_at == _T0 + timedelta(days=1)

    def test_empty_batch_is_noop(self, in_memory_db):
        repo = ScoredTrendRepository(in_memory_db)
        repo.upsert_batch([])
        assert repo.count() == 0

    def test_get_by_name_missing(self, in_memory_db):
        assert ScoredTrendRepository(in_memory_db).get_by_name("#nope") is None


class TestFetchRanked:
    @pytest.fixture
    def repo(self, in_memory_db) -> ScoredTrendRepository:
        repo = ScoredTrendRepository(in_memory_db)
        repo.upsert_batch([
            _trend("zeta", 70),
            _trend("alpha", 70, Platform.ETSY),
            _trend("top", 95, Platform.GUMROAD),
            _trend("low", 5, Platform.ETSY),
        ])
        return repo

    def test_order(self, repo):
        assert [t.name for t in repo.fetch_ranked()] == ["top", "alpha", "zeta", "low"]

    def test_limit(self, repo):
        assert [t.name for t in repo.fetch_ranked(limit=2)] == ["top", "alpha"]

    def test_platform_filter(self, repo):
        ranked = repo.fetch_ranked(platform=Platform.ETSY)
        assert [t.name for t in ranked] == ["alpha", "low"]


class TestBatchAtomicity:
    def test_failure_mid_batch_applies_nothing(self, in_memory_db):
        repo = ScoredTrendRepository(in_memory_db)
        repo.upsert_batch([_trend("#kept", 40)])

        with pytest.raises(PersistenceError) as exc_info:
            repo.upsert_batch([_trend("#new", 60), _trend("#kept", 99), _out_of_range("#bad")])

        assert exc_info.value.operation == "upsert_batch"
        assert [t.name for t in repo.load_all()] == ["#kept"]
        assert repo.get_by_name("#kept").profit_score == 40
        assert not in_memory_db.in_transaction

    def test_savepoint_inside_caller_transaction(self, in_memory_db):
        repo = ScoredTrendRepository(in_memory_db)
        in_memory_db.execute("BEGIN;")
        repo.upsert_batch([_trend("#first", 10)])

        with pytest.raises(PersistenceError):
            repo.upsert_batch([_trend("#second", 20), _out_of_range("#bad")])

        assert in_memory_db.in_transaction
        in_memory_db.commit()
        assert [t.name for t in repo.load_all()] == ["#first"]


class TestConcurrentPasses:
    def test_no_duplicates_across_connections(self, tmp_path):
        db_path = str(tmp_path / "trends.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)

        names = [f"#t{i}" for i in range(10)]

        def _pass(score: int) -> int:
            with get_connection(db_path, busy_timeout_ms=10000) as conn:
                ranked = reconcile_with_store(
                    ScoredTrendRepository(conn), [_trend(n, score) for n in names]
                )
            return len(ranked)

        with ThreadPoolExecutor(max_workers=4) as pool:
            sizes = list(pool.map(_pass, range(0, 80, 10)))

        assert all(size == len(names) for size in sizes)
        with get_connection(db_path) as conn:
            repo = ScoredTrendRepository(conn)
            assert repo.count() == len(names)
            assert len({t.profit_score for t in repo.load_all()}) == 1
