"""
Reconciliation: identity-keyed merge of freshly scored trends into the
persisted collection, followed by a deterministic ranking.

Merge policy
------------
Identity is the trend ``name``.

- Same name already stored → the stored record is replaced in place. Every
  field is overwritten (``created_at`` included); only the storage identity
  (``trend_id``) is kept.
- New name → inserted.
- Records are never deleted here.

Ranking
-------
``profit_score`` descending, then ``name`` ascending. This is a total order,
so two passes over the same data always produce the same ranking.

Stores
------
``TrendStore`` is the persistence contract: ``load_all()`` and an atomic
``upsert_batch()``. ``reconcile_with_store()`` drives one pass against any
store and re-reads after writing, so the returned ranking includes the
pass's own writes. Store failures propagate as ``PersistenceError``; nothing
is retried here.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Protocol

from trendscope.models.trend import ScoredTrend

logger = logging.getLogger(__name__)


class TrendStore(Protocol):
    """Persistence collaborator for scored trends."""

    def load_all(self) -> list[ScoredTrend]:
        """Return every stored trend (any order)."""
        ...

    def upsert_batch(self, trends: list[ScoredTrend]) -> None:
        """Insert-or-replace ``trends`` by name; all applied or none."""
        ...


def rank_trends(trends: Iterable[ScoredTrend]) -> list[ScoredTrend]:
    """Sort trends by score descending, ties broken by name ascending."""
    return sorted(trends, key=lambda t: (-t.profit_score, t.name))


def reconcile(
    existing: Iterable[ScoredTrend],
    incoming: Iterable[ScoredTrend],
) -> list[ScoredTrend]:
    """Merge ``incoming`` into ``existing`` by name and return the ranking.

    Pure: neither argument is modified.

    Args:
        existing: Current persisted collection (at most one record per name).
        incoming: Freshly scored trends. A later record with a name already
                  seen in this batch replaces the earlier one.

    Returns:
        Merged collection, ranked by ``rank_trends()``.
    """
    merged: dict[str, ScoredTrend] = {t.name: t for t in existing}
    inserted = replaced = 0

    for trend in incoming:
        current = merged.get(trend.name)
        if current is None:
            merged[trend.name] = trend
            inserted += 1
        else:
            merged[trend.name] = trend.model_copy(update={"trend_id": current.trend_id})
            replaced += 1

    logger.debug("Reconciled batch: %d inserted, %d replaced", inserted, replaced)
    return rank_trends(merged.values())


def reconcile_with_store(
    store:    TrendStore,
    incoming: list[ScoredTrend],
) -> list[ScoredTrend]:
    """Run one reconciliation pass against ``store``.

    Args:
        store:    Persistence collaborator.
        incoming: Freshly scored trends.

    Returns:
        Full ranked collection as stored after this pass's writes.

    Raises:
        PersistenceError: If loading or the batch upsert fails. The store
            state is unknown afterwards.
    """
    before = {t.name for t in store.load_all()}
    store.upsert_batch(incoming)
    ranked = rank_trends(store.load_all())

    new_names = {t.name for t in incoming} - before
    logger.info(
        "Reconciled %d trend(s) into store: %d new, %d updated, %d total",
        len(incoming), len(new_names), len(incoming) - len(new_names), len(ranked),
    )
    return ranked


class InMemoryTrendStore:
    """Thread-safe in-process ``TrendStore``.

    Assigns ``trend_id`` values on first insert. A batch is applied under
    one lock acquisition, so concurrent passes are serialised and readers
    never observe half a batch.
    """

    def __init__(self, trends: Iterable[ScoredTrend] = ()) -> None:
        self._lock = threading.Lock()
        self._by_name: dict[str, ScoredTrend] = {}
        self._next_id = 1
        self.upsert_batch(list(trends))

    def load_all(self) -> list[ScoredTrend]:
        with self._lock:
            return list(self._by_name.values())

    def upsert_batch(self, trends: list[ScoredTrend]) -> None:
        with self._lock:
            staged = dict(self._by_name)
            next_id = self._next_id
            for trend in trends:
                current = staged.get(trend.name)
                if current is None:
                    staged[trend.name] = trend.model_copy(update={"trend_id": next_id})
                    next_id += 1
                else:
                    staged[trend.name] = trend.model_copy(
                        update={"trend_id": current.trend_id}
                    )
            self._by_name = staged
            self._next_id = next_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_name)
