"""
ScoreStage — one end-to-end scoring pass.

Steps:
  1. Load and validate raw signals from a CSV/JSON file.
  2. Score the valid signals (price ladder, margin, profit score).
  3. Reconcile the scored batch into the SQLite store (atomic upsert by name)
     and read back the full ranked collection.
  4. Optionally export the ranked view to ``export_dir``.

Dry runs skip every write: the batch is merged in memory against the
current store contents and no run record is persisted.

The outcome of the last pass is kept on ``stage.last_report``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from trendscope.db.connection import get_connection
from trendscope.db.repositories.trend_repo import ScoredTrendRepository
from trendscope.db.schema import apply_schema, get_existing_tables
from trendscope.ingestion.signal_file import load_signals
from trendscope.models.meta import RunMetadata
from trendscope.models.trend import RejectedSignal, ScoredTrend
from trendscope.pipeline.base import PipelineStage
from trendscope.reporting.export import export_ranked
from trendscope.scoring.reconciler import reconcile, reconcile_with_store
from trendscope.scoring.scorer import score_signals
from trendscope.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ScoreReport:
    """Outcome of one scoring pass.

    Attributes:
        scored:      Trends scored in this pass.
        rejected:    Records skipped at validation or scoring.
        ranked:      Full collection after reconciliation, in rank order.
        export_path: File written by the export step, if any.
    """

    scored:      list[ScoredTrend] = field(default_factory=list)
    rejected:    list[RejectedSignal] = field(default_factory=list)
    ranked:      list[ScoredTrend] = field(default_factory=list)
    export_path: Optional[Path] = None


class ScoreStage(PipelineStage):
    """Load → score → reconcile → (export)."""

    stage_name = "score"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.last_report: Optional[ScoreReport] = None

    def _execute(
        self,
        run: RunMetadata,
        source_path: Path | str | None = None,
        dry_run: bool = False,
        export_dir: Path | str | None = None,
        export_format: str = "csv",
        **kwargs,
    ) -> int:
        path = Path(source_path or self.config.data.signals_file)
        batch = load_signals(path)

        result = score_signals(batch.signals)
        report = ScoreReport(
            scored=result.scored,
            rejected=batch.rejected + result.rejected,
        )

        if dry_run:
            report.ranked = reconcile(self._load_existing(), result.scored)
            logger.info("Dry run: %d trend(s) merged in memory, store untouched", len(report.ranked))
        else:
            with get_connection(
                self.db_path,
                wal_mode=self.config.database.wal_mode,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
            ) as conn:
                apply_schema(conn)
                report.ranked = reconcile_with_store(ScoredTrendRepository(conn), result.scored)

        if export_dir is not None:
            stamp = utcnow().strftime("%Y%m%dT%H%M%SZ")
            out = Path(export_dir) / f"ranked_trends_{stamp}.{export_format}"
            report.export_path = export_ranked(report.ranked, out, fmt=export_format)
            logger.info("Ranked view exported to %s", report.export_path)

        run.rows_rejected = len(report.rejected)
        self.last_report = report
        return len(report.scored)

    def _load_existing(self) -> list[ScoredTrend]:
        """Read the store without creating or modifying it."""
        if self.db_path != ":memory:" and not Path(self.db_path).exists():
            return []
        with get_connection(
            self.db_path,
            wal_mode=False,
            busy_timeout_ms=self.config.database.busy_timeout_ms,
        ) as conn:
            if "scored_trends" not in get_existing_tables(conn):
                return []
            return ScoredTrendRepository(conn).load_all()
