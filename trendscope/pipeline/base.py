"""
Abstract base class for pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and persists the run record with final status.
  4. ``_execute()`` is the stage-specific implementation (overridden by subclasses).

This keeps every scoring pass auditable, status transitions consistent
(started → success/failed), and error handling in one place — stages never
swallow exceptions.

Usage::

    class MyStage(PipelineStage):
        stage_name = "score"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    stage = MyStage(config=app_config)
    result = stage.run(source_path="data/signals/signals.csv")
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from trendscope.config import AppConfig
from trendscope.models.meta import RunMetadata
from trendscope.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name: String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
        db_path: Path to the SQLite database (defaults to ``config.database.db_path``).
        persist_runs: Whether run records are written to ``run_metadata``.
    """

    stage_name: str

    def __init__(
        self,
        config: AppConfig,
        db_path: str | None = None,
        persist_runs: bool = True,
    ) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path
        self.persist_runs = persist_runs

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``,
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        source = kwargs.get("source_path")
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            source_path=str(source) if source is not None else None,
            config_snapshot=self.config.model_dump(),
            started_at=utcnow(),
        )
        logger.info(
            "Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug
        )

        try:
            rows = self._execute(run=run, **kwargs)
            run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | rows=%d | rejected=%d | run_slug=%s",
                self.stage_name, rows, run.rows_rejected, run.run_slug,
            )

        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of records processed.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> None:
        """Persist the ``RunMetadata`` record to the database.

        Failures are logged, not raised: a broken audit write must not mask
        the original pipeline error.
        """
        if not self.persist_runs:
            return
        try:
            from trendscope.db.connection import get_connection
            from trendscope.db.repositories.run_repo import RunMetadataRepository
            from trendscope.db.schema import apply_schema

            with get_connection(
                self.db_path,
                wal_mode=self.config.database.wal_mode,
                busy_timeout_ms=self.config.database.busy_timeout_ms,
            ) as conn:
                apply_schema(conn)
                repo = RunMetadataRepository(conn)
                if run.run_id is None:
                    run.run_id = repo.insert_run(run)
                else:
                    repo.update_run(run)
        except Exception as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s",
                run.run_slug, exc,
            )
