"""
Pipeline run metadata — the audit log for scoring passes.

Every pipeline run records a complete ``config_snapshot`` (full AppConfig as
a dict) along with how many records were scored and how many were rejected,
so any pass can be reproduced and its input quality reviewed later.

``RunMetadata`` is the only Pydantic model in the system that is NOT frozen:
its ``status``, ``rows_processed``, ``rows_rejected``, ``error_message`` and
``finished_at`` fields are updated as the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"score"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_id: Auto-assigned DB PK; ``None`` before insertion.
        run_slug: UUID4 string uniquely identifying this run.
        pipeline_stage: Which stage produced this run record.
        status: Current execution status.
        source_path: Signal file consumed by the run, if any.
        config_snapshot: Full ``AppConfig.model_dump()`` at run start time.
        rows_processed: Count of records scored and reconciled.
        rows_rejected: Count of records skipped as invalid or unscoreable.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the run began.
        finished_at: UTC datetime when the run completed or failed.
    """

    model_config = ConfigDict(frozen=False)

    run_id: Optional[int] = None
    run_slug: str
    pipeline_stage: str
    status: str = "started"
    source_path: Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    rows_rejected: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v
