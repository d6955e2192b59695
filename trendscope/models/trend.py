"""
Trend signal and scored trend models.

``RawSignal`` is the unscored input for one trend in one scoring pass: what
was observed (name, platform, velocity) and what one unit costs to deliver
(cost of goods, platform fees, shipping).

``ScoredTrend`` is the derived, monetization-ready record: the signal plus
its price ladder, the margin at the ladder's lowest tier, a 0–100 profit
score and the instant it was computed. Presentation layers must display
these computed fields as-is and never re-derive them.

``RejectedSignal`` reports a record that was skipped, with the reason.

All three models are frozen. A trend's identity is its ``name``; the store
keeps at most one ``ScoredTrend`` per name.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from trendscope.taxonomy.platform_taxonomy import Platform

RejectionKind = Literal["invalid_input", "computation_guard"]


class RawSignal(BaseModel):
    """Unscored opportunity signal for a single micro-product trend.

    Attributes:
        name: Unique human-readable trend identifier, e.g. ``"#LEDcollars"``.
        platform: Platform the signal was observed on.
        velocity: Non-negative, unit-less signal strength.
        cogs: Cost of goods per unit.
        fees: Platform / payment fees per unit.
        shipping: Shipping cost per unit.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    name: str
    platform: Platform
    velocity: float
    cogs: float
    fees: float
    shipping: float

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must be a non-empty string.")
        return v

    @field_validator("velocity", "cogs", "fees", "shipping")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be non-negative, got {v}.")
        return v

    @property
    def break_even(self) -> float:
        """Sum of the cost components; the minimum viable price."""
        return self.cogs + self.fees + self.shipping


class ScoredTrend(BaseModel):
    """A raw signal enriched with its price ladder, margin, and profit score.

    Attributes:
        trend_id: Auto-assigned DB PK; ``None`` before insertion.
        name: Trend identifier; the reconciliation key.
        platform: Platform the signal was observed on.
        velocity: Signal strength carried over from the raw signal.
        cogs: Cost of goods per unit.
        fees: Platform / payment fees per unit.
        shipping: Shipping cost per unit.
        price_ladder: Three strictly increasing suggested retail prices,
            each at or above the break-even floor.
        margin: Percentage of the lowest ladder price retained after costs.
        profit_score: Composite ranking signal in ``[0, 100]``.
        created_at: UTC instant at which the record was computed.
    """

    model_config = ConfigDict(frozen=True)

    trend_id: Optional[int] = None
    name: str
    platform: Platform
    velocity: float
    cogs: float
    fees: float
    shipping: float
    price_ladder: tuple[float, float, float]
    margin: float
    profit_score: int
    created_at: datetime

    @field_validator("profit_score")
    @classmethod
    def validate_score_range(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"profit_score must be in [0, 100], got {v}.")
        return v

    @field_validator("created_at")
    @classmethod
    def validate_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("created_at must be timezone-aware.")
        return v

    @model_validator(mode="after")
    def validate_ladder(self) -> "ScoredTrend":
        floor = self.break_even
        ladder = self.price_ladder
        if any(b <= a for a, b in zip(ladder, ladder[1:])):
            raise ValueError(f"price_ladder must be strictly increasing, got {list(ladder)}.")
        if ladder[0] < floor:
            raise ValueError(
                f"price_ladder entries must be >= break-even floor {floor}, got {list(ladder)}."
            )
        return self

    @property
    def break_even(self) -> float:
        """Sum of the cost components; the minimum viable price."""
        return self.cogs + self.fees + self.shipping


class RejectedSignal(BaseModel):
    """A record skipped during validation or scoring.

    Attributes:
        position: 1-based line number in the source file, or batch index.
        name: Trend name if one could be read, else ``""``.
        kind: ``"invalid_input"`` or ``"computation_guard"``.
        reason: Human-readable failure description.
    """

    model_config = ConfigDict(frozen=True)

    position: int
    name: str = ""
    kind: RejectionKind
    reason: str
