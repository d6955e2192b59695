"""
Trend scoring: converts a RawSignal into a ScoredTrend with a price ladder,
margin at the lowest tier, and a bounded composite profit score.

Score formula
-------------
    profit_score = clamp(round(velocity * 0.2 + margin * 2), 0, 100)

Both weighted terms are summed before rounding, and rounding happens before
the clamp. ``round`` is half-up (``x.5`` goes toward +infinity), not Python's
banker's rounding, so stored scores stay comparable with earlier passes.

Velocity and margin live on different natural ranges; the fixed weights and
the clamp fold them into one 0–100 ranking scalar. The score is
non-decreasing in both velocity and margin.

Margin is reported at ``price_ladder[0]`` only.

Batch behaviour
---------------
``score_signals()`` stamps every record of a batch with the same
``created_at`` instant. A ``ComputationGuardError`` on one record drops that
record into the rejected list; the rest of the batch is still scored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from trendscope.errors import ComputationGuardError
from trendscope.models.trend import RawSignal, RejectedSignal, ScoredTrend
from trendscope.scoring.pricing import compute_margin, generate_price_ladder
from trendscope.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

VELOCITY_WEIGHT = 0.2
MARGIN_WEIGHT = 2.0
SCORE_MIN = 0
SCORE_MAX = 100


@dataclass
class ScoringResult:
    """Outcome of scoring one batch of signals.

    Attributes:
        scored:   Successfully scored trends, in input order.
        rejected: Records whose scoring tripped a computation guard.
    """

    scored:   list[ScoredTrend] = field(default_factory=list)
    rejected: list[RejectedSignal] = field(default_factory=list)


def compute_profit_score(velocity: float, margin: float) -> int:
    """Blend velocity and margin into an integer score in ``[0, 100]``.

    Args:
        velocity: Non-negative signal strength.
        margin:   Margin percentage at the lowest ladder price.

    Returns:
        ``clamp(round_half_up(velocity * 0.2 + margin * 2), 0, 100)``.
    """
    raw = velocity * VELOCITY_WEIGHT + margin * MARGIN_WEIGHT
    return _clamp(_round_half_up(raw), SCORE_MIN, SCORE_MAX)


def score_signal(signal: RawSignal, now: Optional[datetime] = None) -> ScoredTrend:
    """Score a single raw signal.

    Args:
        signal: Validated raw signal.
        now:    Computation instant; defaults to the current UTC time.

    Returns:
        Fully populated ``ScoredTrend`` (``trend_id`` unset).

    Raises:
        ComputationGuardError: If the ladder floor is not a positive price, or
            cent rounding collapsed the ladder (sub-cent break-even floors).
    """
    ladder = generate_price_ladder(signal.cogs, signal.fees, signal.shipping)
    _check_ladder(ladder, signal.break_even)

    margin = compute_margin(ladder[0], signal.cogs, signal.fees, signal.shipping)

    return ScoredTrend(
        name=signal.name,
        platform=signal.platform,
        velocity=signal.velocity,
        cogs=signal.cogs,
        fees=signal.fees,
        shipping=signal.shipping,
        price_ladder=ladder,
        margin=margin,
        profit_score=compute_profit_score(signal.velocity, margin),
        created_at=now or utcnow(),
    )


def score_signals(
    signals: Iterable[RawSignal],
    now:     Optional[datetime] = None,
) -> ScoringResult:
    """Score a batch of signals, isolating per-record guard failures.

    Args:
        signals: Validated raw signals (names assumed unique in the batch).
        now:     Shared computation instant; defaults to the current UTC time.

    Returns:
        ``ScoringResult`` with scored trends and rejected records.
    """
    stamp = now or utcnow()
    result = ScoringResult()

    for position, signal in enumerate(signals, start=1):
        try:
            result.scored.append(score_signal(signal, now=stamp))
        except ComputationGuardError as exc:
            logger.warning("Skipping '%s': %s", signal.name, exc)
            result.rejected.append(
                RejectedSignal(
                    position=position,
                    name=signal.name,
                    kind="computation_guard",
                    reason=str(exc),
                )
            )

    logger.info(
        "Scored %d signal(s), %d rejected by computation guards",
        len(result.scored), len(result.rejected),
    )
    return result


# ── Helpers ───────────────────────────────────────────────────────────────────

def _check_ladder(ladder: tuple[float, float, float], floor: float) -> None:
    if ladder[0] <= 0:
        raise ComputationGuardError(
            f"Price ladder floor must be positive (break-even {floor}, ladder {list(ladder)})."
        )
    if any(b <= a for a, b in zip(ladder, ladder[1:])) or ladder[0] < floor:
        raise ComputationGuardError(
            f"Cent rounding collapsed the price ladder {list(ladder)} "
            f"for break-even {floor}."
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
