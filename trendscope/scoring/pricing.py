"""
Break-even pricing: margin calculation and price ladder generation.

Both functions are pure — no I/O, no clock, deterministic for identical
inputs.

Price ladder
------------
    base   = cogs + fees + shipping          # break-even floor
    ladder = (round2(base * 1.3), round2(base * 1.6), round2(base * 2.0))

``round2`` rounds half-up to cents using decimal arithmetic on the float's
shortest repr, so binary noise such as ``5.8500000000000005`` lands on
``5.85`` rather than drifting with banker's rounding. An exact-decimal half
such as ``1.005`` therefore rounds to ``1.01``, where scaling by 100 in binary
floating point would give ``1.00``.

A floor too large to quantize to cents (around ``1e26`` and up, or one that
overflows to ``inf``) raises ``ComputationGuardError``.

A zero floor yields ``(0.0, 0.0, 0.0)``. That output is valid here, but a
margin cannot be computed against it.

Margin
------
    margin = ((price - cogs - fees - shipping) / price) * 100

Undefined for ``price <= 0``; raises ``ComputationGuardError`` instead of
returning ``inf`` or ``nan``.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from trendscope.errors import ComputationGuardError

LADDER_MULTIPLIERS: tuple[float, float, float] = (1.3, 1.6, 2.0)

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round ``value`` half-up to 2 decimal places.

    Raises:
        ComputationGuardError: If ``value`` is not finite or has too many
            digits to be expressed in cents.
    """
    if not math.isfinite(value):
        raise ComputationGuardError(f"Cannot round a non-finite price ({value}) to cents.")
    try:
        return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))
    except InvalidOperation as exc:
        raise ComputationGuardError(
            f"Price {value!r} is too large to round to cents."
        ) from exc


def break_even_floor(cogs: float, fees: float, shipping: float) -> float:
    return cogs + fees + shipping


def compute_margin(price: float, cogs: float, fees: float, shipping: float) -> float:
    """Percentage of ``price`` retained after all cost components.

    Args:
        price:    Retail price; must be strictly positive.
        cogs:     Cost of goods per unit.
        fees:     Platform / payment fees per unit.
        shipping: Shipping cost per unit.

    Returns:
        Margin percentage. Below 100 for any positive cost; negative when
        ``price`` is under the break-even floor.

    Raises:
        ComputationGuardError: If ``price <= 0``.
    """
    if price <= 0:
        raise ComputationGuardError(
            f"Cannot compute margin against a non-positive price ({price})."
        )
    return ((price - cogs - fees - shipping) / price) * 100.0


def generate_price_ladder(
    cogs:     float,
    fees:     float,
    shipping: float,
) -> tuple[float, float, float]:
    """Suggested retail prices at fixed markups over the break-even floor.

    Args:
        cogs:     Cost of goods per unit.
        fees:     Platform / payment fees per unit.
        shipping: Shipping cost per unit.

    Returns:
        Three prices in ascending multiplier order (1.3x, 1.6x, 2.0x).

    Raises:
        ComputationGuardError: If the floor is too large (or overflows) to be
            rounded to cents.
    """
    base = break_even_floor(cogs, fees, shipping)
    low, mid, high = (round2(base * m) for m in LADDER_MULTIPLIERS)
    return (low, mid, high)
