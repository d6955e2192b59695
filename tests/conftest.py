"""
Shared pytest fixtures for the Trendscope test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``fixed_now``: A deterministic, timezone-aware computation instant.
  - Sample raw signals mirroring typical TikTok / Etsy / Gumroad inputs.
  - ``write_signal_csv``: Factory writing a signals CSV into ``tmp_path``.
"""

from __future__ import annotations

import csv
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from trendscope.db.schema import apply_schema
from trendscope.models.trend import RawSignal
from trendscope.taxonomy.platform_taxonomy import Platform

SIGNAL_COLUMNS = ["name", "platform", "velocity", "cogs", "fees", "shipping"]


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


# ── Sample domain objects ─────────────────────────────────────────────────────

@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def led_collars() -> RawSignal:
    """base = 4.5 → ladder (5.85, 7.2, 9.0); velocity 450 pushes the score to the clamp."""
    return RawSignal(
        name="#LEDcollars",
        platform=Platform.TIKTOK,
        velocity=450,
        cogs=2.5,
        fees=0.8,
        shipping=1.2,
    )


@pytest.fixture
def tiny_hats() -> RawSignal:
    """base = 3.4 → ladder (4.42, 5.44, 6.8)."""
    return RawSignal(
        name="#tinyhats",
        platform=Platform.ETSY,
        velocity=310,
        cogs=1.8,
        fees=0.6,
        shipping=1.0,
    )


@pytest.fixture
def ai_stickers() -> RawSignal:
    """base = 1.0 → ladder (1.3, 1.6, 2.0)."""
    return RawSignal(
        name="#AIstickers",
        platform=Platform.GUMROAD,
        velocity=280,
        cogs=0.5,
        fees=0.3,
        shipping=0.2,
    )


@pytest.fixture
def write_signal_csv(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory that writes rows to ``tmp_path/<filename>`` as CSV."""

    def _write(rows: list[dict], filename: str = "signals.csv", columns=None) -> Path:
        path = tmp_path / filename
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=columns or SIGNAL_COLUMNS)
            writer.writeheader()
            writer.writerows(rows)
        return path

    return _write
