"""
Export helpers for the ranked trend view.

All write functions create parent directories, write to disk, and return the
written ``Path``. CSV exports are flat (the price ladder becomes three
columns) so they load directly in a spreadsheet or pandas.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path

from trendscope.models.trend import ScoredTrend
from trendscope.utils.time_utils import to_iso_utc

EXPORT_FIELDNAMES = [
    "rank", "name", "platform", "velocity", "profit_score", "margin_pct",
    "price_low", "price_mid", "price_high", "cogs", "fees", "shipping",
    "created_at",
]


def trends_to_records(ranked: list[ScoredTrend]) -> list[dict]:
    """Flatten ranked trends into export rows, numbering ranks from 1."""
    records: list[dict] = []
    for rank, t in enumerate(ranked, start=1):
        low, mid, high = t.price_ladder
        records.append(
            {
                "rank":         rank,
                "name":         t.name,
                "platform":     t.platform.value,
                "velocity":     t.velocity,
                "profit_score": t.profit_score,
                "margin_pct":   round(t.margin, 4),
                "price_low":    low,
                "price_mid":    mid,
                "price_high":   high,
                "cogs":         t.cogs,
                "fees":         t.fees,
                "shipping":     t.shipping,
                "created_at":   to_iso_utc(t.created_at),
            }
        )
    return records


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order. Defaults to ``EXPORT_FIELDNAMES``.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    cols = fieldnames or EXPORT_FIELDNAMES
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_ranked(
    ranked: list[ScoredTrend],
    path: Path,
    fmt: str = "csv",
) -> Path:
    """Export a ranked collection as ``csv`` or ``json``.

    Raises:
        ValueError: On an unknown format.
    """
    records = trends_to_records(ranked)
    if fmt == "csv":
        return export_to_csv(records, path)
    if fmt == "json":
        return export_to_json({"count": len(records), "trends": records}, path)
    raise ValueError(f"Unknown export format '{fmt}'. Expected 'csv' or 'json'.")
