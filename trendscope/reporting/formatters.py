"""
ASCII formatters for CLI output.

Each function returns a multi-line string; callers ``typer.echo`` it. The
formatters display computed fields exactly as stored and never re-derive
scores or ladders.
"""

from __future__ import annotations

from trendscope.models.trend import RejectedSignal, ScoredTrend


def format_ladder(ladder: tuple[float, float, float]) -> str:
    """Render a price ladder as ``5.85 → 7.20 → 9.00``."""
    return " → ".join(f"{p:.2f}" for p in ladder)


def format_ranked_table(
    ranked: list[ScoredTrend],
    title:  str = "Ranked Trends",
) -> str:
    """Format a ranked collection as an ASCII table.

    Example::

        Rank  Trend                 Platform  Velocity  Score  Margin  Price Ladder
        ----------------------------------------------------------------------------
           1  #LEDcollars           tiktok       450.0    100   23.1%  5.85 → 7.20 → 9.00

    Args:
        ranked: Trends already in rank order.
        title:  Heading line.

    Returns:
        Multi-line string.
    """
    lines: list[str] = ["", f"=== {title} ==="]

    if not ranked:
        lines.append("  (no scored trends — run 'trendscope score --file ...' first)")
        return "\n".join(lines)

    header = (
        f"  {'Rank':>4}  {'Trend':<24}  {'Platform':<8}  {'Velocity':>9}  "
        f"{'Score':>5}  {'Margin':>7}  Price Ladder"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 10))
    for rank, t in enumerate(ranked, start=1):
        lines.append(
            f"  {rank:>4}  {t.name[:24]:<24}  {t.platform.value:<8}  "
            f"{t.velocity:>9.1f}  {t.profit_score:>5}  {t.margin:>6.1f}%  "
            f"{format_ladder(t.price_ladder)}"
        )
    return "\n".join(lines)


def format_rejections(rejected: list[RejectedSignal]) -> str:
    """List skipped records with position and reason; empty string if none."""
    if not rejected:
        return ""
    lines = ["", f"Skipped {len(rejected)} record(s):"]
    for r in rejected:
        label = r.name or "<unnamed>"
        lines.append(f"  [{r.kind}] #{r.position} {label}: {r.reason}")
    return "\n".join(lines)
