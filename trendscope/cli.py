"""
Trendscope — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (DB init, scoring pass, ranked read, export).
  5. Report result to stdout.

Install and run::

    pip install -e .
    trendscope --help
    trendscope init-db
    trendscope validate-config
    trendscope score --file data/signals/signals.csv
    trendscope rank --top 10 --platform etsy
    trendscope export --format json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="trendscope",
    help="Micro-product trend scoring — price ladders, margins, ranked profit scores.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from trendscope.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from trendscope.utils.logging import configure_logging
    configure_logging(config.logging)


def _parse_platform_or_exit(platform: Optional[str]):
    from trendscope.taxonomy.platform_taxonomy import VALID_PLATFORMS, Platform

    if platform is None:
        return None
    try:
        return Platform(platform.lower())
    except ValueError:
        valid = ", ".join(sorted(VALID_PLATFORMS))
        typer.echo(f"[ERROR] Unknown platform '{platform}'. Valid: {valid}", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Initialize the SQLite database and apply the full schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from trendscope.db.connection import get_connection
    from trendscope.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:  {config.database.db_path}")
    typer.echo(f"  Signals file:   {config.data.signals_file}")
    typer.echo(f"  Outputs dir:    {config.data.outputs_dir}")
    typer.echo(f"  Ranking top N:  {config.ranking.top_n}")
    typer.echo(f"  Log level:      {config.logging.level}")
    typer.echo(f"  Debug mode:     {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("score")
def score(
    signals_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="Signal file (.csv or .json). Defaults to config.data.signals_file.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Score and rank in memory; write nothing to the database.",
    ),
    export_dir: Optional[str] = typer.Option(
        None,
        "--export-dir",
        help="Also write the ranked view to this directory.",
    ),
    export_format: str = typer.Option(
        "csv",
        "--format",
        help="Export format when --export-dir is given: csv or json.",
    ),
) -> None:
    """Score a batch of raw signals and reconcile them into the ranked store.

    Invalid rows (negative costs, empty or duplicate names, zero break-even
    floor, unknown platform) are skipped and listed; the rest of the batch
    is still scored. Re-scoring a known trend name replaces its record.
    """
    from trendscope.errors import PersistenceError
    from trendscope.pipeline.score import ScoreStage
    from trendscope.reporting.formatters import format_ranked_table, format_rejections

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if export_format not in ("csv", "json"):
        typer.echo(f"[ERROR] Unknown export format '{export_format}'. Use csv or json.", err=True)
        raise typer.Exit(code=1)

    path = Path(signals_file) if signals_file else Path(config.data.signals_file)
    if not path.exists():
        typer.echo(f"[ERROR] Signals file not found: {path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Scoring signals from: {path}")
    stage = ScoreStage(config=config, db_path=db_path, persist_runs=not dry_run)

    try:
        run = stage.run(
            source_path=path,
            dry_run=dry_run,
            export_dir=export_dir,
            export_format=export_format,
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] Signal file rejected:\n{exc}", err=True)
        raise typer.Exit(code=1)
    except PersistenceError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=2)

    report = stage.last_report
    if report is None:
        typer.echo("[ERROR] Scoring pass finished without a report.", err=True)
        raise typer.Exit(code=2)

    typer.echo(f"  Scored:   {run.rows_processed}")
    typer.echo(f"  Rejected: {run.rows_rejected}")
    rejections = format_rejections(report.rejected)
    if rejections:
        typer.echo(rejections)

    typer.echo(format_ranked_table(report.ranked[: config.ranking.top_n]))

    if report.export_path is not None:
        typer.echo(f"\n  Exported: {report.export_path}")

    if dry_run:
        typer.echo("\n[DRY RUN] No trends written to database.")
    else:
        typer.echo("\n[OK] Trends reconciled.")


@app.command("rank")
def rank(
    top: Optional[int] = typer.Option(
        None,
        "--top",
        "-n",
        help="Number of trends to show (default: config.ranking.top_n).",
    ),
    platform: Optional[str] = typer.Option(
        None,
        "--platform",
        "-p",
        help="Only show trends from this platform.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the stored trends ranked by profit score."""
    from trendscope.db.connection import get_connection
    from trendscope.db.repositories.trend_repo import ScoredTrendRepository
    from trendscope.db.schema import apply_schema
    from trendscope.reporting.formatters import format_ranked_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if top is not None and top < 1:
        typer.echo("[ERROR] --top must be >= 1.", err=True)
        raise typer.Exit(code=1)
    plat = _parse_platform_or_exit(platform)

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        ranked = ScoredTrendRepository(conn).fetch_ranked(
            limit=top or config.ranking.top_n, platform=plat
        )

    title = f"Ranked Trends ({plat.value})" if plat else "Ranked Trends"
    typer.echo(format_ranked_table(ranked, title=title))


@app.command("export")
def export(
    fmt: str = typer.Option(
        "csv",
        "--format",
        help="Output format: csv or json.",
    ),
    out: Optional[str] = typer.Option(
        None,
        "--out",
        "-o",
        help="Destination file (default: <outputs_dir>/ranked_trends.<format>).",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Export the full ranked collection to a CSV or JSON file."""
    from trendscope.db.connection import get_connection
    from trendscope.db.repositories.trend_repo import ScoredTrendRepository
    from trendscope.db.schema import apply_schema
    from trendscope.reporting.export import export_ranked

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if fmt not in ("csv", "json"):
        typer.echo(f"[ERROR] Unknown export format '{fmt}'. Use csv or json.", err=True)
        raise typer.Exit(code=1)

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        ranked = ScoredTrendRepository(conn).fetch_ranked()

    target = Path(out) if out else Path(config.data.outputs_dir) / f"ranked_trends.{fmt}"
    written = export_ranked(ranked, target, fmt=fmt)
    typer.echo(f"  Exported {len(ranked)} trend(s) to {written}")
    typer.echo("[OK] Export complete.")


if __name__ == "__main__":
    app()
