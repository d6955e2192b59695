"""
File-based signal source: CSV and JSON parsers for raw trend signals.

This is the ingestion collaborator for a scoring pass. Upstream collectors
(platform scrapers, exports, manual research sheets) drop a file; this
module turns it into validated ``RawSignal`` objects.

CSV format — comma delimited, with a header row. Required columns:
  name, platform, velocity, cogs, fees, shipping

JSON format — an array of objects with the same keys.

Valid platform values: any ``Platform.value`` (``tiktok``, ``etsy``, ``gumroad``).

Validation policy
-----------------
Structural problems fail the whole file (missing file, missing CSV columns,
JSON that is not an array). Row problems never do: the offending row is
skipped and reported as a ``RejectedSignal`` with its line number (CSV) or
1-based array index (JSON). A row is rejected when:

  - a required field is empty or not a number,
  - the platform is unknown,
  - the name is blank or any cost / velocity is negative,
  - the break-even floor (cogs + fees + shipping) is zero, so no positive
    price can be derived from it,
  - the name already appeared earlier in the same file (first one wins).
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from trendscope.errors import InvalidInputError
from trendscope.models.trend import RawSignal, RejectedSignal
from trendscope.taxonomy.platform_taxonomy import VALID_PLATFORMS, Platform

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = frozenset({"name", "platform", "velocity", "cogs", "fees", "shipping"})
_NUMERIC_FIELDS = ("velocity", "cogs", "fees", "shipping")


@dataclass
class SignalBatch:
    """Validated signals plus the rows that were skipped.

    Attributes:
        signals:  Valid signals with unique names, in file order.
        rejected: Skipped rows with position and reason.
        source:   File name the batch was read from (``""`` if in-memory).
    """

    signals:  list[RawSignal] = field(default_factory=list)
    rejected: list[RejectedSignal] = field(default_factory=list)
    source:   str = ""


def load_signals(path: Path) -> SignalBatch:
    """Load signals from a ``.csv`` or ``.json`` file (detected by extension).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On an unsupported extension or a structural file error.
    """
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return parse_signal_csv(path)
    if suffix == ".json":
        return parse_signal_json(path)
    raise ValueError(f"Unsupported signal file type '{suffix}'. Expected .csv or .json.")


def parse_signal_csv(path: Path) -> SignalBatch:
    """Parse a CSV file of raw signals.

    Args:
        path: Path to the CSV file (must exist).

    Returns:
        ``SignalBatch`` with valid signals and per-row rejections.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the header is absent or required columns are missing.
    """
    if not path.exists():
        raise FileNotFoundError(f"Signal CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = {c.strip() for c in reader.fieldnames}
        missing = REQUIRED_COLUMNS - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )

        rows = [
            (i + 2, {(k or "").strip(): v for k, v in row.items()})  # line 1 is the header
            for i, row in enumerate(reader)
        ]

    if not rows:
        logger.warning("Signal CSV is empty (header only): %s", path)

    batch = validate_signal_rows(rows)
    batch.source = path.name
    _log_batch(batch)
    return batch


def parse_signal_json(path: Path) -> SignalBatch:
    """Parse a JSON array of raw signal objects.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the document is not valid JSON or not an array.
    """
    if not path.exists():
        raise FileNotFoundError(f"Signal JSON file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path.name}: {exc}") from exc

    if not isinstance(data, list):
        raise ValueError(
            f"Expected a JSON array of signal objects in {path.name}, "
            f"got {type(data).__name__}."
        )

    batch = validate_signal_rows(enumerate(data, start=1))
    batch.source = path.name
    _log_batch(batch)
    return batch


def validate_signal_rows(rows: Iterable[tuple[int, Any]]) -> SignalBatch:
    """Validate positioned rows into a ``SignalBatch``.

    Args:
        rows: ``(position, mapping)`` pairs; position is reported on rejection.

    Returns:
        ``SignalBatch`` whose signals have unique names and positive floors.
    """
    batch = SignalBatch()
    seen: dict[str, int] = {}

    for position, row in rows:
        try:
            signal = signal_from_row(row)
            if signal.name in seen:
                raise InvalidInputError(
                    signal.name,
                    f"duplicate name in batch (first seen at position {seen[signal.name]})",
                )
        except InvalidInputError as exc:
            batch.rejected.append(
                RejectedSignal(
                    position=position,
                    name=exc.name,
                    kind="invalid_input",
                    reason=exc.reason,
                )
            )
            continue

        seen[signal.name] = position
        batch.signals.append(signal)

    return batch


def signal_from_row(row: Any) -> RawSignal:
    """Convert one CSV/JSON row into a validated, scoreable ``RawSignal``.

    Raises:
        InvalidInputError: On any missing, malformed, or out-of-range field,
            or a zero break-even floor.
    """
    if not isinstance(row, Mapping):
        raise InvalidInputError("", f"expected an object, got {type(row).__name__}")

    name = str(row.get("name", "") or "").strip()
    try:
        signal = RawSignal(
            name=_req(row, "name"),
            platform=_parse_platform(row),
            **{key: _parse_number(row, key) for key in _NUMERIC_FIELDS},
        )
    except ValidationError as exc:
        raise InvalidInputError(name, _first_error(exc)) from exc
    except ValueError as exc:
        raise InvalidInputError(name, str(exc)) from exc

    if signal.break_even <= 0:
        raise InvalidInputError(
            signal.name,
            "break-even floor (cogs + fees + shipping) is zero; no positive price can be derived",
        )
    return signal


# ── Private helpers ────────────────────────────────────────────────────────────

def _req(row: Mapping[str, Any], key: str) -> str:
    """Return a required string field, stripped; raise if empty."""
    v = str(row.get(key, "") or "").strip()
    if not v:
        raise ValueError(f"Required field '{key}' is empty.")
    return v


def _parse_number(row: Mapping[str, Any], key: str) -> float:
    """Parse a numeric field given as a number or a numeric string."""
    v = row.get(key)
    if isinstance(v, bool):
        raise ValueError(f"Invalid number for '{key}': {v!r}.")
    if isinstance(v, (int, float)):
        return float(v)
    text = str(v or "").strip()
    if not text:
        raise ValueError(f"Required numeric field '{key}' is empty.")
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"Invalid number for '{key}': '{text}'.")


def _parse_platform(row: Mapping[str, Any]) -> Platform:
    """Parse the platform field with a descriptive error."""
    raw = str(row.get("platform", "") or "").strip().lower()
    if not raw:
        raise ValueError("Required enum field 'platform' is empty.")
    try:
        return Platform(raw)
    except ValueError:
        valid = sorted(VALID_PLATFORMS)
        raise ValueError(f"Invalid platform value '{raw}'. Valid values: {valid}")


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = err.get("msg", str(exc))
    return f"{loc}: {msg}" if loc else msg


def _log_batch(batch: SignalBatch) -> None:
    logger.info(
        "Parsed %d signal(s) from %s (%d rejected)",
        len(batch.signals), batch.source, len(batch.rejected),
    )
    for rej in batch.rejected:
        logger.warning("Rejected %s at %d: %s", rej.name or "<unnamed>", rej.position, rej.reason)
