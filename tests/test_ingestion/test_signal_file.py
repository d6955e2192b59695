"""
Tests for trendscope/ingestion/signal_file.py.

What we test
------------
parse_signal_csv():
  - Valid rows become RawSignal objects in file order.
  - Row problems are rejected with the CSV line number; the rest still load.
  - Duplicate names: the first row wins, later rows are rejected.
  - Zero break-even floor is rejected as invalid input.
  - Missing file / missing columns fail the whole file.

parse_signal_json():
  - Array of objects; positions are 1-based indexes.
  - Non-array document and malformed JSON raise ValueError.

load_signals():
  - Dispatch by extension; unknown extension raises ValueError.
"""

from __future__ import annotations

import json

import pytest

from trendscope.ingestion.signal_file import (
    load_signals,
    parse_signal_csv,
    parse_signal_json,
    signal_from_row,
    validate_signal_rows,
)
from trendscope.errors import InvalidInputError
from trendscope.taxonomy.platform_taxonomy import Platform


def _row(name="#LEDcollars", platform="tiktok", velocity="450", cogs="2.5",
         fees="0.8", shipping="1.2") -> dict:
    return {
        "name": name, "platform": platform, "velocity": velocity,
        "cogs": cogs, "fees": fees, "shipping": shipping,
    }


# ── CSV ───────────────────────────────────────────────────────────────────────

class TestParseSignalCsv:
    def test_valid_rows(self, write_signal_csv):
        path = write_signal_csv([
            _row(),
            _row(name="#tinyhats", platform="Etsy", velocity="310", cogs="1.8",
                 fees="0.6", shipping="1.0"),
        ])
        batch = parse_signal_csv(path)

        assert [s.name for s in batch.signals] == ["#LEDcollars", "#tinyhats"]
        assert batch.signals[1].platform is Platform.ETSY
        assert batch.signals[0].cogs == 2.5
        assert batch.rejected == []
        assert batch.source == "signals.csv"

    def test_bad_rows_rejected_with_line_numbers(self, write_signal_csv):
        path = write_signal_csv([
            _row(),
            _row(name="#neg", cogs="-1"),
            _row(name="#words", velocity="fast"),
            _row(name="#ok", velocity="5"),
        ])
        batch = parse_signal_csv(path)

        assert [s.name for s in batch.signals] == ["#LEDcollars", "#ok"]
        assert [(r.position, r.name) for r in batch.rejected] == [(3, "#neg"), (4, "#words")]
        assert all(r.kind == "invalid_input" for r in batch.rejected)
        assert "non-negative" in batch.rejected[0].reason
        assert "velocity" in batch.rejected[1].reason

    def test_unknown_platform(self, write_signal_csv):
        batch = parse_signal_csv(write_signal_csv([_row(platform="myspace")]))
        assert batch.signals == []
        assert "Invalid platform value 'myspace'" in batch.rejected[0].reason

    def test_blank_name(self, write_signal_csv):
        batch = parse_signal_csv(write_signal_csv([_row(name="  ")]))
        assert batch.rejected[0].name == ""
        assert "name" in batch.rejected[0].reason

    def test_duplicate_first_wins(self, write_signal_csv):
        path = write_signal_csv([
            _row(velocity="100"),
            _row(name="#other"),
            _row(velocity="999"),
        ])
        batch = parse_signal_csv(path)

        assert len(batch.signals) == 2
        assert batch.signals[0].velocity == 100.0
        rej = batch.rejected[0]
        assert rej.position == 4
        assert "first seen at position 2" in rej.reason

    def test_zero_floor_rejected(self, write_signal_csv):
        batch = parse_signal_csv(write_signal_csv([_row(cogs="0", fees="0", shipping="0")]))
        assert batch.signals == []
        assert "break-even floor" in batch.rejected[0].reason

    def test_header_only(self, write_signal_csv):
        batch = parse_signal_csv(write_signal_csv([]))
        assert batch.signals == []
        assert batch.rejected == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_signal_csv(tmp_path / "nope.csv")

    def test_missing_columns(self, write_signal_csv):
        path = write_signal_csv(
            [{"name": "#x", "platform": "etsy"}], columns=["name", "platform"]
        )
        with pytest.raises(ValueError, match="missing required columns"):
            parse_signal_csv(path)


# ── JSON ──────────────────────────────────────────────────────────────────────

class TestParseSignalJson:
    def test_array_of_objects(self, tmp_path):
        path = tmp_path / "signals.json"
        path.write_text(json.dumps([
            {"name": "#AIstickers", "platform": "gumroad", "velocity": 280,
             "cogs": 0.5, "fees": 0.3, "shipping": 0.2},
            {"name": "#bad", "platform": "gumroad", "velocity": True,
             "cogs": 0.5, "fees": 0.3, "shipping": 0.2},
            "not an object",
        ]))
        batch = parse_signal_json(path)

        assert [s.name for s in batch.signals] == ["#AIstickers"]
        assert [r.position for r in batch.rejected] == [2, 3]
        assert "expected an object" in batch.rejected[1].reason

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "signals.json"
        path.write_text(json.dumps({"name": "#x"}))
        with pytest.raises(ValueError, match="JSON array"):
            parse_signal_json(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "signals.json"
        path.write_text("[{")
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_signal_json(path)


# ── Dispatch and row helpers ──────────────────────────────────────────────────

class TestLoadSignals:
    def test_dispatch_csv(self, write_signal_csv):
        assert len(load_signals(write_signal_csv([_row()])).signals) == 1

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "signals.xlsx"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported"):
            load_signals(path)


class TestSignalFromRow:
    def test_numbers_accepted_as_strings_or_numbers(self):
        s = signal_from_row(_row(velocity=12, cogs="3"))
        assert (s.velocity, s.cogs) == (12.0, 3.0)

    def test_nan_rejected(self):
        with pytest.raises(InvalidInputError):
            signal_from_row(_row(cogs="nan"))

    def test_validate_rows_positions_passed_through(self):
        batch = validate_signal_rows([(10, _row()), (11, _row(fees=""))])
        assert batch.rejected[0].position == 11
        assert "fees" in batch.rejected[0].reason
