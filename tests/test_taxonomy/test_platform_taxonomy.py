"""Tests for the Platform taxonomy."""

from __future__ import annotations

import pytest

from trendscope.taxonomy.platform_taxonomy import VALID_PLATFORMS, Platform


def test_members():
    assert {p.value for p in Platform} == {"tiktok", "etsy", "gumroad"}


def test_valid_platforms_matches_enum():
    assert VALID_PLATFORMS == frozenset(p.value for p in Platform)


def test_str_value():
    assert str(Platform.ETSY) == "etsy"


def test_unknown_raises():
    with pytest.raises(ValueError):
        Platform("myspace")
