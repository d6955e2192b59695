"""
Platform taxonomy for trend signals.

``Platform`` names the marketplace or social feed a trend signal was observed
on. Velocity values are assumed comparable across platforms, so the platform
is carried through scoring as a label only; it never changes the score.

Adding a platform is a one-line change here; no other module enumerates the
members.

Usage example::

    from trendscope.taxonomy.platform_taxonomy import Platform

    platform = Platform("etsy")
    assert platform is Platform.ETSY

This module has NO imports from any other ``trendscope`` package.
"""

from enum import StrEnum


class Platform(StrEnum):
    """Source platform of a trend signal."""

    TIKTOK = "tiktok"
    """Short-form video feed; hashtag velocity from views/shares."""

    ETSY = "etsy"
    """Handmade marketplace; velocity from listing favourites and sales."""

    GUMROAD = "gumroad"
    """Digital product storefront; velocity from sales rank movement."""


VALID_PLATFORMS: frozenset[str] = frozenset(p.value for p in Platform)
