"""
Publisher -> source tier tables.

Each provider keeps its own table and its own fallback tier; lookups try a
case-insensitive exact match, then a substring match in table order.
"""

from typing import Dict, Optional

from signal_engine.models.news import SourceTier


FINNHUB_PUBLISHER_TIERS: Dict[str, SourceTier] = {
    # Premium
    "Bloomberg": SourceTier.PREMIUM,
    "Reuters": SourceTier.PREMIUM,
    "Wall Street Journal": SourceTier.PREMIUM,
    "WSJ": SourceTier.PREMIUM,
    "Financial Times": SourceTier.PREMIUM,
    "Barron's": SourceTier.PREMIUM,
    # Standard
    "CNBC": SourceTier.STANDARD,
    "MarketWatch": SourceTier.STANDARD,
    "Seeking Alpha": SourceTier.STANDARD,
    "Yahoo Finance": SourceTier.STANDARD,
    "The Motley Fool": SourceTier.STANDARD,
    "Investor's Business Daily": SourceTier.STANDARD,
    "Forbes": SourceTier.STANDARD,
    "Business Insider": SourceTier.STANDARD,
    # Wire services carry company press releases
    "PR Newswire": SourceTier.OFFICIAL,
    "Business Wire": SourceTier.OFFICIAL,
    "GlobeNewswire": SourceTier.OFFICIAL,
}

NEWSAPI_PUBLISHER_TIERS: Dict[str, SourceTier] = {
    "Bloomberg": SourceTier.PREMIUM,
    "The Wall Street Journal": SourceTier.PREMIUM,
    "Financial Times": SourceTier.PREMIUM,
    "WSJ": SourceTier.PREMIUM,
    "Barron's": SourceTier.PREMIUM,
    "Reuters": SourceTier.PREMIUM,
    "CNBC": SourceTier.STANDARD,
    "MarketWatch": SourceTier.STANDARD,
    "Seeking Alpha": SourceTier.STANDARD,
    "The Motley Fool": SourceTier.STANDARD,
    "Investor's Business Daily": SourceTier.STANDARD,
    "Yahoo Finance": SourceTier.STANDARD,
}


def infer_tier(
    publisher: Optional[str],
    table: Dict[str, SourceTier],
    default: SourceTier
) -> SourceTier:
    """Resolve a publisher name against ``table``; empty names are UNKNOWN."""
    if not publisher:
        return SourceTier.UNKNOWN

    lowered = publisher.lower()
    for name, tier in table.items():
        if name.lower() == lowered:
            return tier

    for name, tier in table.items():
        if name.lower() in lowered:
            return tier

    return default
