"""
Historical analog pattern synthesis.

Summarizes how prior same-category events for a security were scored.
The text is a deterministic function of the matched events.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence, Tuple

from signal_engine.models.news import EventCategory

LOOKBACK_MONTHS = 12
MIN_ANALOGS = 3

STRONG_PATTERN_PCT = 75
MODERATE_PATTERN_PCT = 60

EVENT_NAMES = {
    EventCategory.EARNINGS_BEAT_MISS: "earnings beats/misses",
    EventCategory.GUIDANCE_CHANGE: "guidance changes",
    EventCategory.PRODUCT_LAUNCH: "product launches",
    EventCategory.LEADERSHIP_CHANGE: "leadership changes",
    EventCategory.MERGER_ACQUISITION: "M&A events",
    EventCategory.REGULATORY_LEGAL: "regulatory/legal events",
    EventCategory.CONTRACT_WIN: "contract wins",
    EventCategory.RECALL: "product recalls",
    EventCategory.LAYOFFS: "layoffs/restructuring",
    EventCategory.MACRO_SHOCK: "macro/sector events",
    EventCategory.DIVIDEND_BUYBACK: "dividend/buyback events",
    EventCategory.ANALYST_RATING: "analyst rating changes",
    EventCategory.EARNINGS_CALENDAR: "earnings announcements",
    EventCategory.UNKNOWN: "similar events",
}

# (minimum average magnitude, label), checked in order
MAGNITUDE_LABELS = ((2.5, "major"), (1.8, "significant"), (1.3, "moderate"))


@dataclass(frozen=True)
class AnalogPattern:
    count: int
    dominant_sentiment: str
    dominant_pct: float
    average_magnitude: float
    pattern: str


def lookback_start(before: datetime, months: int = LOOKBACK_MONTHS) -> datetime:
    """``before`` moved back by whole calendar months, clamping the day."""
    month_index = before.year * 12 + (before.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = before.day
    while day > 28:
        try:
            return before.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1
    return before.replace(year=year, month=month, day=day)


def magnitude_label(average_magnitude: float) -> str:
    for minimum, label in MAGNITUDE_LABELS:
        if average_magnitude >= minimum:
            return label
    return "minor"


def _format_pct(value: float) -> str:
    return str(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def describe_pattern(category: EventCategory, events: Sequence[Tuple[int, int]]) -> Optional[AnalogPattern]:
    """
    Pattern of prior events given as (sentiment, magnitude) pairs.

    Returns None below MIN_ANALOGS events. Ties between positive and
    negative counts resolve to positive; neutral events count towards the
    total only.
    """
    count = len(events)
    if count < MIN_ANALOGS:
        return None

    positive = sum(1 for sentiment, _ in events if sentiment > 0)
    negative = sum(1 for sentiment, _ in events if sentiment < 0)
    dominant = "positive" if positive >= negative else "negative"
    dominant_pct = max(positive, negative) * 100.0 / count
    average_magnitude = sum(magnitude for _, magnitude in events) / count

    event_name = EVENT_NAMES.get(category, "similar events")
    label = magnitude_label(average_magnitude)
    pct = _format_pct(dominant_pct)

    if dominant_pct >= STRONG_PATTERN_PCT:
        pattern = (
            f"Similar {event_name}: historically {dominant} "
            f"({pct}%, {count} occurrences, typically {label} impact)"
        )
    elif dominant_pct >= MODERATE_PATTERN_PCT:
        pattern = f"Similar {event_name}: tend {dominant} ({pct}%, {count} occurrences, {label} impact)"
    else:
        pattern = f"Similar {event_name}: mixed historical signals ({count} occurrences, {label} avg impact)"

    return AnalogPattern(
        count=count,
        dominant_sentiment=dominant,
        dominant_pct=dominant_pct,
        average_magnitude=average_magnitude,
        pattern=pattern,
    )
