"""
Headline event classification.

Ordered keyword rules; the first rule whose keywords appear in the
lower-cased headline wins. Matching is plain substring search.
"""

from typing import List, Tuple

from signal_engine.models.news import EventCategory


# Earnings headlines split on a second keyword set before the general rules run
EARNINGS_KEYWORDS = ("earnings", "eps", "revenue")
EARNINGS_RESULT_KEYWORDS = ("beat", "miss", "exceeds", "falls short")
EARNINGS_SCHEDULE_KEYWORDS = ("date", "scheduled", "call")

CATEGORY_RULES: List[Tuple[EventCategory, Tuple[str, ...]]] = [
    (EventCategory.GUIDANCE_CHANGE, ("guidance", "forecast", "outlook")),
    (EventCategory.MERGER_ACQUISITION, ("merger", "acquisition", "acquires", "partnership", "deal")),
    (EventCategory.REGULATORY_LEGAL, ("sec", "investigation", "lawsuit", "regulatory", "antitrust")),
    (EventCategory.LEADERSHIP_CHANGE, ("ceo", "cfo", "resigns", "appoints", "executive")),
    (EventCategory.LAYOFFS, ("layoff", "restructuring", "job cuts")),
    (EventCategory.RECALL, ("recall", "safety")),
    (EventCategory.ANALYST_RATING, ("upgrade", "downgrade", "analyst", "rating")),
    (EventCategory.DIVIDEND_BUYBACK, ("dividend", "buyback", "share repurchase")),
    (EventCategory.PRODUCT_LAUNCH, ("launch", "unveils", "announces new")),
    (EventCategory.CONTRACT_WIN, ("contract", "wins", "awarded")),
]


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_headline(headline: str) -> EventCategory:
    """Map a headline onto the fixed event taxonomy."""
    text = (headline or "").lower()

    if _contains_any(text, EARNINGS_KEYWORDS):
        if _contains_any(text, EARNINGS_RESULT_KEYWORDS):
            return EventCategory.EARNINGS_BEAT_MISS
        if _contains_any(text, EARNINGS_SCHEDULE_KEYWORDS):
            return EventCategory.EARNINGS_CALENDAR

    for category, keywords in CATEGORY_RULES:
        if _contains_any(text, keywords):
            return category

    return EventCategory.UNKNOWN
