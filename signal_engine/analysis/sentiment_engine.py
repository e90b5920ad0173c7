"""
Keyword Sentiment Engine

Deterministic keyword scoring of financial headlines. Two static
keyword -> magnitude tables decide polarity and strength; a static
publisher credibility table supplies the base confidence.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


# Scanned in this order; reasoning text lists matches in the same order
POSITIVE_KEYWORDS: Dict[str, int] = {
    "surge": 3, "soar": 3, "breakthrough": 3, "record": 3, "boom": 3,
    "stellar": 3, "exceptional": 3,
    "growth": 2, "profit": 2, "gain": 2, "rise": 2, "increase": 2,
    "improve": 2, "beat": 2, "exceed": 2, "strong": 2, "positive": 2,
    "upgrade": 2,
    "stable": 1, "steady": 1, "optimistic": 1, "potential": 1,
}

NEGATIVE_KEYWORDS: Dict[str, int] = {
    "crash": 3, "plunge": 3, "collapse": 3, "crisis": 3, "scandal": 3,
    "bankruptcy": 3, "fraud": 3,
    "loss": 2, "decline": 2, "drop": 2, "fall": 2, "miss": 2, "weak": 2,
    "concern": 2, "downgrade": 2, "layoff": 2, "cut": 2, "reduce": 2,
    "struggle": 1, "uncertain": 1, "volatile": 1, "risk": 1,
}

SOURCE_CREDIBILITY: Dict[str, float] = {
    # Tier 1: major financial press
    "Bloomberg": 0.95,
    "Reuters": 0.95,
    "The Wall Street Journal": 0.95,
    "Financial Times": 0.95,
    # Tier 2: general business news
    "CNBC": 0.90,
    "The New York Times": 0.85,
    "CNN Business": 0.80,
    "BBC News": 0.85,
    "MarketWatch": 0.80,
    "Barron's": 0.85,
    # Tier 3: tech/industry
    "TechCrunch": 0.70,
    "The Verge": 0.65,
    "Ars Technica": 0.70,
    "Yahoo Finance": 0.75,
}

DEFAULT_CREDIBILITY = 0.5
NEUTRAL_REASONING = "No strong sentiment indicators detected. Classified as neutral."


@dataclass
class SentimentResult:
    """Keyword sentiment of one article."""
    sentiment: int  # -1, 0, +1
    magnitude: int  # 1..3
    confidence: float  # 0..1
    reasoning: str
    positive_matches: List[str] = field(default_factory=list)
    negative_matches: List[str] = field(default_factory=list)

    @property
    def matched_keywords(self) -> List[str]:
        return self.positive_matches + self.negative_matches

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sentiment': self.sentiment,
            'magnitude': self.magnitude,
            'confidence': self.confidence,
            'reasoning': self.reasoning,
            'positive_matches': list(self.positive_matches),
            'negative_matches': list(self.negative_matches),
        }


def _scan(text: str, table: Dict[str, int]) -> Tuple[int, int, List[str]]:
    """Return (score sum, max single magnitude, matched keywords)."""
    score = 0
    peak = 0
    matches = []
    for keyword, magnitude in table.items():
        if keyword in text:
            score += magnitude
            peak = max(peak, magnitude)
            matches.append(keyword)
    return score, peak, matches


def source_credibility(publisher: Optional[str]) -> float:
    """Exact match, then case-insensitive substring match, else 0.5."""
    if not publisher:
        return DEFAULT_CREDIBILITY

    if publisher in SOURCE_CREDIBILITY:
        return SOURCE_CREDIBILITY[publisher]

    lowered = publisher.lower()
    for source, credibility in SOURCE_CREDIBILITY.items():
        if source.lower() in lowered:
            return credibility

    return DEFAULT_CREDIBILITY


class SentimentEngine:
    """Scores text against the keyword tables."""

    def __init__(
        self,
        positive_keywords: Optional[Dict[str, int]] = None,
        negative_keywords: Optional[Dict[str, int]] = None
    ):
        self.positive_keywords = positive_keywords or POSITIVE_KEYWORDS
        self.negative_keywords = negative_keywords or NEGATIVE_KEYWORDS

    def score_text(self, text: str) -> Tuple[int, int, str, List[str], List[str]]:
        """
        Score already-combined text.

        Returns:
            (sentiment, magnitude, reasoning, positive matches, negative matches)
        """
        lowered = (text or "").lower()
        pos_score, pos_peak, pos_matches = _scan(lowered, self.positive_keywords)
        neg_score, neg_peak, neg_matches = _scan(lowered, self.negative_keywords)

        if pos_score == 0 and neg_score == 0:
            return 0, 1, NEUTRAL_REASONING, pos_matches, neg_matches

        if pos_score > neg_score:
            reasoning = f"Positive sentiment detected. Keywords: {', '.join(pos_matches[:3])}"
            return 1, pos_peak, reasoning, pos_matches, neg_matches

        if neg_score > pos_score:
            reasoning = f"Negative sentiment detected. Keywords: {', '.join(neg_matches[:3])}"
            return -1, neg_peak, reasoning, pos_matches, neg_matches

        reasoning = (
            f"Mixed sentiment. Positive keywords: {', '.join(pos_matches[:2])}. "
            f"Negative keywords: {', '.join(neg_matches[:2])}."
        )
        return 0, max(pos_peak, neg_peak), reasoning, pos_matches, neg_matches

    def analyze(self, headline: str, summary: Optional[str], publisher: Optional[str]) -> SentimentResult:
        """Score an article's headline and summary; confidence comes from the publisher only."""
        text = f"{headline} {summary or ''}"
        sentiment, magnitude, reasoning, positive, negative = self.score_text(text)
        return SentimentResult(
            sentiment=sentiment,
            magnitude=magnitude,
            confidence=source_credibility(publisher),
            reasoning=reasoning,
            positive_matches=positive,
            negative_matches=negative,
        )
