"""
Recommendation Policy

Static decision tables turning a ticker's decayed impact into an action,
and the (action, risk profile, holding intent) matrix that supplies the
suggestion and rationale text. Everything here is pure and deterministic.
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from signal_engine.models.portfolio import HoldingIntent, RiskProfile


class RecommendationAction(Enum):
    STRONG_BUY = "StrongBuy"
    BUY = "Buy"
    HOLD = "Hold"
    SELL = "Sell"
    STRONG_SELL = "StrongSell"


RECENCY_HALF_LIFE_DAYS = 2.0
LOOKBACK_DAYS = 7

# risk profile -> (strong threshold, moderate threshold)
RISK_THRESHOLDS: Dict[RiskProfile, Tuple[float, float]] = {
    RiskProfile.CONSERVATIVE: (0.25, 0.12),
    RiskProfile.BALANCED: (0.35, 0.18),
    RiskProfile.AGGRESSIVE: (0.45, 0.25),
}

CONCENTRATION_EXPOSURE = 0.15
CONCENTRATION_THRESHOLD_FACTOR = 0.85

STRONG_CONFIDENCE = 0.30
MODERATE_CONFIDENCE = 0.25

# Publisher tier scores used for the ticker's source label (case-insensitive exact)
PUBLISHER_TIER_SCORES: Dict[str, float] = {
    "reuters": 1.0,
    "bloomberg": 1.0,
    "wall street journal": 1.0,
    "financial times": 1.0,
    "cnbc": 0.85,
    "marketwatch": 0.85,
    "barron's": 0.85,
    "the economist": 0.85,
    "forbes": 0.7,
    "business insider": 0.7,
    "yahoo finance": 0.7,
}
DEFAULT_TIER_SCORE = 0.5

TIER_LABELS = ((0.95, "Premium"), (0.8, "High Quality"), (0.65, "Standard"))

SENTIMENT_LABELS = (
    (0.3, "Strongly Positive"),
    (0.1, "Positive"),
)
NEGATIVE_SENTIMENT_LABELS = (
    (-0.1, "Neutral"),
    (-0.3, "Negative"),
)

HIGH_IMPACT_LEVEL = 0.4


# Lookup order: (action, risk, intent), (action, None, intent),
# (action, risk, None), (action, None, None)
PolicyKey = Tuple[RecommendationAction, Optional[RiskProfile], Optional[HoldingIntent]]

Act = RecommendationAction
Risk = RiskProfile
Intent = HoldingIntent

SUGGESTIONS: Dict[PolicyKey, str] = {
    # Sizing by risk profile
    (Act.STRONG_BUY, Risk.CONSERVATIVE, None): "Consider adding 5-10% to the position",
    (Act.STRONG_BUY, Risk.BALANCED, None): "Consider adding 10-15% to the position",
    (Act.STRONG_BUY, Risk.AGGRESSIVE, None): "Consider adding 15-20% to the position",
    (Act.BUY, Risk.CONSERVATIVE, None): "Consider a small 2-5% add on weakness",
    (Act.BUY, Risk.BALANCED, None): "Consider adding 5-10% to the position",
    (Act.BUY, Risk.AGGRESSIVE, None): "Consider adding 10-15% to the position",
    (Act.HOLD, None, None): "Maintain current position",
    (Act.SELL, Risk.CONSERVATIVE, None): "Consider trimming 10-15% of the position",
    (Act.SELL, Risk.BALANCED, None): "Consider trimming 5-10% of the position",
    (Act.SELL, Risk.AGGRESSIVE, None): "Consider trimming up to 5% or tightening stops",
    (Act.STRONG_SELL, Risk.CONSERVATIVE, None): "Consider reducing the position by 25-30%",
    (Act.STRONG_SELL, Risk.BALANCED, None): "Consider reducing the position by 15-20%",
    (Act.STRONG_SELL, Risk.AGGRESSIVE, None): "Consider reducing the position by 10-15%",

    # Intent overrides
    (Act.STRONG_BUY, None, Intent.TRADE): "Momentum entry: consider a 10-15% add with a tight stop",
    (Act.BUY, None, Intent.TRADE): "Consider a small momentum add with a defined exit",
    (Act.HOLD, None, Intent.TRADE): "No clear short-term edge; avoid adding new size",
    (Act.SELL, None, Intent.TRADE): "Consider taking profits or tightening the stop",
    (Act.STRONG_SELL, None, Intent.TRADE): "Consider exiting the trade",
    (Act.STRONG_BUY, None, Intent.ACCUMULATE): "Consider front-loading the next scheduled purchases",
    (Act.BUY, None, Intent.ACCUMULATE): "Continue scheduled accumulation",
    (Act.SELL, None, Intent.ACCUMULATE): "Pause accumulation until signals improve",
    (Act.STRONG_SELL, None, Intent.ACCUMULATE): "Pause accumulation and consider trimming 10%",
    (Act.STRONG_BUY, None, Intent.INCOME): "Consider adding if the dividend remains well covered",
    (Act.BUY, None, Intent.INCOME): "Consider a modest add while the yield is attractive",
    (Act.SELL, None, Intent.INCOME): "Review dividend safety before trimming",
    (Act.STRONG_SELL, None, Intent.INCOME): "Consider reducing the position if the dividend is at risk",
    (Act.STRONG_SELL, None, Intent.HOLD): "Reassess the long-term thesis; consider trimming 10-15%",

    # Profile-specific intent cells
    (Act.STRONG_BUY, Risk.CONSERVATIVE, Intent.TRADE): "Consider a small 5% momentum position with a tight stop",
    (Act.STRONG_BUY, Risk.AGGRESSIVE, Intent.TRADE): "Momentum entry: consider a 15-20% add with a trailing stop",
    (Act.STRONG_SELL, Risk.CONSERVATIVE, Intent.INCOME): "Consider reducing the position by 30% to protect income",
    (Act.STRONG_SELL, Risk.AGGRESSIVE, Intent.HOLD): "Long-term holders may ride this out; consider trimming 5-10%",
    (Act.STRONG_SELL, Risk.CONSERVATIVE, Intent.HOLD): "Reassess the long-term thesis; consider reducing by 20-25%",
}

RATIONALES: Dict[PolicyKey, str] = {
    (Act.STRONG_BUY, None, None): "Strong positive signals from {tier} sources. Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.BUY, None, None): "Positive signals from {tier} sources. Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.HOLD, None, None): "Mixed or neutral signals. Weighted impact {impact:+.2f}. Monitor for clearer trends.",
    (Act.SELL, None, None): "Negative signals from {tier} sources. Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.STRONG_SELL, None, None): "Strong negative signals from {tier} sources. Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",

    (Act.STRONG_BUY, None, Intent.TRADE): "Short-term momentum is strongly positive ({tier} sources). Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.STRONG_SELL, None, Intent.TRADE): "Short-term momentum is strongly negative ({tier} sources). Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.SELL, None, Intent.INCOME): "Negative news may pressure income reliability ({tier} sources). Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.STRONG_SELL, None, Intent.INCOME): "Strong negative news may threaten the dividend ({tier} sources). Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.SELL, None, Intent.ACCUMULATE): "Negative signals argue for patience in accumulating ({tier} sources). Weighted impact {impact:+.2f}, confidence {confidence:.2f}.",
    (Act.HOLD, Risk.CONSERVATIVE, None): "Signals are not strong enough to act on for a conservative profile. Weighted impact {impact:+.2f}.",
    (Act.HOLD, Risk.AGGRESSIVE, None): "Signals are below the aggressive action threshold. Weighted impact {impact:+.2f}. Monitor for clearer trends.",
}

CONCENTRATION_NOTE = " Position is {exposure_pct:.0f}% of the portfolio; thresholds tightened."


def policy_lookup(
    table: Dict[PolicyKey, str],
    action: RecommendationAction,
    risk: RiskProfile,
    intent: Optional[HoldingIntent]
) -> str:
    """Most specific cell of ``table`` for the combination."""
    for key in ((action, risk, intent), (action, None, intent), (action, risk, None), (action, None, None)):
        if key in table:
            return table[key]
    raise KeyError(f"No policy entry for {action.value}")


def decay_weight(age_days: float) -> float:
    """Exponential recency weight with a two day half-life."""
    return float(np.power(0.5, max(age_days, 0.0) / RECENCY_HALF_LIFE_DAYS))


def thresholds_for(risk: RiskProfile, exposure: float) -> Tuple[float, float]:
    strong, moderate = RISK_THRESHOLDS[risk]
    if exposure > CONCENTRATION_EXPOSURE:
        strong *= CONCENTRATION_THRESHOLD_FACTOR
        moderate *= CONCENTRATION_THRESHOLD_FACTOR
    return strong, moderate


def classify_action(impact: float, confidence: float, risk: RiskProfile, exposure: float) -> RecommendationAction:
    strong, moderate = thresholds_for(risk, exposure)

    if impact >= strong and confidence >= STRONG_CONFIDENCE:
        return RecommendationAction.STRONG_BUY
    if impact >= moderate and confidence >= MODERATE_CONFIDENCE:
        return RecommendationAction.BUY
    if impact <= -strong and confidence >= STRONG_CONFIDENCE:
        return RecommendationAction.STRONG_SELL
    if impact <= -moderate and confidence >= MODERATE_CONFIDENCE:
        return RecommendationAction.SELL
    return RecommendationAction.HOLD


def suggestion_for(action: RecommendationAction, risk: RiskProfile, intent: Optional[HoldingIntent]) -> str:
    return policy_lookup(SUGGESTIONS, action, risk, intent)


def rationale_for(
    action: RecommendationAction,
    risk: RiskProfile,
    intent: Optional[HoldingIntent],
    tier_label: str,
    impact: float,
    confidence: float,
    exposure: float
) -> str:
    text = policy_lookup(RATIONALES, action, risk, intent).format(
        tier=tier_label.lower(), impact=impact, confidence=confidence
    )
    if exposure > CONCENTRATION_EXPOSURE:
        text += CONCENTRATION_NOTE.format(exposure_pct=exposure * 100)
    return text


def publisher_tier_score(publisher: Optional[str]) -> float:
    return PUBLISHER_TIER_SCORES.get((publisher or "").lower(), DEFAULT_TIER_SCORE)


def tier_label(average_score: float) -> str:
    for minimum, label in TIER_LABELS:
        if average_score >= minimum:
            return label
    return "Mixed"


def sentiment_label(value: float) -> str:
    for minimum, label in SENTIMENT_LABELS:
        if value >= minimum:
            return label
    for bound, label in NEGATIVE_SENTIMENT_LABELS:
        if value > bound:
            return label
    return "Strongly Negative"


def weighted_overall_sentiment(impacts: Sequence[float]) -> float:
    """sum(i * |i|) / sum(|i|); 0.0 when every impact is zero."""
    values = np.asarray(impacts, dtype=float)
    denominator = np.abs(values).sum()
    if denominator == 0:
        return 0.0
    return float((values * np.abs(values)).sum() / denominator)


def risk_assessment(impacts: Sequence[float], confidences: Sequence[float]) -> str:
    if not impacts:
        return "Low"
    high_share = sum(1 for value in impacts if abs(value) > HIGH_IMPACT_LEVEL) / len(impacts)
    average_confidence = sum(confidences) / len(confidences) if confidences else 0.0
    if high_share > 0.5:
        return "High"
    if high_share > 0.2 or average_confidence < 0.4:
        return "Moderate"
    return "Low"


def prioritize_actions(entries: Sequence[Tuple[str, RecommendationAction, float]]) -> List[Tuple[str, RecommendationAction, float]]:
    """
    Order (ticker, action, confidence) entries for the key-actions list.

    The single most confident StrongBuy and StrongSell lead; every other
    non-Hold entry follows by descending confidence.
    """
    ranked = sorted(entries, key=lambda entry: (-entry[2], entry[0]))
    leaders = []
    for wanted in (RecommendationAction.STRONG_BUY, RecommendationAction.STRONG_SELL):
        for entry in ranked:
            if entry[1] == wanted:
                leaders.append(entry)
                break

    rest = [entry for entry in ranked if entry not in leaders and entry[1] != RecommendationAction.HOLD]
    return leaders + rest
