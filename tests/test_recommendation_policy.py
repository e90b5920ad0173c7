"""
Tests for the recommendation decision tables.
"""

import pytest

from signal_engine.analysis.recommendation import (
    SUGGESTIONS,
    RATIONALES,
    RecommendationAction,
    classify_action,
    decay_weight,
    policy_lookup,
    prioritize_actions,
    publisher_tier_score,
    rationale_for,
    risk_assessment,
    sentiment_label,
    suggestion_for,
    thresholds_for,
    tier_label,
    weighted_overall_sentiment,
)
from signal_engine.models.portfolio import HoldingIntent, RiskProfile

Act = RecommendationAction


class TestClassifyAction:

    def test_balanced_strong_buy(self):
        assert classify_action(0.36, 0.31, RiskProfile.BALANCED, 0.10) == Act.STRONG_BUY

    def test_low_confidence_demotes(self):
        assert classify_action(0.36, 0.26, RiskProfile.BALANCED, 0.10) == Act.BUY
        assert classify_action(0.36, 0.20, RiskProfile.BALANCED, 0.10) == Act.HOLD

    @pytest.mark.parametrize("risk, impact, expected", [
        (RiskProfile.CONSERVATIVE, 0.25, Act.STRONG_BUY),
        (RiskProfile.CONSERVATIVE, 0.12, Act.BUY),
        (RiskProfile.AGGRESSIVE, 0.44, Act.BUY),
        (RiskProfile.AGGRESSIVE, 0.24, Act.HOLD),
        (RiskProfile.BALANCED, -0.35, Act.STRONG_SELL),
        (RiskProfile.BALANCED, -0.18, Act.SELL),
        (RiskProfile.BALANCED, -0.17, Act.HOLD),
    ])
    def test_thresholds(self, risk, impact, expected):
        assert classify_action(impact, 0.5, risk, 0.05) == expected

    def test_concentrated_exposure_tightens_thresholds(self):
        strong, moderate = thresholds_for(RiskProfile.BALANCED, 0.20)
        assert strong == pytest.approx(0.2975)
        assert moderate == pytest.approx(0.153)

        assert classify_action(0.30, 0.31, RiskProfile.BALANCED, 0.10) == Act.BUY
        assert classify_action(0.30, 0.31, RiskProfile.BALANCED, 0.20) == Act.STRONG_BUY


class TestDecay:

    def test_two_day_half_life(self):
        assert decay_weight(2.0) == pytest.approx(0.5 * decay_weight(0.0))
        assert decay_weight(0.0) == 1.0
        assert decay_weight(4.0) == pytest.approx(0.25)

    def test_future_timestamps_not_amplified(self):
        assert decay_weight(-1.0) == 1.0


class TestPolicyMatrix:

    def test_every_action_has_default_text(self):
        for action in Act:
            for risk in RiskProfile:
                for intent in list(HoldingIntent) + [None]:
                    assert suggestion_for(action, risk, intent)
                    assert policy_lookup(RATIONALES, action, risk, intent)

    def test_most_specific_cell_wins(self):
        assert suggestion_for(Act.STRONG_BUY, RiskProfile.CONSERVATIVE, HoldingIntent.TRADE) == \
            "Consider a small 5% momentum position with a tight stop"
        assert suggestion_for(Act.STRONG_BUY, RiskProfile.BALANCED, HoldingIntent.TRADE) == \
            "Momentum entry: consider a 10-15% add with a tight stop"
        assert suggestion_for(Act.STRONG_BUY, RiskProfile.BALANCED, HoldingIntent.HOLD) == \
            "Consider adding 10-15% to the position"
        assert suggestion_for(Act.HOLD, RiskProfile.AGGRESSIVE, None) == "Maintain current position"

    def test_missing_entry_raises(self):
        with pytest.raises(KeyError):
            policy_lookup({}, Act.HOLD, RiskProfile.BALANCED, None)

    def test_rationale_formatting(self):
        text = rationale_for(Act.STRONG_BUY, RiskProfile.BALANCED, None, "Premium", 0.36, 0.31, 0.10)
        assert text == "Strong positive signals from premium sources. Weighted impact +0.36, confidence 0.31."

    def test_rationale_concentration_note(self):
        text = rationale_for(Act.HOLD, RiskProfile.BALANCED, HoldingIntent.HOLD, "Mixed", 0.05, 0.1, 0.40)
        assert text.endswith("Position is 40% of the portfolio; thresholds tightened.")

    def test_tables_keyed_by_enums(self):
        for action, risk, intent in list(SUGGESTIONS) + list(RATIONALES):
            assert isinstance(action, Act)
            assert risk is None or isinstance(risk, RiskProfile)
            assert intent is None or isinstance(intent, HoldingIntent)


class TestLabels:

    @pytest.mark.parametrize("value, label", [
        (0.3, "Strongly Positive"),
        (0.1, "Positive"),
        (0.0, "Neutral"),
        (-0.1, "Negative"),
        (-0.3, "Strongly Negative"),
        (-0.5, "Strongly Negative"),
    ])
    def test_sentiment_buckets(self, value, label):
        assert sentiment_label(value) == label

    def test_tier_labels(self):
        assert tier_label(1.0) == "Premium"
        assert tier_label(0.85) == "High Quality"
        assert tier_label(0.7) == "Standard"
        assert tier_label(0.5) == "Mixed"

    def test_publisher_tier_score(self):
        assert publisher_tier_score("Reuters") == 1.0
        assert publisher_tier_score("cnbc") == 0.85
        assert publisher_tier_score("Unknown Blog") == 0.5
        assert publisher_tier_score(None) == 0.5


class TestPortfolioRollup:

    def test_weighted_overall_sentiment(self):
        # (0.4*0.4 - 0.2*0.2) / 0.6
        assert weighted_overall_sentiment([0.4, -0.2]) == pytest.approx(0.2)
        assert weighted_overall_sentiment([0.0, 0.0]) == 0.0

    def test_label_is_pure_function_of_impacts(self):
        impacts = [0.31, -0.05, 0.12]
        first = sentiment_label(weighted_overall_sentiment(impacts))
        second = sentiment_label(weighted_overall_sentiment(list(impacts)))
        assert first == second

    def test_risk_assessment(self):
        assert risk_assessment([], []) == "Low"
        assert risk_assessment([0.5, 0.6, 0.1], [0.9]) == "High"
        assert risk_assessment([0.5, 0.1, 0.1, 0.1], [0.9]) == "Moderate"
        assert risk_assessment([0.1, 0.1], [0.3]) == "Moderate"
        assert risk_assessment([0.1, 0.1], [0.9]) == "Low"

    def test_prioritize_actions(self):
        entries = [
            ("AAA", Act.BUY, 0.9),
            ("BBB", Act.STRONG_BUY, 0.4),
            ("CCC", Act.STRONG_BUY, 0.6),
            ("DDD", Act.STRONG_SELL, 0.5),
            ("EEE", Act.HOLD, 0.95),
        ]
        ordered = [ticker for ticker, _, _ in prioritize_actions(entries)]
        assert ordered == ["CCC", "DDD", "AAA", "BBB"]
