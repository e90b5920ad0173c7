"""
Recommendation Engine

Aggregates a user's recent Impacts per ticker with recency decay, applies
the risk profile x holding intent policy tables and assembles the
per-ticker recommendations plus a portfolio summary.
"""

from collections import Counter, OrderedDict, defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import numpy as np
from sqlalchemy.orm import Session

from signal_engine.analysis import recommendation as policy
from signal_engine.analysis.market_impact import PositionView, is_concentrated, portfolio_exposures
from signal_engine.analysis.portfolio_analytics import (
    PositionData,
    all_intent_metrics,
    holding_performance,
    portfolio_metrics,
)
from signal_engine.database.repositories import HoldingRepository, ImpactRepository, ProfileRepository
from signal_engine.models.impact import Impact
from signal_engine.models.portfolio import Holding, RiskProfile
from signal_engine.schemas.recommendation import (
    HoldingHistory,
    IntentAllocation,
    PortfolioSummary,
    PositionExposure,
    RecommendationReport,
    TickerRecommendation,
)
from signal_engine.services.analog_service import HistoricalAnalogMatcher
from signal_engine.services.logging_service import get_logger
from signal_engine.services.metrics_service import record_recommendation
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)

KEY_SIGNAL_LIMIT = 3

NO_HOLDINGS_MESSAGE = "No holdings found; nothing to recommend"
NO_SIGNALS_MESSAGE = "No recent signals; low confidence"


def _position_exposure(position: PositionData) -> PositionExposure:
    exposure = min(1.0, position.exposure_pct)
    return PositionExposure(ticker=position.ticker, exposure=exposure, concentrated=is_concentrated(exposure))


class RecommendationEngine:
    def __init__(self, db_session: Session, analog_matcher: Optional[HistoricalAnalogMatcher] = None):
        self.db_session = db_session
        self.holdings = HoldingRepository(db_session)
        self.impacts = ImpactRepository(db_session)
        self.profiles = ProfileRepository(db_session)
        self.analog_matcher = analog_matcher or HistoricalAnalogMatcher(db_session)

    def recommend(self, user_id: str, now: Optional[datetime] = None) -> RecommendationReport:
        """
        Build the recommendation report for one user.

        Missing holdings or an empty 7-day impact window produce an empty
        report with an explanatory summary message.
        """
        now = now or utcnow()
        risk = self.profiles.get_risk_profile(user_id)
        holdings = self.holdings.get_holdings_for_user(user_id)

        report = RecommendationReport(
            user_id=user_id,
            generated_at=now,
            risk_profile=risk.value,
            total_holdings=len(holdings),
        )

        if not holdings:
            report.summary = PortfolioSummary(message=NO_HOLDINGS_MESSAGE)
            logger.info("Recommendation report produced", user_id=user_id, holdings=0, recommendations=0)
            return report

        exposures = portfolio_exposures([PositionView.from_holding(h) for h in holdings])
        report.exposures = [
            PositionExposure(ticker=ticker, exposure=value, concentrated=is_concentrated(value))
            for ticker, value in exposures.items()
        ]

        impacts = self.impacts.recent_for_user(user_id, now - timedelta(days=policy.LOOKBACK_DAYS))
        report.impacts_analyzed = len(impacts)
        self._attach_portfolio_analytics(report, holdings, impacts, now)

        if not impacts:
            report.summary = PortfolioSummary(message=NO_SIGNALS_MESSAGE)
            logger.info(
                "Recommendation report produced",
                user_id=user_id,
                holdings=len(holdings),
                impacts=0,
                recommendations=0
            )
            return report

        by_ticker: Dict[str, List[Impact]] = OrderedDict()
        for impact in impacts:
            by_ticker.setdefault(impact.article.ticker, []).append(impact)

        holdings_by_ticker = {h.ticker: h for h in holdings}
        recommendations = [
            self._recommend_ticker(
                ticker,
                ticker_impacts,
                holdings_by_ticker.get(ticker),
                risk,
                exposures.get(ticker, 0.0),
                now
            )
            for ticker, ticker_impacts in by_ticker.items()
        ]
        recommendations.sort(key=lambda r: (-r.confidence, r.ticker))

        report.recommendations = recommendations
        report.summary = self.summarize(recommendations, [i.article.signal.confidence for i in impacts if i.article.signal])

        for rec in recommendations:
            record_recommendation(rec.action.value)

        logger.info(
            "Recommendation report produced",
            user_id=user_id,
            risk_profile=risk.value,
            holdings=len(holdings),
            impacts=len(impacts),
            recommendations=len(recommendations),
            sentiment=report.summary.sentiment_label
        )
        return report

    def _attach_portfolio_analytics(
        self,
        report: RecommendationReport,
        holdings: Sequence[Holding],
        impacts: Sequence[Impact],
        now: datetime
    ) -> None:
        """Concentration, intent allocation and per-holding impact history over the report window."""
        metrics = portfolio_metrics(holdings)
        report.concentration_index = metrics.concentration_index
        report.top_concentrations = [_position_exposure(p) for p in metrics.top_concentrations]
        if metrics.largest_position is not None:
            report.largest_position = _position_exposure(metrics.largest_position)

        report.intent_allocation = [
            IntentAllocation(
                intent=intent.value,
                count=m.count,
                total_value=m.total_value,
                average_exposure=m.average_exposure,
                average_holding_period_days=m.average_holding_period_days,
            )
            for intent, m in all_intent_metrics(holdings, now).items()
            if m.count
        ]

        scores: Dict[int, List[float]] = defaultdict(list)
        for impact in impacts:
            scores[impact.holding_id].append(impact.impact_score)

        history = []
        for holding in holdings:
            perf = holding_performance(holding, scores.get(holding.id, []), now)
            history.append(HoldingHistory(
                ticker=perf.ticker,
                intent=perf.intent.value,
                holding_period_days=perf.holding_period_days,
                total_impact_score=perf.total_impact_score,
                positive_impacts=perf.positive_impacts,
                negative_impacts=perf.negative_impacts,
            ))
        report.holding_history = history

    def _recommend_ticker(
        self,
        ticker: str,
        impacts: Sequence[Impact],
        holding: Optional[Holding],
        risk: RiskProfile,
        exposure: float,
        now: datetime
    ) -> TickerRecommendation:
        weights = np.array([
            policy.decay_weight((now - impact.computed_at).total_seconds() / 86400.0)
            for impact in impacts
        ])
        scores = np.array([impact.impact_score for impact in impacts], dtype=float)
        weighted = scores * weights
        weighted_impact = float(weighted.mean())

        confidences = [impact.article.signal.confidence for impact in impacts if impact.article.signal]
        mean_confidence = float(np.mean(confidences)) if confidences else 0.0
        confidence = min(1.0, mean_confidence * float(np.abs(weighted).mean()))

        tier = policy.tier_label(
            float(np.mean([policy.publisher_tier_score(impact.article.publisher) for impact in impacts]))
        )

        intent = holding.intent if holding is not None else None
        action = policy.classify_action(weighted_impact, confidence, risk, exposure)

        order = np.argsort(-np.abs(weighted), kind="stable")[:KEY_SIGNAL_LIMIT]
        key_signals = [impacts[int(i)].article.headline for i in order]

        return TickerRecommendation(
            ticker=ticker,
            action=action,
            confidence=confidence,
            weighted_impact=weighted_impact,
            exposure=exposure,
            suggestion=policy.suggestion_for(action, risk, intent),
            rationale=policy.rationale_for(action, risk, intent, tier, weighted_impact, confidence, exposure),
            key_signals=key_signals,
            source_tier=tier,
            news_count=len(impacts),
            analogs=self._analogs_for(ticker, impacts),
        )

    def _analogs_for(self, ticker: str, impacts: Sequence[Impact]):
        categories = Counter(
            impact.article.event_category for impact in impacts if impact.article.event_category is not None
        )
        if not categories:
            return None
        category = categories.most_common(1)[0][0]
        before = min(impact.article.published_at for impact in impacts)
        return self.analog_matcher.find_analogs(ticker, category, before)

    @staticmethod
    def summarize(recommendations: Sequence[TickerRecommendation], confidences: Sequence[float]) -> PortfolioSummary:
        """Portfolio roll-up; the sentiment label depends only on the weighted impacts."""
        actions: Dict[str, List[str]] = OrderedDict(
            (action.value, []) for action in policy.RecommendationAction
        )
        for rec in recommendations:
            actions[rec.action.value].append(rec.ticker)

        impacts = [rec.weighted_impact for rec in recommendations]
        overall = policy.weighted_overall_sentiment(impacts)

        prioritized = policy.prioritize_actions([(r.ticker, r.action, r.confidence) for r in recommendations])
        key_actions = [
            f"{action.value} {ticker} (confidence {confidence:.2f})"
            for ticker, action, confidence in prioritized
        ]

        return PortfolioSummary(
            actions=actions,
            overall_sentiment=overall,
            sentiment_label=policy.sentiment_label(overall),
            key_actions=key_actions,
            risk_assessment=policy.risk_assessment(impacts, confidences),
            message=None if key_actions else "No actionable signals; hold current positions",
        )
