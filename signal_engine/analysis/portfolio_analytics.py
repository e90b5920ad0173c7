"""
Portfolio-level analytics: concentration, intent allocation and per-holding
impact history. Values use shares x cost basis as the proxy, with a missing
cost basis counting as zero.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from signal_engine.models.portfolio import HoldingIntent
from signal_engine.utils.datetime import utcnow

TOP_CONCENTRATIONS = 3


def _position_value(holding) -> Decimal:
    return Decimal(holding.shares or 0) * Decimal(holding.cost_basis or 0)


@dataclass
class PositionData:
    ticker: str
    exposure_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {'ticker': self.ticker, 'exposure_pct': self.exposure_pct}


@dataclass
class PortfolioMetrics:
    """
    Concentration summary.

    ``concentration_index`` is the Herfindahl-Hirschman index on a 0-10000
    scale: below 1500 diversified, 1500-2500 moderate, above 2500 high.
    """
    total_value: float = 0.0
    concentration_index: float = 0.0
    largest_position: Optional[PositionData] = None
    top_concentrations: List[PositionData] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_value': self.total_value,
            'concentration_index': self.concentration_index,
            'largest_position': self.largest_position.to_dict() if self.largest_position else None,
            'top_concentrations': [p.to_dict() for p in self.top_concentrations],
        }


@dataclass
class IntentMetrics:
    intent: HoldingIntent
    count: int = 0
    total_value: float = 0.0
    average_exposure: float = 0.0
    average_holding_period_days: int = 0


@dataclass
class HoldingPerformance:
    holding_id: int
    ticker: str
    intent: HoldingIntent
    holding_period_days: int
    total_impact_score: float
    positive_impacts: int
    negative_impacts: int


def portfolio_metrics(holdings: Sequence) -> PortfolioMetrics:
    if not holdings:
        return PortfolioMetrics()

    total = sum((_position_value(h) for h in holdings), Decimal(0))
    if total == 0:
        return PortfolioMetrics()

    positions = [
        PositionData(ticker=h.ticker, exposure_pct=float(_position_value(h) / total))
        for h in holdings
    ]
    positions.sort(key=lambda p: p.exposure_pct, reverse=True)

    return PortfolioMetrics(
        total_value=float(total),
        concentration_index=sum(p.exposure_pct ** 2 * 10000 for p in positions),
        largest_position=positions[0],
        top_concentrations=positions[:TOP_CONCENTRATIONS],
    )


def intent_metrics(holdings: Sequence, intent: HoldingIntent, now: Optional[datetime] = None) -> IntentMetrics:
    now = now or utcnow()
    selected = [h for h in holdings if h.intent == intent]
    if not selected:
        return IntentMetrics(intent=intent)

    portfolio_value = sum((_position_value(h) for h in holdings), Decimal(0))
    intent_value = sum((_position_value(h) for h in selected), Decimal(0))
    periods = [(now - h.acquired_at).days for h in selected if h.acquired_at is not None]

    return IntentMetrics(
        intent=intent,
        count=len(selected),
        total_value=float(intent_value),
        average_exposure=float(intent_value / portfolio_value) if portfolio_value > 0 else 0.0,
        average_holding_period_days=int(sum(periods) / len(periods)) if periods else 0,
    )


def all_intent_metrics(holdings: Sequence, now: Optional[datetime] = None) -> Dict[HoldingIntent, IntentMetrics]:
    return {intent: intent_metrics(holdings, intent, now) for intent in HoldingIntent}


def holding_performance(holding, impact_scores: Sequence[float], now: Optional[datetime] = None) -> HoldingPerformance:
    now = now or utcnow()
    return HoldingPerformance(
        holding_id=holding.id,
        ticker=holding.ticker,
        intent=holding.intent,
        holding_period_days=(now - holding.acquired_at).days if holding.acquired_at else 0,
        total_impact_score=float(sum(impact_scores)),
        positive_impacts=sum(1 for s in impact_scores if s > 0),
        negative_impacts=sum(1 for s in impact_scores if s < 0),
    )
