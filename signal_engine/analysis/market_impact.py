"""
Personalized Impact Math

Exposure of one holding within a user's portfolio, the concentration
adjustment, and the final impact score of a signal on that holding.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Sequence


CONCENTRATION_THRESHOLD = 0.15
CONCENTRATION_MULTIPLIER = 1.2


@dataclass
class PositionView:
    """The slice of a holding the exposure math needs."""
    ticker: str
    shares: Decimal
    cost_basis: Optional[Decimal] = None

    @classmethod
    def from_holding(cls, holding) -> "PositionView":
        return cls(
            ticker=holding.ticker,
            shares=Decimal(holding.shares or 0),
            cost_basis=Decimal(holding.cost_basis) if holding.cost_basis is not None else None,
        )


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


def compute_exposure(position: PositionView, portfolio: Sequence[PositionView]) -> float:
    """
    Fraction of the portfolio held in ``position``, clamped to [0, 1].

    Value is shares x cost basis, totalled over positions that have a cost
    basis. When the total is zero or this position has no cost basis, the
    share-count ratio across all positions is used instead.
    """
    total_value = sum(
        (p.shares * p.cost_basis for p in portfolio if p.cost_basis is not None),
        Decimal(0)
    )

    if total_value > 0 and position.cost_basis is not None:
        exposure = (position.shares * position.cost_basis) / total_value
    else:
        total_shares = sum((p.shares for p in portfolio), Decimal(0))
        exposure = position.shares / total_shares if total_shares > 0 else Decimal(0)

    return _clamp_unit(float(exposure))


def is_concentrated(exposure: float) -> bool:
    return exposure > CONCENTRATION_THRESHOLD


def adjusted_exposure(exposure: float) -> float:
    """Exposure used for scoring: 1.2x above the concentration threshold, capped at 1."""
    if is_concentrated(exposure):
        return min(1.0, exposure * CONCENTRATION_MULTIPLIER)
    return exposure


def impact_score(sentiment: int, magnitude: int, confidence: float, exposure: float) -> float:
    """sentiment x magnitude x confidence x adjusted exposure."""
    return sentiment * magnitude * confidence * adjusted_exposure(exposure)


def portfolio_exposures(portfolio: Sequence[PositionView]) -> Dict[str, float]:
    """Exposure per ticker for a whole portfolio."""
    return {position.ticker: compute_exposure(position, portfolio) for position in portfolio}
