from .recommendation import (
    AnalogData, TickerRecommendation, PortfolioSummary, RecommendationReport, PositionExposure,
    IntentAllocation, HoldingHistory
)
from .alert import AlertPayload, AlertImpactLine

__all__ = [
    "AnalogData", "TickerRecommendation", "PortfolioSummary", "RecommendationReport", "PositionExposure",
    "IntentAllocation", "HoldingHistory",
    "AlertPayload", "AlertImpactLine",
]
