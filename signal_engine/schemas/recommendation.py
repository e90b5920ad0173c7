"""
Recommendation Schemas for the per-user report handed to notification
and presentation layers.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from signal_engine.analysis.recommendation import RecommendationAction


class AnalogData(BaseModel):
    """Historical analog summary; recomputed on every request."""
    count: int = Field(..., ge=0, description="Number of matching historical events")
    pattern: str = Field(..., description="Deterministic pattern summary")
    median_move_5d: Optional[float] = Field(None, description="Median 5-day price move (%), when price data is available")
    median_move_30d: Optional[float] = Field(None, description="Median 30-day price move (%), when price data is available")


class PositionExposure(BaseModel):
    ticker: str
    exposure: float = Field(..., ge=0, le=1)
    concentrated: bool = False


class IntentAllocation(BaseModel):
    """Share of the portfolio held under one holding intent."""
    intent: str
    count: int = 0
    total_value: float = 0.0
    average_exposure: float = Field(0.0, ge=0, le=1)
    average_holding_period_days: int = 0


class HoldingHistory(BaseModel):
    """Impact history of one holding over the report window."""
    ticker: str
    intent: str
    holding_period_days: int = 0
    total_impact_score: float = 0.0
    positive_impacts: int = 0
    negative_impacts: int = 0


class TickerRecommendation(BaseModel):
    """Risk-adjusted suggestion for one holding."""
    ticker: str
    action: RecommendationAction
    confidence: float = Field(..., ge=0, le=1)
    weighted_impact: float = Field(..., description="Average recency-weighted impact")
    exposure: float = Field(..., ge=0, le=1)
    suggestion: str
    rationale: str
    key_signals: List[str] = Field(default_factory=list)
    source_tier: str
    news_count: int = 0
    analogs: Optional[AnalogData] = None


class PortfolioSummary(BaseModel):
    """Portfolio-level roll-up of the per-ticker recommendations."""
    actions: Dict[str, List[str]] = Field(default_factory=dict, description="Action -> tickers")
    overall_sentiment: float = 0.0
    sentiment_label: str = "Neutral"
    key_actions: List[str] = Field(default_factory=list)
    risk_assessment: str = "Low"
    message: Optional[str] = None


class RecommendationReport(BaseModel):
    user_id: str
    generated_at: datetime
    risk_profile: str
    total_holdings: int = 0
    impacts_analyzed: int = 0
    recommendations: List[TickerRecommendation] = Field(default_factory=list)
    exposures: List[PositionExposure] = Field(default_factory=list)
    concentration_index: float = 0.0
    largest_position: Optional[PositionExposure] = None
    top_concentrations: List[PositionExposure] = Field(default_factory=list)
    intent_allocation: List[IntentAllocation] = Field(default_factory=list)
    holding_history: List[HoldingHistory] = Field(default_factory=list)
    summary: PortfolioSummary = Field(default_factory=PortfolioSummary)
