from .news import Article, Signal, SourceType, SourceTier, EventCategory
from .portfolio import Holding, UserProfile, RiskProfile, HoldingIntent
from .impact import Impact
from .alert import Alert, AlertType, AlertStatus

__all__ = [
    "Article", "Signal", "SourceType", "SourceTier", "EventCategory",
    "Holding", "UserProfile", "RiskProfile", "HoldingIntent",
    "Impact",
    "Alert", "AlertType", "AlertStatus",
]
