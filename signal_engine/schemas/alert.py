"""
Alert Schemas: the payload handed to the external notification dispatcher.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from signal_engine.models.alert import AlertType


class AlertImpactLine(BaseModel):
    impact_id: int
    ticker: str
    headline: str
    impact_score: float
    exposure: float
    publisher: Optional[str] = None
    source_url: Optional[str] = None
    published_at: datetime


class AlertPayload(BaseModel):
    alert_id: Optional[int] = None
    user_id: str
    alert_type: AlertType
    alert_date: date
    subject: str
    body: str
    impacts: List[AlertImpactLine] = Field(default_factory=list)
