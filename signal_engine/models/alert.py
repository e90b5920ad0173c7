import enum

from sqlalchemy import Column, Integer, String, DateTime, Date, Text, JSON, Enum, UniqueConstraint

from signal_engine.database.connection import Base
from signal_engine.utils.datetime import utcnow


class AlertType(enum.Enum):
    HIGH_IMPACT = "high_impact"
    DAILY_DIGEST = "daily_digest"


class AlertStatus(enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        UniqueConstraint("user_id", "alert_type", "alert_date", name="uq_alert_user_type_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    alert_type = Column(Enum(AlertType), nullable=False)
    status = Column(Enum(AlertStatus), nullable=False, default=AlertStatus.PENDING)

    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    impact_ids = Column(JSON, nullable=True)

    alert_date = Column(Date, nullable=False)  # UTC day the alert covers
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Alert(user_id='{self.user_id}', type={self.alert_type.value}, date={self.alert_date})>"
