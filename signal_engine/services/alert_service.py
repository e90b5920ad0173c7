"""
Alert payload builder.

Produces high-impact alerts and daily digests for the external
notification dispatcher. At most one alert of each type is created per
user per UTC day; delivery is not handled here.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from signal_engine.core.config import Settings
from signal_engine.database.repositories import AlertRepository, ImpactRepository, insert_unique
from signal_engine.models.alert import Alert, AlertStatus, AlertType
from signal_engine.models.impact import Impact
from signal_engine.schemas.alert import AlertImpactLine, AlertPayload
from signal_engine.services.logging_service import get_logger
from signal_engine.services.metrics_service import record_alert_created
from signal_engine.utils.datetime import utcnow

logger = get_logger(__name__)

DIGEST_TOP_EVENTS = 10
SENTIMENT_TEXT = {1: "Positive", -1: "Negative"}


def _published(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def high_impact_body(impacts: List[Impact]) -> str:
    lines = [
        "HIGH IMPACT EVENTS DETECTED",
        "",
        "The following significant events may affect your portfolio:",
        "",
    ]
    for impact in impacts:
        article = impact.article
        signal = article.signal
        direction = "POSITIVE" if impact.impact_score > 0 else "NEGATIVE"

        lines.append(f"[{direction}] {article.ticker}: {article.headline}")
        lines.append(f"  Impact Score: {abs(impact.impact_score):.4f}")
        lines.append(f"  Sentiment: {SENTIMENT_TEXT.get(signal.sentiment, 'Neutral')}")
        lines.append(f"  Magnitude: {signal.magnitude}/3")
        lines.append(f"  Your Exposure: {impact.exposure:.1%}")
        lines.append(f"  Source: {article.publisher}")
        lines.append(f"  Published: {_published(article.published_at)}")
        if article.source_url:
            lines.append(f"  Link: {article.source_url}")
        lines.append("")

    lines.append("This is an automated alert. Not financial advice.")
    return "\n".join(lines) + "\n"


def daily_digest_body(impacts: List[Impact]) -> str:
    positive = sum(1 for i in impacts if i.impact_score > 0)
    negative = sum(1 for i in impacts if i.impact_score < 0)

    lines = [
        "DAILY PORTFOLIO DIGEST",
        "",
        f"Summary of {len(impacts)} events affecting your holdings:",
        "",
        f"Positive Events: {positive}",
        f"Negative Events: {negative}",
        "",
        "TOP EVENTS:",
        "",
    ]
    for impact in impacts[:DIGEST_TOP_EVENTS]:
        article = impact.article
        direction = "+" if impact.impact_score > 0 else "-"
        lines.append(f"{direction} {article.ticker}: {article.headline}")
        lines.append(f"  Impact: {abs(impact.impact_score):.4f} | Exposure: {impact.exposure:.1%}")
        lines.append(f"  {article.publisher} - {_published(article.published_at)}")
        lines.append("")

    lines.append("View full details in the app.")
    lines.append("This is an automated digest. Not financial advice.")
    return "\n".join(lines) + "\n"


class AlertService:
    def __init__(self, db_session: Session, config: Settings):
        self.db_session = db_session
        self.config = config
        self.impacts = ImpactRepository(db_session)
        self.alerts = AlertRepository(db_session)

    def _ranked_impacts(self, user_id: str, now: datetime) -> List[Impact]:
        since = now - timedelta(hours=self.config.ALERT_LOOKBACK_HOURS)
        impacts = [i for i in self.impacts.recent_for_user(user_id, since) if i.article.signal is not None]
        impacts.sort(key=lambda i: abs(i.impact_score), reverse=True)
        return impacts

    def _create(
        self,
        user_id: str,
        alert_type: AlertType,
        subject: str,
        body: str,
        impacts: List[Impact],
        now: datetime
    ) -> Optional[AlertPayload]:
        alert = Alert(
            user_id=user_id,
            alert_type=alert_type,
            status=AlertStatus.PENDING,
            subject=subject,
            body=body,
            impact_ids=[i.id for i in impacts],
            alert_date=now.date(),
            created_at=now,
        )
        if not insert_unique(self.db_session, alert):
            return None
        self.db_session.commit()

        record_alert_created(alert_type.value)
        logger.info("Alert created", user_id=user_id, alert_type=alert_type.value, events=len(impacts))

        return AlertPayload(
            alert_id=alert.id,
            user_id=user_id,
            alert_type=alert_type,
            alert_date=alert.alert_date,
            subject=subject,
            body=body,
            impacts=[
                AlertImpactLine(
                    impact_id=i.id,
                    ticker=i.article.ticker,
                    headline=i.article.headline,
                    impact_score=i.impact_score,
                    exposure=i.exposure,
                    publisher=i.article.publisher,
                    source_url=i.article.source_url,
                    published_at=i.article.published_at,
                )
                for i in impacts
            ],
        )

    def build_high_impact_alert(self, user_id: str, now: Optional[datetime] = None) -> Optional[AlertPayload]:
        """Alert for the user's strongest recent impacts; None when nothing qualifies or one exists today."""
        now = now or utcnow()
        if self.alerts.exists_for_day(user_id, AlertType.HIGH_IMPACT, now.date()):
            return None

        impacts = [
            i for i in self._ranked_impacts(user_id, now)
            if abs(i.impact_score) >= self.config.HIGH_IMPACT_THRESHOLD
        ][:self.config.HIGH_IMPACT_ALERT_LIMIT]
        if not impacts:
            return None

        return self._create(
            user_id,
            AlertType.HIGH_IMPACT,
            f"High Impact Alert: {len(impacts)} significant events affecting your portfolio",
            high_impact_body(impacts),
            impacts,
            now
        )

    def build_daily_digest(self, user_id: str, now: Optional[datetime] = None) -> Optional[AlertPayload]:
        now = now or utcnow()
        if self.alerts.exists_for_day(user_id, AlertType.DAILY_DIGEST, now.date()):
            return None

        impacts = self._ranked_impacts(user_id, now)[:self.config.DIGEST_ALERT_LIMIT]
        if not impacts:
            logger.info("No impacts to report", user_id=user_id)
            return None

        return self._create(
            user_id,
            AlertType.DAILY_DIGEST,
            f"Daily Portfolio Digest: {len(impacts)} events",
            daily_digest_body(impacts),
            impacts,
            now
        )

    def _users_since(self, now: datetime) -> List[str]:
        return self.impacts.user_ids_with_impacts_since(now - timedelta(hours=self.config.ALERT_LOOKBACK_HOURS))

    def run_high_impact_alerts(self, now: Optional[datetime] = None) -> List[AlertPayload]:
        now = now or utcnow()
        payloads = [self.build_high_impact_alert(user_id, now) for user_id in self._users_since(now)]
        return [p for p in payloads if p is not None]

    def run_daily_digests(self, now: Optional[datetime] = None) -> List[AlertPayload]:
        now = now or utcnow()
        payloads = [self.build_daily_digest(user_id, now) for user_id in self._users_since(now)]
        return [p for p in payloads if p is not None]

    def mark_sent(self, alert_id: int) -> bool:
        """Record delivery by the dispatcher; only pending alerts change state."""
        return self._set_status(alert_id, AlertStatus.SENT)

    def mark_failed(self, alert_id: int) -> bool:
        return self._set_status(alert_id, AlertStatus.FAILED)

    def _set_status(self, alert_id: int, status: AlertStatus) -> bool:
        alert = self.db_session.get(Alert, alert_id)
        if alert is None:
            logger.warning("Alert not found", alert_id=alert_id)
            return False
        if alert.status != AlertStatus.PENDING:
            logger.info("Alert already processed", alert_id=alert_id, status=alert.status.value)
            return False
        alert.status = status
        self.db_session.commit()
        return True
