from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from signal_engine.database.connection import Base
from signal_engine.utils.datetime import utcnow


class Impact(Base):
    __tablename__ = "impacts"
    __table_args__ = (
        UniqueConstraint("user_id", "article_id", name="uq_impact_user_article"),
        Index("ix_impact_user_computed", "user_id", "computed_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False)
    holding_id = Column(Integer, ForeignKey("holdings.id"), nullable=False)

    impact_score = Column(Float, nullable=False)
    exposure = Column(Float, nullable=False)  # raw, before concentration multiplier
    computed_at = Column(DateTime, nullable=False, default=utcnow)

    article = relationship("Article", back_populates="impacts")
    holding = relationship("Holding", back_populates="impacts")

    def __repr__(self):
        return (
            f"<Impact(user_id='{self.user_id}', article_id={self.article_id}, "
            f"score={self.impact_score:.3f}, exposure={self.exposure:.3f})>"
        )
