"""
Cross-source consensus math.

Deriving the consensus of a time window and applying its confidence bonus
are kept as two separate functions; the pipeline orchestrator connects them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

WINDOW_HOURS = 6
LONE_ARTICLE_FACTOR = 0.1
AGREEMENT_THRESHOLD = 0.75

# (minimum source count, bonus), checked in order
CONFIDENCE_BONUSES = ((3, 0.15), (2, 0.10))


@dataclass(frozen=True)
class ConsensusScore:
    source_count: int
    stance_agreement: float
    consensus_factor: float
    confidence_bonus: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_count': self.source_count,
            'stance_agreement': self.stance_agreement,
            'consensus_factor': self.consensus_factor,
            'confidence_bonus': self.confidence_bonus,
        }


LONE_ARTICLE = ConsensusScore(
    source_count=1,
    stance_agreement=1.0,
    consensus_factor=LONE_ARTICLE_FACTOR,
    confidence_bonus=0.0,
)


def confidence_bonus(source_count: int, stance_agreement: float) -> float:
    if stance_agreement < AGREEMENT_THRESHOLD:
        return 0.0
    for minimum, bonus in CONFIDENCE_BONUSES:
        if source_count >= minimum:
            return bonus
    return 0.0


def compute_consensus(
    target_sentiment: Optional[int],
    window: Iterable[Tuple[Optional[str], int]]
) -> ConsensusScore:
    """
    Consensus of one article against its window.

    Args:
        target_sentiment: Sentiment of the article being scored, or None
            when it has not been analyzed yet
        window: (publisher, sentiment) of the other signalled articles on
            the same ticker within +/- WINDOW_HOURS

    Returns:
        ConsensusScore
    """
    window = list(window)
    if not window:
        return LONE_ARTICLE

    publishers = {(publisher or "unknown").lower() for publisher, _ in window}
    source_count = len(publishers) + 1

    if target_sentiment is None:
        return ConsensusScore(
            source_count=source_count,
            stance_agreement=1.0,
            consensus_factor=min(source_count / 10.0, 1.0),
            confidence_bonus=0.0,
        )

    matching = sum(1 for _, sentiment in window if sentiment == target_sentiment)
    agreement = (matching + 1) / (len(window) + 1)

    return ConsensusScore(
        source_count=source_count,
        stance_agreement=agreement,
        consensus_factor=min((source_count / 10.0) * agreement, 1.0),
        confidence_bonus=confidence_bonus(source_count, agreement),
    )


def apply_consensus_bonus(confidence: float, score: ConsensusScore) -> float:
    """Base confidence plus the consensus bonus, clamped to [0, 1]."""
    return max(0.0, min(1.0, confidence + score.confidence_bonus))
