"""
Headline similarity.

Word-set Jaccard over lower-cased, space-split headlines. Used for
clustering near-identical headlines; URL matching stays the dedup rule.
"""

import hashlib
from typing import List, Optional, Tuple


def headline_similarity(first: Optional[str], second: Optional[str]) -> float:
    words_a = set((first or "").lower().split())
    words_b = set((second or "").lower().split())

    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0

    return len(words_a & words_b) / len(words_a | words_b)


def cluster_key(ticker: str, headline: str) -> str:
    """Stable id for a cluster seeded by ``headline``."""
    digest = hashlib.sha1(f"{ticker.upper()}|{headline.lower().strip()}".encode("utf-8")).hexdigest()
    return digest[:16]


class HeadlineClusterer:
    """
    Greedy single-pass clustering of one ticker's headlines.

    A headline joins the first known cluster whose seed headline is at
    least ``threshold`` similar; otherwise it seeds a new cluster.
    """

    def __init__(self, ticker: str, threshold: float):
        self.ticker = ticker
        self.threshold = threshold
        self._seeds: List[Tuple[str, str]] = []  # (cluster id, seed headline)

    def add(self, headline: str, cluster_id: Optional[str] = None) -> str:
        """Register a headline as a cluster seed and return its cluster id."""
        cluster_id = cluster_id or cluster_key(self.ticker, headline)
        self._seeds.append((cluster_id, headline))
        return cluster_id

    def match(self, headline: str) -> Optional[str]:
        for cluster_id, seed in self._seeds:
            if headline_similarity(headline, seed) >= self.threshold:
                return cluster_id
        return None
