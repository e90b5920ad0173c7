"""
Tests for headline similarity and clustering.
"""

import pytest

from signal_engine.analysis.similarity import HeadlineClusterer, cluster_key, headline_similarity


class TestHeadlineSimilarity:

    def test_identical(self):
        assert headline_similarity("Apple beats estimates", "apple BEATS estimates") == 1.0

    def test_partial_overlap(self):
        # {apple, beats, estimates} vs {apple, misses, estimates}: 2 / 4
        assert headline_similarity("Apple beats estimates", "Apple misses estimates") == pytest.approx(0.5)

    def test_empty_inputs(self):
        assert headline_similarity("", "") == 1.0
        assert headline_similarity("Apple", "") == 0.0
        assert headline_similarity(None, "Apple") == 0.0


class TestHeadlineClusterer:

    def test_similar_headline_joins_cluster(self):
        clusterer = HeadlineClusterer("AAPL", threshold=0.8)
        first = clusterer.add("Apple beats earnings estimates for the quarter")

        assert clusterer.match("Apple beats earnings estimates for the quarter") == first
        assert clusterer.match("Apple recalls chargers") is None

    def test_cluster_key_is_stable(self):
        assert cluster_key("aapl", "Apple Beats ") == cluster_key("AAPL", "apple beats")
        assert len(cluster_key("AAPL", "x")) == 16

    def test_explicit_cluster_id_kept(self):
        clusterer = HeadlineClusterer("AAPL", threshold=0.8)
        assert clusterer.add("Seeded headline", "existing-id") == "existing-id"
        assert clusterer.match("seeded headline") == "existing-id"
