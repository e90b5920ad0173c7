"""
Tests for exposure, concentration adjustment and impact score.
"""

from decimal import Decimal

import pytest

from signal_engine.analysis.market_impact import (
    PositionView,
    adjusted_exposure,
    compute_exposure,
    impact_score,
    portfolio_exposures,
)


def position(ticker, shares, cost_basis=None):
    return PositionView(
        ticker=ticker,
        shares=Decimal(shares),
        cost_basis=Decimal(cost_basis) if cost_basis is not None else None,
    )


class TestImpactScore:

    def test_concentration_example(self):
        assert adjusted_exposure(0.20) == pytest.approx(0.24)
        assert impact_score(1, 2, 0.8, 0.20) == pytest.approx(0.384)

    def test_below_threshold_unadjusted(self):
        assert adjusted_exposure(0.15) == 0.15
        assert impact_score(-1, 3, 0.5, 0.10) == pytest.approx(-0.15)

    def test_adjusted_exposure_capped(self):
        assert adjusted_exposure(0.9) == 1.0

    def test_neutral_signal_scores_zero(self):
        assert impact_score(0, 3, 0.9, 0.5) == 0


class TestExposure:

    def test_value_weighted(self):
        portfolio = [position("AAPL", "10", "100"), position("MSFT", "30", "100")]
        assert compute_exposure(portfolio[0], portfolio) == pytest.approx(0.25)

    def test_missing_cost_basis_uses_share_ratio(self):
        portfolio = [position("AAPL", "10"), position("MSFT", "30", "100")]
        assert compute_exposure(portfolio[0], portfolio) == pytest.approx(0.25)

    def test_zero_value_uses_share_ratio(self):
        portfolio = [position("AAPL", "1", "0"), position("MSFT", "3", "0")]
        assert compute_exposure(portfolio[1], portfolio) == pytest.approx(0.75)

    def test_single_holding_is_full_exposure(self):
        only = position("AAPL", "5", "10")
        assert compute_exposure(only, [only]) == 1.0

    def test_empty_positions(self):
        empty = position("AAPL", "0")
        assert compute_exposure(empty, [empty]) == 0.0

    def test_exposures_within_unit_interval(self):
        portfolio = [position("A", "1", "5"), position("B", "2"), position("C", "7", "3")]
        for value in portfolio_exposures(portfolio).values():
            assert 0.0 <= value <= 1.0
