"""Tests for SRM chi-square against the A/B traffic split."""
import pytest
from src.moment_analytics.stats.srm import srm_chi_square, check_srm


def test_srm_perfect_balance():
    """500/500 should pass SRM."""
    passed, _, p = check_srm(500, 500, traffic_split=0.5)
    assert passed
    assert p > 0.9


def test_srm_extreme_imbalance():
    """900/100 should fail SRM at a 50/50 split."""
    passed, _, p = check_srm(900, 100, traffic_split=0.5)
    assert not passed
    assert p < 0.01


def test_srm_matches_uneven_split():
    passed, _, _ = check_srm(700, 300, traffic_split=0.7)
    assert passed


def test_srm_chi_square_output():
    """Chi-square returns (stat, pvalue)."""
    chi2, p = srm_chi_square(50, 50)
    assert chi2 >= 0
    assert 0 <= p <= 1


def test_srm_empty():
    assert srm_chi_square(0, 0) == (0.0, 1.0)


def test_srm_degenerate_split():
    assert check_srm(10, 0, traffic_split=1.0).passed
    result = check_srm(10, 3, traffic_split=1.0)
    assert not result.passed
    assert result.p_value == 0.0
