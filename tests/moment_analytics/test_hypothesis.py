"""Tests for the pooled z-test and the significance score."""
import pytest
from src.moment_analytics.stats.hypothesis_tests import (
    pooled_z_score,
    proportions_z_test,
    significance_from_rates,
)


def test_pooled_z_known():
    """5% vs 8% at n=1000 each -> z around 2.72."""
    z = pooled_z_score(5.0, 1000, 8.0, 1000)
    assert z == pytest.approx(2.721, abs=1e-3)


def test_significance_linear_mapping():
    """z = 1.96 maps to 0.95; large z is capped at 0.99; small z floors at 0."""
    assert significance_from_rates(5.0, 1000, 8.0, 1000) == pytest.approx(0.99)
    assert significance_from_rates(10.0, 100, 10.0, 100) == 0.0
    z = pooled_z_score(5.0, 1000, 6.5, 1000)
    expected = max(0.0, min(0.99, (z - 1.96) / 2.58 + 0.95))
    assert significance_from_rates(5.0, 1000, 6.5, 1000) == pytest.approx(expected)


def test_zero_standard_error():
    assert pooled_z_score(0.0, 100, 0.0, 100) is None
    assert significance_from_rates(0.0, 100, 0.0, 100) == 0.0
    assert significance_from_rates(100.0, 100, 100.0, 100) == 0.0


def test_empty_sample():
    assert significance_from_rates(5.0, 0, 8.0, 100) == 0.0
    assert proportions_z_test(5.0, 0, 8.0, 100) == (0.0, 1.0)
    assert pooled_z_score(5.0, 100, 8.0, 0) is None


def test_rates_above_hundred_do_not_fail():
    # pooled proportion above 1 has no real standard error
    assert significance_from_rates(300.0, 10, 200.0, 10) == 0.0


def test_proportions_z_test_equal():
    """Equal proportions -> high p-value."""
    z, p_val = proportions_z_test(30.0, 100, 30.0, 100)
    assert z == 0
    assert p_val > 0.9


def test_proportions_z_test_known():
    """20% vs 10% of 100 -> significant."""
    z, p_val = proportions_z_test(20.0, 100, 10.0, 100)
    assert z > 1.96
    assert p_val < 0.05
