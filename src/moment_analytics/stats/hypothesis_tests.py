"""
Two-proportion z-test for comparing moment variants.

The pooled z statistic drives both the linear confidence score used to
declare a winner and a conventional two-tailed p-value reported alongside.
"""

import math
from typing import Optional, Tuple

from scipy import stats

from ..config import DEFAULT_CONFIG, AnalyticsConfig


def pooled_z_score(
    rate_a: float,
    n_a: int,
    rate_b: float,
    n_b: int,
) -> Optional[float]:
    """
    |p_a - p_b| / SE with the pooled proportion weighted by sample size.

    Args:
        rate_a: Variant A conversion rate in percent
        n_a: Variant A sample size
        rate_b: Variant B conversion rate in percent
        n_b: Variant B sample size

    Returns:
        z statistic, or None when the standard error is 0 or undefined

    An empty variant also yields None. Taken literally the formula gives an
    infinite SE there, z = 0 and a floor score of about 0.19; treating it as
    "no evidence" reports 0 instead. The verdict is inconclusive either way.
    """
    if n_a <= 0 or n_b <= 0:
        return None
    p1 = rate_a / 100
    p2 = rate_b / 100
    pooled = (p1 * n_a + p2 * n_b) / (n_a + n_b)
    variance = pooled * (1 - pooled) * (1 / n_a + 1 / n_b)
    # conversion rates above 100% push pooled past 1
    if variance <= 0:
        return None
    se = math.sqrt(variance)
    return abs(p1 - p2) / se


def significance_from_rates(
    rate_a: float,
    n_a: int,
    rate_b: float,
    n_b: int,
    config: Optional[AnalyticsConfig] = None,
) -> float:
    """
    Confidence score in [0, cap] that the two conversion rates differ.

    A linear remap of z: z_critical (1.96) maps to the threshold (0.95) and
    every z_span (2.58) above it adds 1.0 before clamping to the cap (0.99).
    """
    config = config or DEFAULT_CONFIG
    z = pooled_z_score(rate_a, n_a, rate_b, n_b)
    if z is None:
        return 0.0
    score = (z - config.z_critical) / config.z_span + config.significance_threshold
    return float(min(config.confidence_cap, max(0.0, score)))


def proportions_z_test(
    rate_a: float,
    n_a: int,
    rate_b: float,
    n_b: int,
) -> Tuple[float, float]:
    """
    Two-tailed two-proportion z-test.

    Returns:
        Tuple of (z, p_value); (0.0, 1.0) when the test is undefined
    """
    z = pooled_z_score(rate_a, n_a, rate_b, n_b)
    if z is None:
        return 0.0, 1.0
    p_value = 2 * (1 - stats.norm.cdf(z))
    return float(z), float(p_value)
