"""
Sample ratio mismatch between a test's variant sample sizes and its split.

Reported alongside the A/B verdict; traffic is routed by assignment.py, so a
failing check points at broken routing or ingestion, not at the moments.
"""

from typing import NamedTuple, Tuple

from scipy import stats


class SRMCheck(NamedTuple):
    passed: bool
    chi2: float
    p_value: float


def srm_chi_square(n_a: int, n_b: int, traffic_split: float = 0.5) -> Tuple[float, float]:
    """
    Goodness-of-fit of (n_a, n_b) against the split (1 degree of freedom).

    traffic_split is the fraction of users routed to variant A. A split of
    0 or 1 with traffic on the starved side is an outright mismatch.

    Returns:
        (chi2_statistic, p_value); (0.0, 1.0) when nothing was observed
    """
    n_total = n_a + n_b
    if n_total == 0:
        return 0.0, 1.0

    expected_a = n_total * traffic_split
    expected_b = n_total - expected_a
    if expected_a <= 0 or expected_b <= 0:
        starved = n_a if expected_a <= 0 else n_b
        return (float("inf"), 0.0) if starved else (0.0, 1.0)

    chi2, p_value = stats.chisquare([n_a, n_b], f_exp=[expected_a, expected_b])
    return float(chi2), float(p_value)


def check_srm(
    n_a: int,
    n_b: int,
    traffic_split: float = 0.5,
    alpha: float = 0.01,
) -> SRMCheck:
    """Passed unless the mismatch p-value drops below alpha."""
    chi2, p_value = srm_chi_square(n_a, n_b, traffic_split)
    return SRMCheck(p_value >= alpha, chi2, p_value)
