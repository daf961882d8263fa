"""A/B test statistics."""

from .srm import SRMCheck, srm_chi_square, check_srm
from .hypothesis_tests import pooled_z_score, significance_from_rates, proportions_z_test
from .sequential import repeated_peek_warning

__all__ = [
    "SRMCheck",
    "srm_chi_square",
    "check_srm",
    "pooled_z_score",
    "significance_from_rates",
    "proportions_z_test",
    "repeated_peek_warning",
]
