"""
Analytics configuration.

Retention windows, cohort period lengths and the significance mapping
constants used by the A/B test engine.
"""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass
class AnalyticsConfig:
    """Tunable constants for the moment analytics engine."""
    retention_windows_days: Tuple[int, ...] = (1, 7, 30)
    cohort_periods: int = 12
    week_period_days: int = 7
    month_period_days: int = 30  # months are approximated as 30-day periods

    # significance = clamp(0, cap, (z - z_critical) / z_span + threshold)
    significance_threshold: float = 0.95
    confidence_cap: float = 0.99
    z_critical: float = 1.96
    z_span: float = 2.58
    default_confidence_level: float = 95.0
    default_traffic_split: float = 0.5

    srm_alpha: float = 0.01
    export_dir: str = "artifacts/moments"
    dropoff_proportions: Tuple[Tuple[str, float], ...] = field(
        default_factory=lambda: (
            ("Page load timeout", 0.30),
            ("Form complexity", 0.25),
            ("Pricing concerns", 0.20),
            ("Technical issues", 0.15),
            ("Other", 0.10),
        )
    )


DEFAULT_CONFIG = AnalyticsConfig()
