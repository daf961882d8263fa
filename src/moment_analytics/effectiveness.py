"""
Moment effectiveness statistics.

Funnel-free metrics for one moment: CTR, conversion rate, bounce rate,
engagement time, revenue attribution and first-visit-anchored retention.
All rates are percentages; a zero denominator yields 0.
"""

from datetime import timedelta
from typing import Iterable, Optional

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .event_store import EventStore
from .schema import (
    EffectivenessStats,
    InteractionType,
    OutcomeType,
    UserRetention,
)
from .visit_ledger import VisitLedger


def rate(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0 when the denominator is 0."""
    return numerator / denominator * 100 if denominator > 0 else 0.0


def calculate_user_retention(
    ledger: VisitLedger,
    user_ids: Iterable[str],
    windows_days: Optional[Iterable[int]] = None,
) -> UserRetention:
    """
    Share of users who returned within 1, 7 and 30 days of their first visit.

    A user is retained for an N-day window if any visit falls in
    (first_visit, first_visit + N days]. Users without visits count towards
    the total but are never retained.

    Args:
        ledger: Visit ledger holding every user's visit timestamps
        user_ids: Distinct users to evaluate
        windows_days: Day windows, defaults to the configured (1, 7, 30)

    Returns:
        UserRetention with day1/day7/day30 percentages
    """
    windows = tuple(windows_days or DEFAULT_CONFIG.retention_windows_days)
    users = list(dict.fromkeys(user_ids))
    counts = [0] * len(windows)

    for user_id in users:
        visits = ledger.visits(user_id)
        if not visits:
            continue
        first = min(visits)
        for idx, days in enumerate(windows):
            horizon = first + timedelta(days=days)
            if any(first < v <= horizon for v in visits):
                counts[idx] += 1

    pcts = [rate(c, len(users)) for c in counts]
    pcts += [0.0] * (3 - len(pcts))
    return UserRetention(day1=pcts[0], day7=pcts[1], day30=pcts[2])


def get_effectiveness(
    store: EventStore,
    moment_id: str,
    config: Optional[AnalyticsConfig] = None,
) -> EffectivenessStats:
    """
    Compute effectiveness statistics for a moment from current store contents.

    An unknown moment yields an all-zero record.
    """
    config = config or DEFAULT_CONFIG
    interactions = store.interactions(moment_id)
    outcomes = store.outcomes(moment_id)

    views = sum(1 for i in interactions if i.type == InteractionType.VIEW)
    clicks = sum(1 for i in interactions if i.type == InteractionType.CLICK)
    conversion_outcomes = [o for o in outcomes if o.outcome_type == OutcomeType.CONVERSION]
    conversions = len(conversion_outcomes)
    bounces = sum(1 for o in outcomes if o.outcome_type == OutcomeType.BOUNCE)

    engagement = [i.value or 0 for i in interactions if i.type == InteractionType.ENGAGEMENT]
    avg_engagement = sum(engagement) / len(engagement) if engagement else 0.0

    revenue = sum(o.value or 0 for o in conversion_outcomes)

    user_ids = [i.user_id for i in interactions]
    retention = calculate_user_retention(
        store.ledger, user_ids, config.retention_windows_days
    )

    return EffectivenessStats(
        moment_id=moment_id,
        total_views=views,
        total_clicks=clicks,
        total_conversions=conversions,
        click_through_rate=rate(clicks, views),
        conversion_rate=rate(conversions, clicks),
        average_engagement_time=float(avg_engagement),
        bounce_rate=rate(bounces, views),
        revenue_attribution=float(revenue),
        user_retention=retention,
    )
