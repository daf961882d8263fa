"""User journey, personalization and moment comparison views."""

from typing import List, Optional, Sequence

from .config import AnalyticsConfig
from .effectiveness import get_effectiveness, rate
from .event_store import EventStore
from .schema import Interaction, MomentComparison, PersonalizationEffectiveness


def get_user_journey(
    store: EventStore,
    user_id: str,
    session_id: Optional[str] = None,
) -> List[Interaction]:
    """A user's interactions across all moments, oldest first."""
    matches = [
        i for i in store.all_interactions()
        if i.user_id == user_id and (session_id is None or i.session_id == session_id)
    ]
    return sorted(matches, key=lambda i: i.timestamp)


def get_personalization_effectiveness(
    store: EventStore,
    user_id: str,
) -> PersonalizationEffectiveness:
    """
    Compare a user's outcomes on personalized vs generic interactions.

    An outcome counts for a partition when some interaction in that
    partition shares its moment (user is fixed). The match is loose: an
    outcome can count for both partitions. Rates are outcomes per
    interaction in the partition.
    """
    interactions = [i for i in store.all_interactions() if i.user_id == user_id]
    outcomes = [o for o in store.all_outcomes() if o.user_id == user_id]

    personalized = [i for i in interactions if i.metadata.personalized]
    generic = [i for i in interactions if not i.metadata.personalized]
    personalized_moments = {i.moment_id for i in personalized}
    generic_moments = {i.moment_id for i in generic}

    personalized_conversions = sum(1 for o in outcomes if o.moment_id in personalized_moments)
    generic_conversions = sum(1 for o in outcomes if o.moment_id in generic_moments)

    p_rate = rate(personalized_conversions, len(personalized))
    g_rate = rate(generic_conversions, len(generic))
    lift = (p_rate - g_rate) / g_rate * 100 if g_rate > 0 else 0.0

    return PersonalizationEffectiveness(
        personalized_moments=len(personalized),
        generic_moments=len(generic),
        personalized_conversion_rate=p_rate,
        generic_conversion_rate=g_rate,
        lift=lift,
    )


def compare_moments(
    store: EventStore,
    moment_ids: Sequence[str],
    config: Optional[AnalyticsConfig] = None,
) -> List[MomentComparison]:
    """Rank moments by conversion rate (descending); ties keep input order."""
    rows = []
    for moment_id in moment_ids:
        stats = get_effectiveness(store, moment_id, config)
        rows.append(MomentComparison(
            moment_id=moment_id,
            metrics={
                "conversion_rate": stats.conversion_rate,
                "click_through_rate": stats.click_through_rate,
                "total_views": stats.total_views,
                "revenue_attribution": stats.revenue_attribution,
            },
            rank=0,
        ))
    rows.sort(key=lambda r: r.metrics["conversion_rate"], reverse=True)
    for rank, row in enumerate(rows, start=1):
        row.rank = rank
    return rows
