"""
Moment A/B traffic simulator.

Assigns synthetic users to two moment variants via the assignment module and
simulates their behaviour:
- every user views their variant; a share return for a second view later
- views turn into clicks at a per-variant click-through probability
- clicks convert at a per-variant conversion probability (with revenue)
- users who do not click may bounce

Interactions carry funnel step names ("view", "click", "purchase") so the same
run can feed funnel, cohort and retention queries. Returns a run summary.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import numpy as np

from .assignment import assign_users
from .engine import MomentAnalytics
from .schema import (
    Interaction,
    InteractionMetadata,
    InteractionType,
    Outcome,
    OutcomeType,
    Variant,
)

logger = logging.getLogger(__name__)

SIMULATOR_SEED = 42
FUNNEL_STEPS = ["view", "click", "purchase"]
ORDER_VALUES = np.array([25.0, 50.0, 100.0])


def run_moment_simulation(
    analytics: MomentAnalytics,
    test_id: str,
    moment_a: str,
    moment_b: str,
    n_users: int = 2000,
    traffic_split: float = 0.5,
    click_prob: Optional[Dict[Variant, float]] = None,
    conversion_prob: Optional[Dict[Variant, float]] = None,
    bounce_prob: float = 0.3,
    return_prob: float = 0.4,
    personalized_share: float = 0.5,
    start: Optional[datetime] = None,
    days: int = 14,
    random_seed: int = SIMULATOR_SEED,
) -> Dict:
    """
    Record simulated interactions and outcomes for a two-variant test.

    Args:
        analytics: Engine receiving the events
        test_id: A/B test identifier (used for assignment hashing)
        moment_a: Moment shown to variant A
        moment_b: Moment shown to variant B
        n_users: Number of synthetic users
        traffic_split: Fraction of users routed to variant A
        click_prob: Per-variant view -> click probability
        conversion_prob: Per-variant click -> conversion probability
        bounce_prob: Probability a non-clicking user bounces
        return_prob: Probability a user comes back for a second view
        personalized_share: Share of views flagged as personalized
        start: First day of traffic (defaults to 2024-01-01)
        days: Number of days traffic is spread over
        random_seed: Random seed for reproducibility

    Returns:
        Dict with per-variant user, click and conversion counts
    """
    np.random.seed(random_seed)
    click_prob = click_prob or {Variant.A: 0.10, Variant.B: 0.12}
    conversion_prob = conversion_prob or {Variant.A: 0.05, Variant.B: 0.08}
    start = start or datetime(2024, 1, 1)

    user_ids = [f"user_{i:05d}" for i in range(n_users)]
    assignments = assign_users(user_ids, test_id, traffic_split)
    moments = {Variant.A: moment_a, Variant.B: moment_b}
    counts = {v: {"users": 0, "clicks": 0, "conversions": 0} for v in Variant}

    for uid in user_ids:
        variant = assignments[uid]
        moment_id = moments[variant]
        session_id = f"{uid}-s1"
        seen_at = start + timedelta(minutes=int(np.random.randint(0, days * 24 * 60)))
        personalized = bool(np.random.random() < personalized_share)
        counts[variant]["users"] += 1

        def interaction(kind, at, step, value=None, session=session_id,
                        moment_id=moment_id, uid=uid, personalized=personalized):
            return Interaction(
                moment_id=moment_id,
                user_id=uid,
                session_id=session,
                timestamp=at,
                type=kind,
                value=value,
                metadata=InteractionMetadata(step=step, personalized=personalized),
            )

        analytics.record_interaction(interaction(InteractionType.VIEW, seen_at, "view"))
        analytics.record_interaction(interaction(
            InteractionType.ENGAGEMENT,
            seen_at + timedelta(seconds=5),
            None,
            value=float(max(0.0, np.random.normal(45, 15))),
        ))

        if np.random.random() < click_prob[variant]:
            clicked_at = seen_at + timedelta(seconds=int(np.random.randint(10, 300)))
            analytics.record_interaction(interaction(InteractionType.CLICK, clicked_at, "click"))
            counts[variant]["clicks"] += 1

            if np.random.random() < conversion_prob[variant]:
                converted_at = clicked_at + timedelta(seconds=int(np.random.randint(30, 900)))
                order_value = float(np.random.choice(ORDER_VALUES))
                analytics.record_interaction(interaction(
                    InteractionType.CONVERSION, converted_at, "purchase", value=order_value
                ))
                analytics.record_outcome(Outcome(
                    moment_id=moment_id,
                    user_id=uid,
                    decision_id=f"{test_id}-{uid}",
                    outcome_type=OutcomeType.CONVERSION,
                    value=order_value,
                    timestamp=converted_at,
                    conversion_path=list(FUNNEL_STEPS),
                    time_to_conversion=(converted_at - seen_at).total_seconds(),
                ))
                counts[variant]["conversions"] += 1
        elif np.random.random() < bounce_prob:
            analytics.record_outcome(Outcome(
                moment_id=moment_id,
                user_id=uid,
                decision_id=f"{test_id}-{uid}",
                outcome_type=OutcomeType.BOUNCE,
                value=0.0,
                timestamp=seen_at + timedelta(seconds=3),
            ))

        if np.random.random() < return_prob:
            back_at = seen_at + timedelta(days=int(np.random.randint(1, 15)))
            analytics.record_interaction(
                interaction(InteractionType.VIEW, back_at, "view", session=f"{uid}-s2")
            )

    summary = {
        "test_id": test_id,
        "n_users": n_users,
        "variant_a": dict(counts[Variant.A], moment_id=moment_a),
        "variant_b": dict(counts[Variant.B], moment_id=moment_b),
        "traffic_split": traffic_split,
        "random_seed": random_seed,
    }
    logger.info(f"Simulation complete: {summary}")
    return summary
