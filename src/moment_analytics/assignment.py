"""
Deterministic variant assignment for moment A/B tests.

Uses hashing of (user_id, test_id) so a user always sees the same moment
variant; the share of users routed to variant A follows the traffic split.
"""

import hashlib
import logging
from typing import Dict, List

from .schema import Variant

logger = logging.getLogger(__name__)


def _hash_to_bucket(user_id: str, test_id: str) -> int:
    """
    Deterministic hash to [0, 9999] bucket.

    Same user + test always maps to same bucket.
    """
    key = f"{user_id}:{test_id}"
    h = hashlib.sha256(key.encode()).hexdigest()
    return int(h[:8], 16) % 10000


def assign_user(user_id: str, test_id: str, traffic_split: float = 0.5) -> Variant:
    """
    Assign a user to variant A or B.

    Args:
        user_id: User identifier
        test_id: A/B test identifier
        traffic_split: Fraction of users sent to variant A

    Returns:
        Variant.A or Variant.B
    """
    threshold = int(traffic_split * 10000)
    return Variant.A if _hash_to_bucket(user_id, test_id) < threshold else Variant.B


def assign_users(
    user_ids: List[str],
    test_id: str,
    traffic_split: float = 0.5,
) -> Dict[str, Variant]:
    """Assign many users; returns user_id -> Variant."""
    assignments = {uid: assign_user(uid, test_id, traffic_split) for uid in user_ids}
    n_a = sum(1 for v in assignments.values() if v == Variant.A)
    logger.info(
        f"Assignment complete for {test_id}: {len(assignments)} users -> "
        f"A={n_a}, B={len(assignments) - n_a}"
    )
    return assignments
