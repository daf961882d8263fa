"""
Conversion funnel reconstruction.

Steps are matched on interaction metadata.step within a closed time window.
Each step can only convert users who converted on the previous step, so the
eligible population narrows monotonically.

Time-in-step and dropoff reasons are heuristics supplied by a replaceable
FunnelHeuristics strategy; they do not affect the funnel counts.
"""

import logging
import math
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Set

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .effectiveness import rate
from .event_store import EventStore
from .schema import DropoffReason, FunnelStep, Interaction

logger = logging.getLogger(__name__)


class FunnelHeuristics:
    """Strategy for the approximate parts of a funnel step."""

    def time_in_step(
        self,
        step_name: str,
        user_ids: Sequence[str],
        step_interactions: Sequence[Interaction],
    ) -> List[float]:
        """Seconds spent in the step, one entry per converted user."""
        raise NotImplementedError

    def dropoff_reasons(
        self,
        step_name: str,
        dropoff_user_ids: Sequence[str],
    ) -> List[DropoffReason]:
        raise NotImplementedError


class FixedProportionHeuristics(FunnelHeuristics):
    """
    Placeholder heuristics.

    Dropoff reasons split the dropped users by fixed proportions (floored).
    Time in step is the span between a user's first and last interaction
    at that step, which is 0 for users with a single touch.
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None) -> None:
        self.proportions = (config or DEFAULT_CONFIG).dropoff_proportions

    def time_in_step(self, step_name, user_ids, step_interactions):
        wanted = set(user_ids)
        stamps: Dict[str, List[datetime]] = defaultdict(list)
        for i in step_interactions:
            if i.user_id in wanted:
                stamps[i.user_id].append(i.timestamp)
        return [
            (max(stamps[u]) - min(stamps[u])).total_seconds()
            for u in user_ids
            if stamps.get(u)
        ]

    def dropoff_reasons(self, step_name, dropoff_user_ids):
        n = len(dropoff_user_ids)
        return [
            DropoffReason(reason=reason, count=int(math.floor(n * share)))
            for reason, share in self.proportions
        ]


class FunnelAnalyzer:
    """Computes per-step conversion for named funnels over an event store."""

    def __init__(
        self,
        store: EventStore,
        heuristics: Optional[FunnelHeuristics] = None,
        config: Optional[AnalyticsConfig] = None,
    ) -> None:
        self.store = store
        self.heuristics = heuristics or FixedProportionHeuristics(config)
        self._definitions: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get_definition(self, funnel_id: str) -> Optional[List[str]]:
        steps = self._definitions.get(funnel_id)
        return list(steps) if steps is not None else None

    def definitions(self) -> Dict[str, List[str]]:
        with self._lock:
            return {k: list(v) for k, v in self._definitions.items()}

    def _step_interactions(
        self, step_name: str, start_date: datetime, end_date: datetime
    ) -> List[Interaction]:
        return [
            i for i in self.store.all_interactions()
            if i.metadata.step == step_name and start_date <= i.timestamp <= end_date
        ]

    def analyze(
        self,
        funnel_id: str,
        steps: Sequence[str],
        start_date: datetime,
        end_date: datetime,
    ) -> List[FunnelStep]:
        """
        Analyze a funnel.

        Args:
            funnel_id: Funnel identifier (definition kept for reuse/audit)
            steps: Ordered step names
            start_date: Inclusive window start
            end_date: Inclusive window end

        Returns:
            One FunnelStep per step, in order
        """
        with self._lock:
            self._definitions[funnel_id] = list(steps)

        results: List[FunnelStep] = []
        previous_converted: Set[str] = set()

        for index, step_name in enumerate(steps):
            step_interactions = self._step_interactions(step_name, start_date, end_date)
            step_users = {i.user_id for i in step_interactions}

            eligible = step_users if index == 0 else previous_converted
            converted = eligible & step_users
            dropped = sorted(eligible - converted)
            converted_ids = sorted(converted)

            times = self.heuristics.time_in_step(step_name, converted_ids, step_interactions)
            avg_time = sum(times) / len(times) if times else 0.0

            results.append(FunnelStep(
                step_name=step_name,
                total_users=len(eligible),
                converted_users=len(converted),
                conversion_rate=rate(len(converted), len(eligible)),
                average_time_in_step=float(avg_time),
                dropoff_reasons=self.heuristics.dropoff_reasons(step_name, dropped),
            ))
            previous_converted = converted

        logger.info(
            f"Funnel {funnel_id}: {len(steps)} steps, "
            f"{results[-1].converted_users if results else 0} users completed"
        )
        return results
