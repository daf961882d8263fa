"""
Moment analytics facade.

Wires the event store, visit ledger, notification bus, funnel analyzer and
A/B test engine together and exposes the ingestion and query boundary.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .ab_testing import ABTestEngine
from .cohorts import get_cohort_analysis
from .config import DEFAULT_CONFIG, AnalyticsConfig
from .effectiveness import get_effectiveness
from .event_store import EventStore
from .funnel import FunnelAnalyzer, FunnelHeuristics
from .journey import compare_moments, get_personalization_effectiveness, get_user_journey
from .notifications import NotificationBus
from .schema import (
    ABTestResult,
    Cohort,
    EffectivenessStats,
    FunnelStep,
    GroupBy,
    Interaction,
    MomentComparison,
    Outcome,
    PersonalizationEffectiveness,
)
from .visit_ledger import VisitLedger


class MomentAnalytics:
    """Behavioral analytics for moments over an in-memory event log."""

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        heuristics: Optional[FunnelHeuristics] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.bus = NotificationBus()
        self.ledger = VisitLedger()
        self.store = EventStore(self.ledger, self.bus)
        self.funnels = FunnelAnalyzer(self.store, heuristics, self.config)
        self.ab_tests = ABTestEngine(self.store, self.config)

    # -- ingestion -------------------------------------------------------------

    def record_interaction(self, interaction: Interaction) -> None:
        self.store.record_interaction(interaction)

    def record_outcome(self, outcome: Outcome) -> None:
        self.store.record_outcome(outcome)

    def submit_interaction(self, record: Union[Interaction, Dict[str, Any]]) -> None:
        """Ingest a record or raw payload. Payload parse errors raise ValueError."""
        if not isinstance(record, Interaction):
            record = Interaction.from_dict(record)
        self.record_interaction(record)

    def submit_outcome(self, record: Union[Outcome, Dict[str, Any]]) -> None:
        if not isinstance(record, Outcome):
            record = Outcome.from_dict(record)
        self.record_outcome(record)

    def subscribe(self, event: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        return self.bus.subscribe(event, callback)

    # -- queries ---------------------------------------------------------------

    def get_effectiveness(self, moment_id: str) -> EffectivenessStats:
        return get_effectiveness(self.store, moment_id, self.config)

    def analyze_funnel(
        self,
        funnel_id: str,
        steps: Sequence[str],
        start_date: datetime,
        end_date: datetime,
    ) -> List[FunnelStep]:
        return self.funnels.analyze(funnel_id, steps, start_date, end_date)

    def setup_ab_test(
        self,
        test_id: str,
        moment_a: str,
        moment_b: str,
        traffic_split: Optional[float] = None,
        planned_sample_size: int = 0,
    ) -> None:
        self.ab_tests.setup_test(test_id, moment_a, moment_b, traffic_split, planned_sample_size)

    def analyze_ab_test(self, test_id: str) -> Optional[ABTestResult]:
        return self.ab_tests.analyze_test(test_id)

    def get_user_journey(self, user_id: str, session_id: Optional[str] = None) -> List[Interaction]:
        return get_user_journey(self.store, user_id, session_id)

    def get_cohort_analysis(
        self,
        start_date: datetime,
        end_date: datetime,
        group_by: Union[GroupBy, str] = GroupBy.WEEK,
    ) -> List[Cohort]:
        return get_cohort_analysis(self.store, start_date, end_date, group_by, self.config)

    def get_personalization_effectiveness(self, user_id: str) -> PersonalizationEffectiveness:
        return get_personalization_effectiveness(self.store, user_id)

    def compare_moments(self, moment_ids: Sequence[str]) -> List[MomentComparison]:
        return compare_moments(self.store, moment_ids, self.config)

    def export_events(self, out_dir: Optional[str] = None) -> Dict[str, Path]:
        return self.store.export_events(out_dir or self.config.export_dir)
