"""Moment effectiveness analytics: events, funnels, A/B tests and cohorts."""

from .schema import (
    ABTestResult,
    Cohort,
    EffectivenessStats,
    FunnelStep,
    GroupBy,
    Interaction,
    InteractionMetadata,
    InteractionType,
    Outcome,
    OutcomeType,
    Variant,
    Winner,
)
from .config import AnalyticsConfig, DEFAULT_CONFIG
from .event_store import EventStore
from .visit_ledger import VisitLedger
from .notifications import NotificationBus
from .effectiveness import get_effectiveness, calculate_user_retention
from .funnel import FunnelAnalyzer, FunnelHeuristics, FixedProportionHeuristics
from .ab_testing import ABTestEngine
from .cohorts import get_cohort_analysis
from .journey import get_user_journey, get_personalization_effectiveness, compare_moments
from .engine import MomentAnalytics
from .report import render_ab_summary

__all__ = [
    "ABTestResult",
    "Cohort",
    "EffectivenessStats",
    "FunnelStep",
    "GroupBy",
    "Interaction",
    "InteractionMetadata",
    "InteractionType",
    "Outcome",
    "OutcomeType",
    "Variant",
    "Winner",
    "AnalyticsConfig",
    "DEFAULT_CONFIG",
    "EventStore",
    "VisitLedger",
    "NotificationBus",
    "get_effectiveness",
    "calculate_user_retention",
    "FunnelAnalyzer",
    "FunnelHeuristics",
    "FixedProportionHeuristics",
    "ABTestEngine",
    "get_cohort_analysis",
    "get_user_journey",
    "get_personalization_effectiveness",
    "compare_moments",
    "MomentAnalytics",
    "render_ab_summary",
]
