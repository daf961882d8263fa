"""Pytest configuration - add project root to path, shared event factories."""
import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from src.moment_analytics.engine import MomentAnalytics
from src.moment_analytics.schema import (
    Interaction,
    InteractionMetadata,
    InteractionType,
    Outcome,
    OutcomeType,
)

T0 = datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture
def analytics():
    """Fresh engine per test."""
    return MomentAnalytics()


def make_interaction(
    moment_id="m1",
    user_id="u1",
    kind=InteractionType.VIEW,
    timestamp=T0,
    session_id="s1",
    value=None,
    step=None,
    personalized=False,
):
    return Interaction(
        moment_id=moment_id,
        user_id=user_id,
        session_id=session_id,
        timestamp=timestamp,
        type=kind,
        value=value,
        metadata=InteractionMetadata(step=step, personalized=personalized),
    )


def make_outcome(
    moment_id="m1",
    user_id="u1",
    kind=OutcomeType.CONVERSION,
    value=0.0,
    timestamp=T0,
):
    return Outcome(
        moment_id=moment_id,
        user_id=user_id,
        decision_id=f"d-{user_id}",
        outcome_type=kind,
        value=value,
        timestamp=timestamp,
    )


@pytest.fixture
def interaction_factory():
    return make_interaction


@pytest.fixture
def outcome_factory():
    return make_outcome
