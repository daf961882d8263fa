"""Tests for the A/B test engine."""
import threading

import pytest
from src.moment_analytics.ab_testing import decide_winner
from src.moment_analytics.notifications import AB_TEST_ANALYZED, AB_TEST_SETUP
from src.moment_analytics.schema import InteractionType, Winner


def _seed_variant(analytics, interaction_factory, outcome_factory, moment_id, n, conversions):
    for i in range(n):
        analytics.record_interaction(
            interaction_factory(moment_id=moment_id, user_id=f"{moment_id}-{i}", kind=InteractionType.CLICK)
        )
    for i in range(conversions):
        analytics.record_outcome(outcome_factory(moment_id=moment_id, user_id=f"{moment_id}-{i}"))


def test_unknown_test_not_found(analytics):
    assert analytics.analyze_ab_test("missing") is None


def test_setup_initial_state(analytics):
    events = []
    analytics.subscribe(AB_TEST_SETUP, events.append)
    analytics.setup_ab_test("t1", "a", "b", 0.3)
    test = analytics.ab_tests.get_test("t1")
    assert test.variant_a.sample_size == 0
    assert test.variant_b.sample_size == 0
    assert test.confidence_level == 95
    assert test.winner == Winner.INCONCLUSIVE
    assert test.traffic_split == 0.3
    assert events[0]["test_id"] == "t1"


def test_significant_difference_declares_b(analytics, interaction_factory, outcome_factory):
    """nA=nB=1000, 5% vs 8% -> significant, B wins."""
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 1000, 50)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", 1000, 80)
    analytics.setup_ab_test("t1", "a", "b")
    result = analytics.analyze_ab_test("t1")
    assert result.variant_a.sample_size == 1000
    assert result.variant_b.sample_size == 1000
    assert result.variant_a.stats.conversion_rate == pytest.approx(5.0)
    assert result.variant_b.stats.conversion_rate == pytest.approx(8.0)
    assert result.significance == pytest.approx(0.99)
    assert result.winner == Winner.B
    assert result.p_value < 0.05


def test_a_wins_when_higher(analytics, interaction_factory, outcome_factory):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 1000, 90)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", 1000, 40)
    analytics.setup_ab_test("t1", "a", "b")
    assert analytics.analyze_ab_test("t1").winner == Winner.A


def test_small_sample_inconclusive(analytics, interaction_factory, outcome_factory):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 20, 1)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", 20, 2)
    analytics.setup_ab_test("t1", "a", "b")
    result = analytics.analyze_ab_test("t1")
    assert result.significance < 0.95
    assert result.winner == Winner.INCONCLUSIVE


def test_no_data_is_zero_significance(analytics):
    analytics.setup_ab_test("t1", "a", "b")
    result = analytics.analyze_ab_test("t1")
    assert result.significance == 0
    assert result.winner == Winner.INCONCLUSIVE


@pytest.mark.parametrize("n_a,x_a,n_b,x_b", [
    (1000, 50, 1000, 80),
    (1000, 50, 1000, 55),
    (200, 10, 300, 30),
    (50, 0, 50, 0),
    (400, 100, 400, 20),
])
def test_winner_matches_significance(analytics, interaction_factory, outcome_factory,
                                     n_a, x_a, n_b, x_b):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", n_a, x_a)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", n_b, x_b)
    analytics.setup_ab_test("t1", "a", "b")
    result = analytics.analyze_ab_test("t1")
    assert 0 <= result.significance <= 0.99
    if result.significance >= 0.95:
        assert result.winner in (Winner.A, Winner.B)
    else:
        assert result.winner == Winner.INCONCLUSIVE


def test_tie_break_resolves_to_b():
    assert decide_winner(5.0, 5.0, 0.99) == Winner.B
    assert decide_winner(5.1, 5.0, 0.99) == Winner.A
    assert decide_winner(5.1, 5.0, 0.94) == Winner.INCONCLUSIVE


def test_reanalysis_overwrites_and_versions(analytics, interaction_factory, outcome_factory):
    analytics.setup_ab_test("t1", "a", "b")
    first = analytics.analyze_ab_test("t1")
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 10, 1)
    second = analytics.analyze_ab_test("t1")
    assert second.version == first.version + 1
    assert second.variant_a.sample_size == 10
    assert first.variant_a.sample_size == 0  # old record untouched
    assert second.analysis_count == 2
    assert "Multiple analyses" in second.peek_warning
    assert analytics.ab_tests.get_test("t1") is second


def test_planned_sample_size_peek_warning(analytics, interaction_factory, outcome_factory):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 10, 1)
    analytics.setup_ab_test("t1", "a", "b", planned_sample_size=100)
    result = analytics.analyze_ab_test("t1")
    assert "Early analysis" in result.peek_warning


def test_srm_flag_against_traffic_split(analytics, interaction_factory, outcome_factory):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 900, 10)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", 100, 1)
    analytics.setup_ab_test("balanced", "a", "b", 0.5)
    analytics.setup_ab_test("skewed", "a", "b", 0.9)
    assert analytics.analyze_ab_test("balanced").srm_passed is False
    assert analytics.analyze_ab_test("skewed").srm_passed is True


def test_concurrent_analyses_last_writer_wins(analytics, interaction_factory, outcome_factory):
    _seed_variant(analytics, interaction_factory, outcome_factory, "a", 100, 5)
    _seed_variant(analytics, interaction_factory, outcome_factory, "b", 100, 9)
    analytics.setup_ab_test("t1", "a", "b")
    published = []
    analytics.subscribe(AB_TEST_ANALYZED, published.append)

    def worker():
        for _ in range(5):
            assert analytics.analyze_ab_test("t1") is not None

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    final = analytics.ab_tests.get_test("t1")
    assert final.version == 40
    assert len(published) == 40
    assert final.variant_a.sample_size == 100


def test_to_dict(analytics):
    analytics.setup_ab_test("t1", "a", "b")
    d = analytics.analyze_ab_test("t1").to_dict()
    assert d["winner"] == "inconclusive"
    assert d["variant_a"]["moment_id"] == "a"
    assert d["analyzed_at"] is not None


def test_contended_analysis_keeps_redefined_moments(analytics, interaction_factory, outcome_factory,
                                                    monkeypatch):
    _seed_variant(analytics, interaction_factory, outcome_factory, "c", 20, 2)
    analytics.setup_ab_test("t1", "a", "b")
    engine = analytics.ab_tests
    redefined = []

    def always_conflict(expected, new):
        if not redefined:
            engine.setup_test("t1", "c", "d")
            redefined.append(True)
        return False

    monkeypatch.setattr(engine, "_compare_and_swap", always_conflict)
    result = analytics.analyze_ab_test("t1")

    assert result.variant_a.moment_id == "c"
    assert result.variant_b.moment_id == "d"
    assert result.variant_a.sample_size == 20
    assert engine.get_test("t1") is result
