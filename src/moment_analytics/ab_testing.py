"""
Two-variant moment A/B tests.

A test is created once and re-analyzed on demand. Each analysis builds a new
immutable ABTestResult from current store contents and installs it with a
compare-and-swap on the record version; on conflict the analysis is rebuilt
from the newer record. Readers always see a whole record.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .effectiveness import get_effectiveness
from .event_store import EventStore
from .notifications import AB_TEST_ANALYZED, AB_TEST_SETUP
from .schema import ABTestResult, VariantResult, Winner
from .stats import (
    check_srm,
    proportions_z_test,
    repeated_peek_warning,
    significance_from_rates,
)

logger = logging.getLogger(__name__)

MAX_CAS_ATTEMPTS = 16


def decide_winner(
    rate_a: float,
    rate_b: float,
    significance: float,
    threshold: float = 0.95,
) -> Winner:
    """
    A wins only with a strictly higher rate; equal rates resolve to B.

    Below the significance threshold the verdict is always inconclusive.
    """
    if significance < threshold:
        return Winner.INCONCLUSIVE
    return Winner.A if rate_a > rate_b else Winner.B


class ABTestEngine:
    """Registry of A/B tests over moments in an event store."""

    def __init__(
        self,
        store: EventStore,
        config: Optional[AnalyticsConfig] = None,
    ) -> None:
        self.store = store
        self.config = config or DEFAULT_CONFIG
        self._tests: Dict[str, ABTestResult] = {}
        self._lock = threading.Lock()

    def setup_test(
        self,
        test_id: str,
        moment_a: str,
        moment_b: str,
        traffic_split: Optional[float] = None,
        planned_sample_size: int = 0,
    ) -> ABTestResult:
        """
        Create (or replace) a test with zero sample sizes and no winner.

        traffic_split is recorded for diagnostics only; allocating traffic is
        the caller's job.
        """
        split = self.config.default_traffic_split if traffic_split is None else traffic_split
        with self._lock:
            previous = self._tests.get(test_id)
            record = ABTestResult(
                test_id=test_id,
                variant_a=VariantResult(moment_a, get_effectiveness(self.store, moment_a, self.config)),
                variant_b=VariantResult(moment_b, get_effectiveness(self.store, moment_b, self.config)),
                traffic_split=split,
                planned_sample_size=planned_sample_size,
                confidence_level=self.config.default_confidence_level,
                winner=Winner.INCONCLUSIVE,
                version=previous.version + 1 if previous else 0,
            )
            self._tests[test_id] = record

        logger.info(f"A/B test {test_id} set up: A={moment_a} B={moment_b} split={split}")
        self.store.bus.publish(AB_TEST_SETUP, {
            "test_id": test_id,
            "moment_a": moment_a,
            "moment_b": moment_b,
            "traffic_split": split,
        })
        return record

    def get_test(self, test_id: str) -> Optional[ABTestResult]:
        return self._tests.get(test_id)

    def list_tests(self) -> List[ABTestResult]:
        return list(self._tests.values())

    def _evaluate(self, base: ABTestResult) -> ABTestResult:
        cfg = self.config
        a_id = base.variant_a.moment_id
        b_id = base.variant_b.moment_id

        stats_a = get_effectiveness(self.store, a_id, cfg)
        stats_b = get_effectiveness(self.store, b_id, cfg)
        n_a = self.store.interaction_count(a_id)
        n_b = self.store.interaction_count(b_id)

        significance = significance_from_rates(
            stats_a.conversion_rate, n_a, stats_b.conversion_rate, n_b, cfg
        )
        _, p_value = proportions_z_test(stats_a.conversion_rate, n_a, stats_b.conversion_rate, n_b)
        srm_passed, _, _ = check_srm(n_a, n_b, base.traffic_split, cfg.srm_alpha)
        analysis_count = base.analysis_count + 1

        return replace(
            base,
            variant_a=VariantResult(a_id, stats_a, n_a),
            variant_b=VariantResult(b_id, stats_b, n_b),
            significance=significance,
            winner=decide_winner(
                stats_a.conversion_rate,
                stats_b.conversion_rate,
                significance,
                cfg.significance_threshold,
            ),
            p_value=p_value,
            srm_passed=srm_passed,
            analysis_count=analysis_count,
            peek_warning=repeated_peek_warning(n_a + n_b, analysis_count, base.planned_sample_size),
            version=base.version + 1,
            analyzed_at=datetime.now(timezone.utc),
        )

    def _compare_and_swap(self, expected: ABTestResult, new: ABTestResult) -> bool:
        with self._lock:
            current = self._tests.get(expected.test_id)
            if current is None or current.version != expected.version:
                return False
            self._tests[expected.test_id] = new
            return True

    def analyze_test(self, test_id: str) -> Optional[ABTestResult]:
        """
        Recompute both variants and the verdict.

        Returns:
            The installed ABTestResult, or None if test_id is unknown
        """
        result = None
        for _ in range(MAX_CAS_ATTEMPTS):
            base = self._tests.get(test_id)
            if base is None:
                logger.info(f"A/B test {test_id} not found")
                return None
            result = self._evaluate(base)
            if self._compare_and_swap(base, result):
                break
        else:
            # lost every race: evaluate the current definition and install it unconditionally
            with self._lock:
                current = self._tests.get(test_id)
                if current is None:
                    return None
                result = self._evaluate(current)
                self._tests[test_id] = result

        logger.info(
            f"A/B test {test_id} analyzed: nA={result.variant_a.sample_size} "
            f"nB={result.variant_b.sample_size} significance={result.significance:.3f} "
            f"winner={result.winner.value}"
        )
        self.store.bus.publish(AB_TEST_ANALYZED, result)
        return result
